from .cache import DefinitionCache
from .fetcher import DefinitionFetcher, DefinitionResult
from .pages import PageLoader
from .pipeline import ContentPipeline, ProcessedContent
from .tokenizer import TokenMatch, normalize_word, tokenize
from .wiktionary import collapse_sections, extract_section, process_wiktionary


__all__ = [
    "ContentPipeline",
    "DefinitionCache",
    "DefinitionFetcher",
    "DefinitionResult",
    "PageLoader",
    "ProcessedContent",
    "TokenMatch",
    "collapse_sections",
    "extract_section",
    "normalize_word",
    "process_wiktionary",
    "tokenize",
]
