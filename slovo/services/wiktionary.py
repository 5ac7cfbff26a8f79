"""Reshape a Wiktionary page into the collapsible fragment shown for a word.

Two steps, both plain sibling walks over the BeautifulSoup tree:

1. ``extract_section`` keeps the nodes that follow the language heading
   (``<h2 id="Russian">``) up to the next top-level heading.
2. ``collapse_sections`` turns every sub-heading (Pronunciation, Noun, ...)
   plus the nodes after it into a ``<details>`` panel.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Union

from bs4 import BeautifulSoup, Comment, NavigableString, Tag


LOGGER = logging.getLogger(__name__)

DEFAULT_SECTION = "Russian"

ENTRY_CLASS = "wiktionary-entry"
SECTION_CLASS = "wiktionary-section"
SECTION_TITLE_CLASS = "wiktionary-section-title"
SECTION_CONTENT_CLASS = "wiktionary-section-content"

TOP_HEADING_CLASS = "mw-heading2"
SUBHEADING_CLASSES = ("mw-heading3", "mw-heading4")
SUBHEADING_TAGS = ("h3", "h4")
EDIT_LINK_CLASS = "mw-editsection"

Document = Union[str, bytes, BeautifulSoup]


@dataclass
class DictionarySection:
    section_id: str
    body: Tag

    def to_html(self) -> str:
        return str(self.body)


def _has_class(node, class_name: str) -> bool:
    return isinstance(node, Tag) and class_name in (node.get("class") or [])


def _is_tag(node, name: str) -> bool:
    return isinstance(node, Tag) and node.name == name


def _is_top_heading(node) -> bool:
    return _is_tag(node, "h2") or _has_class(node, TOP_HEADING_CLASS)


def _is_subheading(node, heading_classes: Sequence[str]) -> bool:
    if not isinstance(node, Tag):
        return False
    if node.name in SUBHEADING_TAGS:
        return True
    return any(class_name in (node.get("class") or []) for class_name in heading_classes)


def _as_soup(document: Document) -> BeautifulSoup:
    if isinstance(document, BeautifulSoup):
        return document
    return BeautifulSoup(document or "", "html.parser")


def _section_start(anchor: Tag) -> Tag:
    parent = anchor.parent
    if parent is None or isinstance(parent, BeautifulSoup):
        return anchor
    # A bare <h2 id=...> is its own boundary; otherwise the id sits inside the heading.
    if anchor.name == "h2" and not _has_class(parent, TOP_HEADING_CLASS):
        return anchor
    return parent


def extract_section(document: Document, section_id: str = DEFAULT_SECTION) -> Optional[DictionarySection]:
    """Return the nodes belonging to the ``section_id`` heading, or ``None``.

    The input tree is left untouched; the section body is a copy wrapped in
    ``<div class="wiktionary-entry">``.
    """
    soup = _as_soup(document)
    anchor = soup.find(id=section_id)
    if anchor is None:
        LOGGER.debug("Section %r not found", section_id)
        return None

    output = BeautifulSoup("", "html.parser")
    body = output.new_tag("div", attrs={"class": ENTRY_CLASS})
    output.append(body)

    for sibling in list(_section_start(anchor).next_siblings):
        if _is_top_heading(sibling):
            break
        body.append(copy.copy(sibling))
    return DictionarySection(section_id=section_id, body=body)


def _meaningful_children(panel: Tag) -> List:
    children = []
    for child in panel.children:
        if isinstance(child, Tag):
            children.append(child)
        elif isinstance(child, NavigableString) and not isinstance(child, Comment) and child.strip():
            children.append(child)
    return children


def opens_by_default(panel: Tag) -> bool:
    """Numbered senses stay visible; pronunciation, etymology and the like start folded.

    Matches a panel starting with ``<ol>``, or with the headword line
    paragraph directly followed by ``<ol>``.
    """
    children = _meaningful_children(panel)
    if not children:
        return False
    if _is_tag(children[0], "ol"):
        return True
    return _is_tag(children[0], "p") and len(children) > 1 and _is_tag(children[1], "ol")


def _heading_span(factory: BeautifulSoup, heading: Tag) -> Tag:
    span = factory.new_tag("span")
    if heading.get("id"):
        span["id"] = heading["id"]
    if heading.get("class"):
        span["class"] = heading["class"]
    span.string = heading.get_text().strip()
    return span


def _summary_contents(factory: BeautifulSoup, marker: Tag) -> List:
    heading = copy.copy(marker)
    for edit_link in heading.find_all(class_=EDIT_LINK_CLASS):
        edit_link.decompose()
    if heading.name in SUBHEADING_TAGS:
        return [_heading_span(factory, heading)]
    for inner in heading.find_all(list(SUBHEADING_TAGS)):
        inner.replace_with(_heading_span(factory, inner))
    return [child.extract() for child in list(heading.contents)]


def is_collapsed(body: Tag) -> bool:
    return body.find("details", class_=SECTION_CLASS, recursive=False) is not None


def collapse_sections(body: Tag, heading_classes: Sequence[str] = SUBHEADING_CLASSES) -> Tag:
    """Wrap every sub-heading of ``body`` and its following siblings in ``<details>``.

    Works in place and returns ``body``. A body that already holds collapsed
    panels is returned as is.
    """
    if is_collapsed(body):
        LOGGER.debug("Section body is already collapsed, skipping")
        return body

    markers = [child for child in body.children if _is_subheading(child, heading_classes)]
    factory = BeautifulSoup("", "html.parser")

    for index, marker in enumerate(markers):
        content = []
        node = marker.next_sibling
        while node is not None and not _is_subheading(node, heading_classes):
            content.append(node)
            node = node.next_sibling

        details = factory.new_tag("details", attrs={"class": SECTION_CLASS})
        summary = factory.new_tag("summary", attrs={"class": SECTION_TITLE_CLASS})
        for child in _summary_contents(factory, marker):
            summary.append(child)
        panel = factory.new_tag("div", attrs={"class": SECTION_CONTENT_CLASS})
        for node in content:
            panel.append(node.extract())

        if index == 0 or opens_by_default(panel):
            details["open"] = ""
        details.append(summary)
        details.append(panel)
        marker.replace_with(details)

    return body


def process_wiktionary(document: Document, section_id: str = DEFAULT_SECTION) -> Optional[str]:
    """Extract the language section and collapse it; ``None`` when the page has no such section."""
    section = extract_section(document, section_id)
    if section is None:
        return None
    collapse_sections(section.body)
    return section.to_html()
