"""Russian reading aid: word wrapping, dictionary lookups and a definition cache."""

__version__ = "0.1.0"
