"""squadlens: a queryable model of a squad derived from its Markdown files."""

__version__ = "0.1.0"
