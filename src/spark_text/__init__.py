"""Spark Text - rich-text editor document conversion.

Imports the editor's markup, Markdown, plain text and salvaged PDF text,
and exports canonical markup, Markdown, plain text and Word documents.
"""

__version__ = "0.1.0"

from spark_text.formats.markdown_handler import to_markdown
from spark_text.formats.txt_handler import from_plain_text, to_text
from spark_text.formatting.markup import has_content, parse
from spark_text.formatting.parser import from_markdown
from spark_text.formatting.renderer import render
from spark_text.formatting.salvage import extract_text, reconstruct
from spark_text.formatting.word import to_word_document

__all__ = [
    "__version__",
    "parse",
    "render",
    "to_markdown",
    "from_markdown",
    "to_text",
    "to_word_document",
    "reconstruct",
    "extract_text",
    "from_plain_text",
    "has_content",
]
