"""Formatting module for document representation and conversion."""

from spark_text.formatting.ir import (
    Document,
    HeadingLevel,
    Mark,
    MarkType,
    Text,
    normalize,
)
from spark_text.formatting.markup import MarkupImporter, has_content, parse
from spark_text.formatting.parser import MarkdownParser, from_markdown
from spark_text.formatting.renderer import MarkupRenderer, render
from spark_text.formatting.salvage import (
    SalvageImporter,
    SalvageResult,
    SalvageStatus,
    extract_text,
    reconstruct,
)
from spark_text.formatting.word import WordDocument, WordDocumentBuilder, to_word_document

__all__ = [
    "Document",
    "HeadingLevel",
    "Mark",
    "MarkType",
    "Text",
    "normalize",
    "MarkupImporter",
    "MarkupRenderer",
    "MarkdownParser",
    "SalvageImporter",
    "SalvageResult",
    "SalvageStatus",
    "WordDocument",
    "WordDocumentBuilder",
    "parse",
    "render",
    "has_content",
    "from_markdown",
    "reconstruct",
    "extract_text",
    "to_word_document",
]
