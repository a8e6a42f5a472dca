"""Document format handlers for Spark Text."""

from spark_text.errors import UnsupportedFormatError
from spark_text.formats.base import FormatHandler
from spark_text.formats.docx_handler import DOCXHandler
from spark_text.formats.html_handler import HTMLHandler
from spark_text.formats.markdown_handler import MarkdownHandler, MarkdownRenderer, to_markdown
from spark_text.formats.pdf_handler import PDFHandler
from spark_text.formats.txt_handler import PlainTextRenderer, TXTHandler, from_plain_text, to_text

__all__ = [
    "FormatHandler",
    "HTMLHandler",
    "MarkdownHandler",
    "MarkdownRenderer",
    "TXTHandler",
    "PlainTextRenderer",
    "DOCXHandler",
    "PDFHandler",
    "to_markdown",
    "to_text",
    "from_plain_text",
]

# Map file extensions to handlers
HANDLER_MAP: dict[str, type[FormatHandler]] = {
    ".html": HTMLHandler,
    ".htm": HTMLHandler,
    ".md": MarkdownHandler,
    ".markdown": MarkdownHandler,
    ".txt": TXTHandler,
    ".docx": DOCXHandler,
    ".pdf": PDFHandler,
}

SUPPORTED_EXTENSIONS = tuple(HANDLER_MAP.keys())

# Export formats and the file extension each one writes
EXPORT_FORMATS: dict[str, str] = {
    "html": ".html",
    "markdown": ".md",
    "txt": ".txt",
    "docx": ".docx",
}


def get_handler(extension: str) -> type[FormatHandler]:
    """Get the appropriate handler class for a file extension."""
    ext = extension.lower()
    if not ext.startswith("."):
        ext = f".{ext}"
    if ext not in HANDLER_MAP:
        raise UnsupportedFormatError(
            f"Unsupported file format: {ext}. "
            f"Supported formats: {', '.join(SUPPORTED_EXTENSIONS)}"
        )
    return HANDLER_MAP[ext]
