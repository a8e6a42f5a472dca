"""PDF file handler (read only)."""

import logging
from pathlib import Path
from typing import Optional

import pdfplumber
from pdfminer.psparser import PSException
from pdfplumber.utils.exceptions import PdfminerException

from spark_text.errors import (
    InputTooLargeError,
    NoExtractableContentError,
    UnsupportedFormatError,
)
from spark_text.formats.base import FormatHandler
from spark_text.formatting.ir import Document
from spark_text.formatting.salvage import SalvageImporter, SalvageResult
from spark_text.options import SalvageOptions

logger = logging.getLogger(__name__)


class PDFHandler(FormatHandler):
    """Handler for PDF files.

    Uses pdfplumber for text extraction and the salvage importer to
    rebuild structure. When pdfplumber cannot read the file, the raw
    bytes are scanned for text operators instead.
    """

    def __init__(self, options: Optional[SalvageOptions] = None) -> None:
        self.options = options or SalvageOptions()

    @property
    def supported_extensions(self) -> tuple[str, ...]:
        return (".pdf",)

    @property
    def can_write(self) -> bool:
        return False

    def read(self, path: Path) -> Document:
        """Import a PDF file.

        Raises:
            NoExtractableContentError: If no readable text could be recovered
            InputTooLargeError: If the file exceeds the size limit
        """
        result = self.salvage(path)
        if not result.ok:
            raise NoExtractableContentError(
                f"No extractable text in {path.name}", result=result
            )
        return result.document

    def salvage(self, path: Path) -> SalvageResult:
        """Recover a document from a PDF, reporting the salvage status."""
        size = path.stat().st_size
        if size > self.options.max_input_bytes:
            raise InputTooLargeError(
                f"{path.name} is {size} bytes, over the limit of "
                f"{self.options.max_input_bytes} bytes"
            )

        importer = SalvageImporter(self.options)
        text = self._extract_with_pdfplumber(path)
        if text.strip():
            return importer.reconstruct(text)

        logger.info("No text layer found in %s, scanning raw content", path.name)
        return importer.salvage_bytes(path.read_bytes())

    def _extract_with_pdfplumber(self, path: Path) -> str:
        """Extract plain text from PDF file."""
        text_parts: list[str] = []
        try:
            with pdfplumber.open(path) as pdf:
                for page in pdf.pages:
                    text = page.extract_text()
                    if text:
                        text_parts.append(text.strip())
        except (
            PdfminerException, PSException, ValueError, KeyError, TypeError, OSError
        ) as exc:
            logger.warning("pdfplumber could not read %s: %s", path.name, exc)
            return ""

        return "\n\n".join(text_parts)

    def render(self, document: Document, title: Optional[str] = None) -> str:
        raise UnsupportedFormatError("PDF output is not supported")
