"""Conversion orchestrator."""

import logging
import re
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, Optional, Union

from spark_text.config import Settings, get_settings
from spark_text.core.models import Document
from spark_text.errors import (
    ConversionError,
    EmptyContentError,
    ExportError,
    InputTooLargeError,
    NoExtractableContentError,
    UnsupportedFormatError,
)
from spark_text.formats import EXPORT_FORMATS, FormatHandler, get_handler
from spark_text.formats.docx_handler import DOCXHandler
from spark_text.formats.html_handler import HTMLHandler
from spark_text.formats.markdown_handler import MarkdownHandler
from spark_text.formats.pdf_handler import PDFHandler
from spark_text.formats.txt_handler import TXTHandler, from_plain_text
from spark_text.formatting.markup import MarkupImporter, has_content
from spark_text.formatting.parser import MarkdownParser
from spark_text.formatting.salvage import SalvageImporter, SalvageResult

__all__ = [
    "BatchResult",
    "ConversionError",
    "DocumentConverter",
    "EmptyContentError",
    "ExportError",
    "InputTooLargeError",
    "NoExtractableContentError",
    "UnsupportedFormatError",
    "safe_filename",
]

logger = logging.getLogger(__name__)

UNSAFE_FILENAME_PATTERN = re.compile(r'[\\/:*?"<>|\x00-\x1f]+')


def safe_filename(title: str, default: str = "Documento") -> str:
    """Make a document title usable as a file name."""
    name = UNSAFE_FILENAME_PATTERN.sub("_", title or "").strip(" .")
    return name or default


@dataclass
class BatchResult:
    """Outcome of converting one file in a batch."""

    source: Path
    output: Optional[Path] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class DocumentConverter:
    """Orchestrates imports and exports.

    Pipeline:
    1. Import the source (editor markup, Markdown, plain text or a file)
    2. Guard against empty content
    3. Render with the handler for the requested export format
    4. Optionally write the result to disk
    """

    def __init__(self, settings: Optional[Settings] = None) -> None:
        """Initialize the converter.

        Args:
            settings: Settings to build converter options from; the global
                settings are used when omitted
        """
        self.settings = settings or get_settings()

    def handler_for(self, handler_class: type[FormatHandler]) -> FormatHandler:
        """Instantiate a handler with options from the settings."""
        if handler_class is MarkdownHandler:
            return MarkdownHandler(self.settings.markdown_options())
        if handler_class is TXTHandler:
            return TXTHandler(self.settings.text_options())
        if handler_class is DOCXHandler:
            return DOCXHandler(self.settings.word_options())
        if handler_class is HTMLHandler:
            return HTMLHandler(self.settings.html_options())
        if handler_class is PDFHandler:
            return PDFHandler(self.settings.salvage_options())
        return handler_class()

    def export_handler(self, fmt: str) -> FormatHandler:
        """Get the handler for an export format name."""
        key = fmt.lower().lstrip(".")
        if key == "md":
            key = "markdown"
        if key not in EXPORT_FORMATS:
            raise UnsupportedFormatError(
                f"Unsupported export format: {fmt}. "
                f"Supported formats: {', '.join(EXPORT_FORMATS)}"
            )
        return self.handler_for(get_handler(EXPORT_FORMATS[key]))

    # -------------------------------------------------------------------------
    # Import
    # -------------------------------------------------------------------------

    def load(self, path: Path) -> Document:
        """Import a file, dispatching on its extension.

        Raises:
            ConversionError: If the file is missing or cannot be imported
            UnsupportedFormatError: If the extension has no handler
        """
        if not path.exists():
            raise ConversionError(f"Input file not found: {path}")
        handler = self.handler_for(get_handler(path.suffix))
        try:
            return handler.read(path)
        except OSError as exc:
            raise ConversionError(f"Could not read {path}: {exc}") from exc

    def from_markup(self, markup: str) -> Document:
        return MarkupImporter().parse(markup)

    def from_markdown(self, text: str) -> Document:
        return MarkdownParser().parse(text)

    def from_text(self, text: str) -> Document:
        return from_plain_text(text)

    def salvage(self, raw: Union[str, bytes]) -> SalvageResult:
        """Reconstruct a document from damaged PDF bytes or extracted text."""
        importer = SalvageImporter(self.settings.salvage_options())
        if isinstance(raw, bytes):
            return importer.salvage_bytes(raw)
        return importer.reconstruct(raw)

    def salvage_file(self, path: Path) -> SalvageResult:
        """Salvage a PDF file, or a text file holding a raw text dump."""
        if path.suffix.lower() == ".pdf":
            return PDFHandler(self.settings.salvage_options()).salvage(path)
        text = path.read_bytes().decode("utf-8", errors="replace")
        if text.startswith("%PDF-"):
            return self.salvage(path.read_bytes())
        return self.salvage(text)

    # -------------------------------------------------------------------------
    # Export
    # -------------------------------------------------------------------------

    def export(
        self,
        source: Union[Document, str],
        fmt: str,
        title: Optional[str] = None,
    ) -> Union[str, bytes]:
        """Export a document or editor markup.

        Args:
            source: A Document, or editor markup to import first
            fmt: Export format (html, markdown, txt or docx)
            title: Document title; defaults to the configured title

        Returns:
            Text for text formats, bytes for docx

        Raises:
            EmptyContentError: If the source holds no content
            ExportError: If rendering or packaging fails
        """
        handler = self.export_handler(fmt)
        document = self._coerce(source)
        title = title or document.title or self.settings.default_title
        try:
            return handler.render(document, title)
        except ConversionError:
            raise
        except Exception as exc:
            logger.error("Export to %s failed: %s", fmt, exc)
            raise ExportError(fmt, exc) from exc

    def export_file(
        self,
        source: Union[Document, str],
        fmt: str,
        output_dir: Path,
        title: Optional[str] = None,
        source_path: Optional[Path] = None,
    ) -> Path:
        """Export to ``{title}.{ext}`` inside ``output_dir``.

        A file is never written over ``source_path``.

        Returns:
            Path of the written file
        """
        handler = self.export_handler(fmt)
        document = self._coerce(source)
        title = title or document.title or self.settings.default_title
        content = self.export(document, fmt, title)

        extension = handler.supported_extensions[0]
        output = output_dir / f"{safe_filename(title, self.settings.default_title)}{extension}"
        if source_path is not None and output.resolve() == source_path.resolve():
            output = output.with_name(f"{output.stem}-export{extension}")

        try:
            output_dir.mkdir(parents=True, exist_ok=True)
            if isinstance(content, bytes):
                output.write_bytes(content)
            else:
                output.write_text(content, encoding="utf-8")
        except OSError as exc:
            logger.error("Could not write %s: %s", output, exc)
            raise ExportError("write", exc) from exc
        return output

    def _coerce(self, source: Union[Document, str]) -> Document:
        if isinstance(source, Document):
            if source.is_empty:
                raise EmptyContentError("There is no content to export")
            return source
        if not has_content(source):
            raise EmptyContentError("There is no content to export")
        return self.from_markup(source)

    # -------------------------------------------------------------------------
    # Batch
    # -------------------------------------------------------------------------

    def convert_file(
        self,
        path: Path,
        fmt: str,
        output_dir: Optional[Path] = None,
        title: Optional[str] = None,
    ) -> Path:
        """Convert one file; the title defaults to the file's stem."""
        document = self.load(path)
        return self.export_file(
            document,
            fmt,
            output_dir or path.parent,
            title=title or path.stem,
            source_path=path,
        )

    def convert_many(
        self,
        paths: Iterable[Path],
        fmt: str,
        output_dir: Optional[Path] = None,
        max_workers: Optional[int] = None,
        on_complete: Optional[Callable[[BatchResult], None]] = None,
    ) -> list[BatchResult]:
        """Convert many files concurrently, one document per task.

        Failures are recorded on the corresponding BatchResult instead of
        aborting the batch. Results come back in input order.
        """
        paths = list(paths)
        # Fail fast on a bad format before spawning work
        self.export_handler(fmt)
        workers = max_workers or self.settings.max_workers
        results: dict[Path, BatchResult] = {}

        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = {
                executor.submit(self.convert_file, path, fmt, output_dir): path
                for path in paths
            }
            for future in as_completed(futures):
                path = futures[future]
                try:
                    result = BatchResult(source=path, output=future.result())
                except ConversionError as exc:
                    logger.warning("Failed to convert %s: %s", path, exc)
                    result = BatchResult(source=path, error=str(exc))
                except Exception as exc:
                    logger.exception("Unexpected error converting %s", path)
                    result = BatchResult(source=path, error=str(exc))
                results[path] = result
                if on_complete is not None:
                    on_complete(result)

        return [results[path] for path in paths]
