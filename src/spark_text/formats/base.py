"""Abstract base class for document format handlers."""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Union

from spark_text.errors import UnsupportedFormatError
from spark_text.formatting.ir import Document


class FormatHandler(ABC):
    """Abstract base class for document format handlers.

    Each handler reads its format into a Document and renders a Document
    back out. Read-only formats override ``can_write``.
    """

    @property
    @abstractmethod
    def supported_extensions(self) -> tuple[str, ...]:
        """Return tuple of supported file extensions (e.g., ('.md',))."""
        ...

    @property
    def can_write(self) -> bool:
        return True

    @abstractmethod
    def read(self, path: Path) -> Document:
        """Import a document file.

        Args:
            path: Path to the input document

        Returns:
            The imported Document
        """
        ...

    @abstractmethod
    def render(self, document: Document, title: Optional[str] = None) -> Union[str, bytes]:
        """Render a document to this format.

        Args:
            document: The Document to export
            title: Document title, where the format has a place for one

        Returns:
            Text for text formats, bytes for binary formats
        """
        ...

    def write(self, document: Document, path: Path, title: Optional[str] = None) -> None:
        """Write document to file.

        Args:
            document: The Document to export
            path: Path to write the output document
            title: Document title
        """
        if not self.can_write:
            raise UnsupportedFormatError(
                f"Writing {', '.join(self.supported_extensions)} files is not supported"
            )
        content = self.render(document, title)
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(content, encoding="utf-8")

    def read_text(self, path: Path) -> str:
        """Read a text file, tolerating stray bytes."""
        return path.read_bytes().decode("utf-8-sig", errors="replace")
