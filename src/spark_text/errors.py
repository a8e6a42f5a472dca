"""Exceptions raised by the conversion pipeline.

Importers and renderers never raise: malformed input degrades to the
nearest sensible structure. These exceptions only surface at the file
and orchestration boundary.
"""

from typing import Optional


class ConversionError(Exception):
    """Base class for conversion failures."""

    pass


class EmptyContentError(ConversionError):
    """Raised when there is nothing to export."""

    pass


class NoExtractableContentError(ConversionError):
    """Raised when a damaged file yields no usable text."""

    def __init__(self, message: str, result: Optional[object] = None):
        super().__init__(message)
        self.result = result


class ExportError(ConversionError):
    """Raised when packaging or writing an output file fails."""

    def __init__(self, operation: str, cause: Optional[BaseException] = None):
        message = f"Export failed ({operation})"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)
        self.operation = operation
        self.cause = cause


class UnsupportedFormatError(ConversionError, ValueError):
    """Raised for file extensions or export formats with no handler."""

    pass


class InputTooLargeError(ConversionError):
    """Raised when an input file exceeds the configured size limit."""

    pass
