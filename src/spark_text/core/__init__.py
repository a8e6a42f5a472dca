"""Core conversion logic for Spark Text."""

from spark_text.core.models import Document
from spark_text.core.converter import BatchResult, DocumentConverter

__all__ = [
    "BatchResult",
    "Document",
    "DocumentConverter",
]
