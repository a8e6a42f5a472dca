"""Pytest fixtures for Spark Text tests."""

import pytest
from pathlib import Path

from spark_text.config import Settings
from spark_text.formatting.ir import (
    BOLD,
    ITALIC,
    BulletList,
    Document,
    Heading,
    ListItem,
    OrderedList,
    Paragraph,
    Table,
    TableCell,
    TableRow,
    Text,
    link,
)


@pytest.fixture
def sample_markup() -> str:
    """Editor markup covering the common block types."""
    return (
        "<h2>Resumen</h2>"
        "<p>Texto con <strong>negrita</strong> y <em>cursiva</em>.</p>"
        "<ul><li><p>Uno</p></li><li><p>Dos</p></li></ul>"
        '<p>Visita <a href="https://example.com">el sitio</a></p>'
    )


@pytest.fixture
def sample_document() -> Document:
    """A small document built directly from model nodes."""
    return Document(children=(
        Heading(level=1, children=(Text("Informe"),)),
        Paragraph((
            Text("Hola "),
            Text("mundo", frozenset({BOLD})),
            Text(" y "),
            Text("enlace", frozenset({link("https://example.com")})),
        )),
        BulletList(items=(
            ListItem(children=(Paragraph((Text("Uno"),)),)),
            ListItem(children=(Paragraph((Text("Dos", frozenset({ITALIC})),)),)),
        )),
        OrderedList(items=(
            ListItem(children=(Paragraph((Text("Primero"),)),)),
        ), start=3),
    ))


@pytest.fixture
def simple_table() -> Table:
    """A 2x2 table with a header row."""
    return Table(rows=(
        TableRow(cells=(
            TableCell(children=(Paragraph((Text("A"),)),), is_header=True),
            TableCell(children=(Paragraph((Text("B"),)),), is_header=True),
        )),
        TableRow(cells=(
            TableCell(children=(Paragraph((Text("1"),)),)),
            TableCell(children=(Paragraph((Text("2"),)),)),
        )),
    ))


@pytest.fixture
def settings() -> Settings:
    """Settings independent of the environment and any .env file."""
    return Settings(_env_file=None, SPARK_TEXT_LOCALE="es", SPARK_TEXT_MAX_WORKERS=2)


@pytest.fixture
def tmp_markup_file(tmp_path: Path, sample_markup: str) -> Path:
    """Create a temporary HTML file holding editor markup."""
    file_path = tmp_path / "notas.html"
    file_path.write_text(sample_markup, encoding="utf-8")
    return file_path


@pytest.fixture
def raw_pdf_bytes() -> bytes:
    """A minimal PDF with text in an uncompressed content stream."""
    return (
        b"%PDF-1.4\n"
        b"1 0 obj\n<< /Length 120 >>\nstream\n"
        b"BT /F1 12 Tf 72 712 Td (INTRODUCCION) Tj ET\n"
        b"BT /F1 12 Tf 72 690 Td (Este documento explica el proceso completo.) Tj ET\n"
        b"endstream\nendobj\n"
        b"trailer\n<< /Root 1 0 R >>\n%%EOF\n"
    )
