"""Tests for the DOCX, HTML and PDF format handlers."""

import zipfile
import pytest
from pathlib import Path
from io import BytesIO

from docx import Document as open_docx
from docx.oxml.ns import qn
from docx.shared import RGBColor, Twips

from spark_text.errors import (
    ConversionError,
    InputTooLargeError,
    NoExtractableContentError,
    UnsupportedFormatError,
)
from spark_text.formats import EXPORT_FORMATS, HANDLER_MAP, get_handler
from spark_text.formats.docx_handler import DOCXHandler
from spark_text.formats.html_handler import HTMLHandler
from spark_text.formats.pdf_handler import PDFHandler
from spark_text.formatting.ir import (
    BulletList,
    Document,
    Heading,
    MarkType,
    Paragraph,
    Table,
    Text,
)
from spark_text.options import HTMLOptions, SalvageOptions


class TestDOCXHandlerWrite:
    """Tests for DOCX packaging."""

    @pytest.fixture
    def handler(self):
        return DOCXHandler()

    def open_rendered(self, handler: DOCXHandler, document: Document, title: str):
        return open_docx(BytesIO(handler.render(document, title)))

    def test_title_paragraph(self, handler: DOCXHandler, sample_document: Document):
        """Test the leading Title paragraph."""
        word = self.open_rendered(handler, sample_document, "Reporte")

        assert word.paragraphs[0].text == "Reporte"
        assert word.paragraphs[0].style.name == "Title"
        assert word.core_properties.title == "Reporte"

    def test_header_and_page_field(self, handler: DOCXHandler):
        """Test header text and the PAGE field in the footer."""
        word = self.open_rendered(handler, Document(), "Reporte")
        section = word.sections[0]

        assert section.header.paragraphs[0].text == "Reporte"
        fields = section.footer._element.findall(".//" + qn("w:fldSimple"))
        assert len(fields) == 1
        assert fields[0].get(qn("w:instr")) == "PAGE"

    def test_page_geometry(self, handler: DOCXHandler):
        """Test A4 page size and margins."""
        section = self.open_rendered(handler, Document(), "T").sections[0]

        assert section.page_width == Twips(11906)
        assert section.page_height == Twips(16838)
        assert section.left_margin == Twips(1134)

    def test_hyperlink(self, handler: DOCXHandler, sample_document: Document):
        """Test that links become external hyperlinks."""
        word = self.open_rendered(handler, sample_document, "T")

        hyperlinks = [h for p in word.paragraphs for h in p.hyperlinks]
        assert len(hyperlinks) == 1
        assert hyperlinks[0].address == "https://example.com"
        assert hyperlinks[0].text == "enlace"

    def test_table_header_shading(self, handler: DOCXHandler, simple_table: Table):
        """Test that header cells are shaded."""
        word = self.open_rendered(handler, Document(children=(simple_table,)), "T")
        table = word.tables[0]

        header_shading = table.cell(0, 0)._tc.findall(".//" + qn("w:shd"))
        body_shading = table.cell(1, 0)._tc.findall(".//" + qn("w:shd"))
        assert header_shading[0].get(qn("w:fill")) == "F2F2F2"
        assert body_shading == []
        assert table.cell(1, 1).text == "2"

    def test_write_file(self, handler: DOCXHandler, tmp_path: Path, sample_document: Document):
        """Test writing a .docx file to disk."""
        output = tmp_path / "out.docx"
        handler.write(sample_document, output, "Reporte")

        assert output.exists()
        assert open_docx(str(output)).paragraphs[0].text == "Reporte"


class TestDOCXHandlerRead:
    """Tests for DOCX import."""

    @pytest.fixture
    def handler(self):
        return DOCXHandler()

    def test_read_structure(self, handler: DOCXHandler, tmp_path: Path):
        """Test headings, list paragraphs and body text."""
        word = open_docx()
        word.add_heading("Capítulo", level=2)
        word.add_paragraph("uno", style="List Bullet")
        word.add_paragraph("dos", style="List Bullet")
        word.add_paragraph("Cuerpo del texto")
        path = tmp_path / "in.docx"
        word.save(str(path))

        document = handler.read(path)

        assert document.children[0] == Heading(level=2, children=(Text("Capítulo"),))
        assert isinstance(document.children[1], BulletList)
        assert len(document.children[1].items) == 2
        assert document.children[2] == Paragraph((Text("Cuerpo del texto"),))

    def test_read_run_formatting(self, handler: DOCXHandler, tmp_path: Path):
        """Test bold runs and pure red text read back as a highlight."""
        word = open_docx()
        para = word.add_paragraph()
        para.add_run("fuerte").bold = True
        red = para.add_run("rojo")
        red.font.color.rgb = RGBColor(0xFF, 0x00, 0x00)
        path = tmp_path / "in.docx"
        word.save(str(path))

        runs = handler.read(path).children[0].children

        assert runs[0].has(MarkType.BOLD)
        assert runs[1].get(MarkType.HIGHLIGHT).color == "#ffebee"
        assert not runs[1].has(MarkType.TEXT_COLOR)

    def test_empty_paragraphs_skipped(self, handler: DOCXHandler, tmp_path: Path):
        """Test that blank paragraphs are not imported."""
        word = open_docx()
        word.add_paragraph("")
        word.add_paragraph("texto")
        path = tmp_path / "in.docx"
        word.save(str(path))

        assert handler.read(path).children == (Paragraph((Text("texto"),)),)

    def test_rendered_title_reads_as_heading(
        self, handler: DOCXHandler, tmp_path: Path, sample_document: Document
    ):
        """Test that the Title paragraph comes back as a level-1 heading."""
        path = tmp_path / "out.docx"
        handler.write(sample_document, path, "Reporte")

        document = handler.read(path)

        assert document.children[0] == Heading(level=1, children=(Text("Reporte"),))
        assert document.title == "Reporte"

    def test_invalid_file(self, handler: DOCXHandler, tmp_path: Path):
        """Test that a non-zip file raises ConversionError."""
        path = tmp_path / "broken.docx"
        path.write_bytes(b"not a word document")

        with pytest.raises(ConversionError, match="broken.docx"):
            handler.read(path)

    def test_zip_without_word_parts(self, handler: DOCXHandler, tmp_path: Path):
        """Test that a zip missing the package manifest raises ConversionError."""
        path = tmp_path / "hueco.docx"
        with zipfile.ZipFile(path, "w") as archive:
            archive.writestr("word/document.xml", "<w:document/>")

        with pytest.raises(ConversionError, match="hueco.docx"):
            handler.read(path)


class TestHTMLHandler:
    """Tests for the standalone HTML page."""

    def test_page_shell(self, sample_document: Document):
        """Test doctype, title, main body and footer."""
        page = HTMLHandler().render(sample_document, "Reporte")

        assert page.startswith("<!DOCTYPE html>\n")
        assert '<html lang="es">' in page
        assert "<title>Reporte</title>" in page
        assert "<main><h1>Informe</h1>" in page
        assert "<p>Documento creado con Text Code Spark</p>" in page
        assert "<style>" in page

    def test_title_escaped(self):
        """Test that the title is escaped."""
        page = HTMLHandler().render(Document(), "a < b")
        assert "<title>a &lt; b</title>" in page

    def test_without_styles_english(self):
        """Test options for locale and stylesheet."""
        options = HTMLOptions(locale="en", app_name="Notes", include_styles=False)
        page = HTMLHandler(options).render(Document(), "T")

        assert "<style>" not in page
        assert "<p>Document created with Notes</p>" in page

    def test_read_main_only(self, tmp_path: Path):
        """Test that a written page is read back from its main element."""
        path = tmp_path / "page.html"
        path.write_text(
            "<html><body><header><h1>Cabecera</h1></header>"
            "<main><p>Cuerpo</p></main><footer><p>Pie</p></footer></body></html>",
            encoding="utf-8",
        )

        document = HTMLHandler().read(path)

        assert document.children == (Paragraph((Text("Cuerpo"),)),)

    def test_read_fragment(self, tmp_markup_file: Path):
        """Test reading bare editor markup."""
        document = HTMLHandler().read(tmp_markup_file)
        assert document.children[0] == Heading(level=2, children=(Text("Resumen"),))


class TestPDFHandler:
    """Tests for the read-only PDF handler."""

    def test_cannot_write(self, sample_document: Document, tmp_path: Path):
        """Test that PDF output is refused."""
        handler = PDFHandler()

        assert not handler.can_write
        with pytest.raises(UnsupportedFormatError):
            handler.render(sample_document)
        with pytest.raises(UnsupportedFormatError):
            handler.write(sample_document, tmp_path / "out.pdf")

    def test_size_limit(self, tmp_path: Path, raw_pdf_bytes: bytes):
        """Test that oversized files are rejected before parsing."""
        path = tmp_path / "big.pdf"
        path.write_bytes(raw_pdf_bytes)

        with pytest.raises(InputTooLargeError):
            PDFHandler(SalvageOptions(max_input_bytes=10)).read(path)

    def test_uses_extracted_text(self, tmp_path: Path, raw_pdf_bytes: bytes, monkeypatch):
        """Test structuring of text from the text layer."""
        path = tmp_path / "doc.pdf"
        path.write_bytes(raw_pdf_bytes)
        handler = PDFHandler()
        monkeypatch.setattr(
            handler,
            "_extract_with_pdfplumber",
            lambda p: "RESUMEN\nEl informe cubre el primer trimestre.",
        )

        document = handler.read(path)

        assert document.children[0] == Heading(level=2, children=(Text("RESUMEN"),))

    def test_raw_fallback(self, tmp_path: Path, raw_pdf_bytes: bytes, monkeypatch):
        """Test the raw content scan when there is no text layer."""
        path = tmp_path / "doc.pdf"
        path.write_bytes(raw_pdf_bytes)
        handler = PDFHandler()
        monkeypatch.setattr(handler, "_extract_with_pdfplumber", lambda p: "")

        result = handler.salvage(path)

        assert result.ok
        assert "Este documento explica el proceso completo." in result.document.plain_text

    def test_no_extractable_content(self, tmp_path: Path, monkeypatch):
        """Test the error raised when nothing can be recovered."""
        path = tmp_path / "empty.pdf"
        path.write_bytes(b"%PDF-1.4\n%%EOF\n")
        handler = PDFHandler()
        monkeypatch.setattr(handler, "_extract_with_pdfplumber", lambda p: "")

        with pytest.raises(NoExtractableContentError) as exc_info:
            handler.read(path)

        assert not exc_info.value.result.ok


class TestHandlerRegistry:
    """Tests for extension lookup."""

    @pytest.mark.parametrize("ext,handler_class", [
        (".html", HTMLHandler),
        ("htm", HTMLHandler),
        (".DOCX", DOCXHandler),
        (".pdf", PDFHandler),
    ])
    def test_get_handler(self, ext: str, handler_class):
        """Test lookup with or without the dot and in any case."""
        assert get_handler(ext) is handler_class

    def test_unknown_extension(self):
        """Test that unknown extensions raise."""
        with pytest.raises(UnsupportedFormatError, match=".xyz"):
            get_handler(".xyz")

    def test_export_formats_have_handlers(self):
        """Test that every export format maps to a writable handler."""
        for extension in EXPORT_FORMATS.values():
            assert HANDLER_MAP[extension]().can_write
