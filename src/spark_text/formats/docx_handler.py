"""Microsoft Word (.docx) file handler."""

import logging
import re
import zipfile
from io import BytesIO
from pathlib import Path
from typing import Optional

from docx import Document as open_docx
from docx.enum.section import WD_ORIENT
from docx.enum.table import WD_TABLE_ALIGNMENT
from docx.enum.text import WD_ALIGN_PARAGRAPH, WD_COLOR_INDEX
from docx.image.exceptions import UnrecognizedImageError
from docx.opc.exceptions import PackageNotFoundError
from docx.opc.constants import RELATIONSHIP_TYPE as RT
from docx.oxml import OxmlElement
from docx.oxml.ns import qn
from docx.shared import Emu, Inches, Pt, RGBColor, Twips
from docx.table import Table as DocxTable
from docx.text.hyperlink import Hyperlink
from docx.text.paragraph import Paragraph as DocxParagraph

from spark_text.errors import ConversionError, ExportError
from spark_text.formats.base import FormatHandler
from spark_text.formatting.ir import (
    BOLD,
    ITALIC,
    STRIKE,
    SUBSCRIPT,
    SUPERSCRIPT,
    UNDERLINE,
    Blockquote,
    Document,
    Heading,
    ListItem,
    Paragraph,
    Table,
    TableCell,
    TableRow,
    Text,
    add_mark,
    highlight,
    link,
    merge_text_runs,
    normalize,
    text_color,
)
from spark_text.formatting.markup import COLOR_CLASS_HIGHLIGHTS
from spark_text.formatting.word import (
    WordDocument,
    WordDocumentBuilder,
    WordImage,
    WordParagraph,
    WordRun,
    WordTable,
)
from spark_text.options import WordOptions

logger = logging.getLogger(__name__)

HEADER_CELL_SHADING = RGBColor(242, 242, 242)
MAX_IMAGE_WIDTH = Inches(6)

ALIGNMENTS = {
    "left": WD_ALIGN_PARAGRAPH.LEFT,
    "center": WD_ALIGN_PARAGRAPH.CENTER,
    "right": WD_ALIGN_PARAGRAPH.RIGHT,
    "justify": WD_ALIGN_PARAGRAPH.JUSTIFY,
}
HIGHLIGHT_COLORS = {
    "yellow": WD_COLOR_INDEX.YELLOW,
    "green": WD_COLOR_INDEX.BRIGHT_GREEN,
    "turquoise": WD_COLOR_INDEX.TURQUOISE,
    "pink": WD_COLOR_INDEX.PINK,
}

# Pure run colors written by Word import tools, read back as highlights
RUN_COLOR_HIGHLIGHTS = {
    "FF0000": COLOR_CLASS_HIGHLIGHTS["text-red"],
    "0000FF": COLOR_CLASS_HIGHLIGHTS["text-blue"],
    "00FF00": COLOR_CLASS_HIGHLIGHTS["text-green"],
    "008000": COLOR_CLASS_HIGHLIGHTS["text-green"],
}

HEADING_STYLE_PATTERN = re.compile(r"^Heading\s+(\d+)$", re.IGNORECASE)
LIST_STYLE_PATTERN = re.compile(r"^List( Paragraph| Bullet| Number)", re.IGNORECASE)
QUOTE_STYLES = ("Quote", "Intense Quote")


class DOCXHandler(FormatHandler):
    """Handler for Microsoft Word (.docx) files.

    Writing lowers the document through ``WordDocumentBuilder`` and
    packages the result with python-docx. Reading maps paragraph styles
    and run formatting back onto the document model.
    """

    def __init__(self, options: Optional[WordOptions] = None) -> None:
        self.options = options or WordOptions()

    @property
    def supported_extensions(self) -> tuple[str, ...]:
        return (".docx",)

    # -------------------------------------------------------------------------
    # Reading
    # -------------------------------------------------------------------------

    def read(self, path: Path) -> Document:
        """Import a DOCX file.

        Raises:
            ConversionError: If the file is not a Word package, or the
                package is missing required parts
        """
        try:
            doc = open_docx(str(path))
        except (PackageNotFoundError, zipfile.BadZipFile, KeyError, ValueError) as exc:
            raise ConversionError(f"Not a valid DOCX file: {path.name}") from exc
        blocks: list = []

        for child in doc.element.body.iterchildren():
            if child.tag == qn("w:p"):
                block = self._read_paragraph(DocxParagraph(child, doc))
                if block is not None:
                    blocks.append(block)
            elif child.tag == qn("w:tbl"):
                table = self._read_table(DocxTable(child, doc))
                if table is not None:
                    blocks.append(table)

        title = doc.core_properties.title or None
        return normalize(Document(children=blocks, title=title))

    def _read_paragraph(self, para: DocxParagraph):
        inlines = self._read_runs(para)
        if not any(isinstance(i, Text) and i.value.strip() for i in inlines):
            return None

        style = para.style.name if para.style is not None else ""
        heading = HEADING_STYLE_PATTERN.match(style)
        if heading:
            return Heading(level=int(heading.group(1)), children=inlines)
        if style == "Title":
            return Heading(level=1, children=inlines)
        if style == "Subtitle":
            return Heading(level=2, children=inlines)
        if style in QUOTE_STYLES:
            return Blockquote(children=(Paragraph(inlines),))
        if LIST_STYLE_PATTERN.match(style):
            return ListItem(children=(Paragraph(inlines),))
        return Paragraph(inlines)

    def _read_runs(self, para: DocxParagraph) -> tuple:
        inlines: list = []
        for item in para.iter_inner_content():
            if isinstance(item, Hyperlink):
                href = item.address
                for run in item.runs:
                    marks = self._run_marks(run, in_link=True)
                    if href:
                        marks = add_mark(marks, link(href))
                    inlines.append(Text(run.text, marks))
            else:
                inlines.append(Text(item.text, self._run_marks(item)))
        return merge_text_runs(inlines)

    def _run_marks(self, run, in_link: bool = False) -> frozenset:
        marks: frozenset = frozenset()
        font = run.font
        for flag, mark in (
            (run.bold, BOLD),
            (run.italic, ITALIC),
            (run.underline, UNDERLINE),
            (font.strike, STRIKE),
            (font.subscript, SUBSCRIPT),
            (font.superscript, SUPERSCRIPT),
        ):
            if flag:
                marks = add_mark(marks, mark)

        rgb = font.color.rgb if font.color is not None and font.color.type is not None else None
        if rgb is not None and not in_link:
            hex_color = str(rgb).upper()
            if hex_color in RUN_COLOR_HIGHLIGHTS:
                marks = add_mark(marks, highlight(RUN_COLOR_HIGHLIGHTS[hex_color]))
            elif hex_color != "000000":
                marks = add_mark(marks, text_color(f"#{hex_color.lower()}"))
        if font.highlight_color is not None:
            marks = add_mark(marks, highlight())
        return marks

    def _read_table(self, table: DocxTable) -> Optional[Table]:
        rows = []
        for row in table.rows:
            cells = []
            seen = set()
            for cell in row.cells:
                # Merged cells repeat across the grid
                if id(cell._tc) in seen:
                    continue
                seen.add(id(cell._tc))
                paragraphs = [
                    block for block in (self._read_paragraph(p) for p in cell.paragraphs)
                    if block is not None
                ]
                span = int(cell._tc.grid_span or 1)
                cells.append(TableCell(children=paragraphs, colspan=span))
            if cells:
                rows.append(TableRow(cells=cells))
        if not rows:
            return None
        return Table(rows=rows)

    # -------------------------------------------------------------------------
    # Writing
    # -------------------------------------------------------------------------

    def render(self, document: Document, title: Optional[str] = None) -> bytes:
        """Build and package a document as .docx bytes."""
        word = WordDocumentBuilder(self.options).build(document, title or document.title or "")
        return self.package(word)

    def package(self, word: WordDocument) -> bytes:
        """Serialize a WordDocument to .docx bytes.

        Raises:
            ExportError: If python-docx fails to produce the package
        """
        try:
            doc = self._build_docx(word)
            buffer = BytesIO()
            doc.save(buffer)
        except Exception as exc:
            logger.error("Failed to package Word document %r: %s", word.title, exc)
            raise ExportError("docx", exc) from exc
        return buffer.getvalue()

    def _build_docx(self, word: WordDocument):
        doc = open_docx()

        # Set default font
        style = doc.styles["Normal"]
        style.font.name = "Calibri"
        style.font.size = Pt(11)

        properties = doc.core_properties
        properties.title = word.title
        properties.author = word.creator
        properties.comments = word.description

        section = doc.sections[0]
        section.orientation = WD_ORIENT.PORTRAIT
        section.page_width = Twips(word.page.width)
        section.page_height = Twips(word.page.height)
        section.top_margin = Twips(word.page.margin_top)
        section.right_margin = Twips(word.page.margin_right)
        section.bottom_margin = Twips(word.page.margin_bottom)
        section.left_margin = Twips(word.page.margin_left)
        section.header_distance = Twips(word.page.header_distance)
        section.footer_distance = Twips(word.page.footer_distance)

        self._fill_story(section.header, word.header)
        self._fill_story(section.footer, word.footer)

        for element in word.elements:
            if isinstance(element, WordParagraph):
                self._add_paragraph(doc.add_paragraph(), element)
            elif isinstance(element, WordTable):
                self._add_table(doc, element)
            elif isinstance(element, WordImage):
                self._add_image(doc, element)
        return doc

    def _fill_story(self, story, paragraphs: list[WordParagraph]) -> None:
        """Fill a header or footer, reusing its initial empty paragraph."""
        for index, element in enumerate(paragraphs):
            para = story.paragraphs[0] if index == 0 and story.paragraphs else story.add_paragraph()
            self._add_paragraph(para, element)

    def _add_paragraph(self, para: DocxParagraph, element: WordParagraph) -> None:
        if element.style:
            para.style = element.style
        para.alignment = ALIGNMENTS.get(element.alignment, WD_ALIGN_PARAGRAPH.LEFT)
        fmt = para.paragraph_format
        if element.indent_left:
            fmt.left_indent = Twips(element.indent_left)
        fmt.space_before = Twips(element.spacing_before)
        fmt.space_after = Twips(element.spacing_after)

        for run in element.runs:
            if run.field_code:
                self._add_field(para, run)
            elif run.href:
                self._add_hyperlink(para, run)
            else:
                self._add_run(para, run)

    def _add_run(self, para: DocxParagraph, data: WordRun) -> None:
        run = para.add_run(data.text)
        run.bold = data.bold or None
        run.italic = data.italic or None
        run.underline = data.underline or None
        font = run.font
        if data.strike:
            font.strike = True
        if data.subscript:
            font.subscript = True
        if data.superscript:
            font.superscript = True
        if data.font:
            font.name = data.font
        if data.size:
            font.size = Pt(data.size / 2)
        if data.color:
            font.color.rgb = RGBColor.from_string(data.color)
        if data.highlight:
            font.highlight_color = HIGHLIGHT_COLORS.get(data.highlight, WD_COLOR_INDEX.YELLOW)

    def _run_properties(self, data: WordRun):
        """Build a raw ``w:rPr`` element for runs python-docx cannot create."""
        rPr = OxmlElement("w:rPr")
        if data.bold:
            rPr.append(OxmlElement("w:b"))
        if data.italic:
            rPr.append(OxmlElement("w:i"))
        if data.color:
            color = OxmlElement("w:color")
            color.set(qn("w:val"), data.color)
            rPr.append(color)
        if data.size:
            size = OxmlElement("w:sz")
            size.set(qn("w:val"), str(data.size))
            rPr.append(size)
        if data.underline:
            underline = OxmlElement("w:u")
            underline.set(qn("w:val"), "single")
            rPr.append(underline)
        return rPr

    def _add_hyperlink(self, para: DocxParagraph, data: WordRun) -> None:
        """Add an external hyperlink run."""
        r_id = para.part.relate_to(data.href, RT.HYPERLINK, is_external=True)
        hyperlink = OxmlElement("w:hyperlink")
        hyperlink.set(qn("r:id"), r_id)

        run = OxmlElement("w:r")
        run.append(self._run_properties(data))
        text = OxmlElement("w:t")
        text.set(qn("xml:space"), "preserve")
        text.text = data.text
        run.append(text)
        hyperlink.append(run)
        para._p.append(hyperlink)

    def _add_field(self, para: DocxParagraph, data: WordRun) -> None:
        """Add a simple field such as the page number."""
        fld = OxmlElement("w:fldSimple")
        fld.set(qn("w:instr"), data.field_code)
        run = OxmlElement("w:r")
        run.append(self._run_properties(data))
        text = OxmlElement("w:t")
        text.text = data.text
        run.append(text)
        fld.append(run)
        para._p.append(fld)

    def _add_table(self, doc, element: WordTable) -> None:
        columns = element.column_count
        if not columns:
            return
        table = doc.add_table(rows=len(element.rows), cols=columns)
        table.style = "Table Grid"
        table.alignment = WD_TABLE_ALIGNMENT.CENTER
        self._set_table_width(table, element.width_percent)

        for row_index, row in enumerate(element.rows):
            column = 0
            for data in row:
                cell = table.cell(row_index, column)
                if data.colspan > 1:
                    cell = cell.merge(table.cell(row_index, column + data.colspan - 1))
                for index, paragraph in enumerate(data.paragraphs):
                    target = cell.paragraphs[0] if index == 0 else cell.add_paragraph()
                    self._add_paragraph(target, paragraph)
                self._set_cell_width(cell, data.width_percent)
                if data.is_header:
                    self._set_cell_shading(cell, HEADER_CELL_SHADING)
                column += data.colspan

        # Spacing after
        doc.add_paragraph()

    def _add_image(self, doc, element: WordImage) -> None:
        para = doc.add_paragraph()
        para.alignment = WD_ALIGN_PARAGRAPH.CENTER
        try:
            shape = para.add_run().add_picture(BytesIO(element.data))
        except (UnrecognizedImageError, ValueError, OSError) as exc:
            logger.warning("Could not embed image %r: %s", element.alt, exc)
            placeholder = WordDocumentBuilder(self.options).placeholder(element.alt)
            self._add_paragraph(para, placeholder)
            return
        if shape.width > MAX_IMAGE_WIDTH:
            ratio = MAX_IMAGE_WIDTH / shape.width
            shape.height = Emu(int(shape.height * ratio))
            shape.width = MAX_IMAGE_WIDTH

    def _set_cell_shading(self, cell, color: RGBColor) -> None:
        """Set background color for a table cell."""
        shading_elm = OxmlElement("w:shd")
        shading_elm.set(qn("w:val"), "clear")
        shading_elm.set(qn("w:fill"), f"{color[0]:02X}{color[1]:02X}{color[2]:02X}")
        cell._tc.get_or_add_tcPr().append(shading_elm)

    def _set_cell_width(self, cell, percent: float) -> None:
        """Set a cell's preferred width as a percentage of the table."""
        tcPr = cell._tc.get_or_add_tcPr()
        for existing in tcPr.findall(qn("w:tcW")):
            tcPr.remove(existing)
        width = OxmlElement("w:tcW")
        # Percent widths are expressed in fiftieths of a percent
        width.set(qn("w:w"), str(int(round(percent * 50))))
        width.set(qn("w:type"), "pct")
        tcPr.insert(0, width)

    def _set_table_width(self, table, percent: float) -> None:
        tblPr = table._tbl.tblPr
        for existing in tblPr.findall(qn("w:tblW")):
            tblPr.remove(existing)
        width = OxmlElement("w:tblW")
        width.set(qn("w:w"), str(int(round(percent * 50))))
        width.set(qn("w:type"), "pct")
        tblPr.append(width)
