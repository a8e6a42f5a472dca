"""Word document model and builder.

The builder lowers a Document into a flat ``WordDocument``: paragraphs of
styled runs, tables and images, plus header/footer content and page
geometry. Packaging into a .docx file is done separately by
``spark_text.formats.docx_handler``.
"""

import base64
import binascii
import logging
import re
from dataclasses import dataclass, field
from typing import Optional

from spark_text.formatting.ir import (
    LIST_TYPES,
    Blockquote,
    Canvas,
    CodeBlock,
    Details,
    Document,
    Emoji,
    HardBreak,
    Heading,
    HorizontalRule,
    Image,
    MarkType,
    MathBlock,
    MathInline,
    MentionRef,
    OrderedList,
    Paragraph,
    Table,
    TaskList,
    Text,
    VideoEmbed,
    group_list_items,
)
from spark_text.formatting.labels import get_labels
from spark_text.options import PageGeometry, WordOptions

logger = logging.getLogger(__name__)

# Spacing and indentation in twips
TITLE_SPACING_AFTER = 400
HEADING_SPACING_BEFORE = 240
HEADING_SPACING_AFTER = 120
PARAGRAPH_SPACING_AFTER = 120
LIST_INDENT = 360
LIST_SPACING_AFTER = 60
QUOTE_INDENT = 720
QUOTE_SPACING = 120
RULE_SPACING = 240

CODE_FONT = "Courier New"
LINK_COLOR = "0000FF"
HIGHLIGHT_COLOR = "yellow"
HEADER_SIZE = 20
HEADER_COLOR = "666666"
FOOTER_SIZE = 18
FOOTER_COLOR = "999999"
HORIZONTAL_RULE_TEXT = "─" * 50

DATA_URI_PATTERN = re.compile(r"^data:image/([\w.+-]+);base64,(.*)$", re.DOTALL)
EMBEDDABLE_IMAGE_FORMATS = {
    "png": "png",
    "jpeg": "jpg",
    "jpg": "jpg",
    "gif": "gif",
    "bmp": "bmp",
    "tiff": "tiff",
}
HEX_COLOR_PATTERN = re.compile(r"^#?([0-9a-fA-F]{6}|[0-9a-fA-F]{3})$")


@dataclass
class WordRun:
    """A run of text with character formatting.

    ``size`` is in half-points, colors are ``RRGGBB`` hex strings and
    ``field_code`` names a field (e.g. ``PAGE``) rendered instead of text.
    """

    text: str = ""
    bold: bool = False
    italic: bool = False
    underline: bool = False
    strike: bool = False
    subscript: bool = False
    superscript: bool = False
    font: Optional[str] = None
    size: Optional[int] = None
    color: Optional[str] = None
    highlight: Optional[str] = None
    href: Optional[str] = None
    field_code: Optional[str] = None


@dataclass
class WordParagraph:
    runs: list[WordRun] = field(default_factory=list)
    style: Optional[str] = None
    alignment: str = "left"
    indent_left: int = 0
    spacing_before: int = 0
    spacing_after: int = 0

    @property
    def text(self) -> str:
        return "".join(run.text for run in self.runs)


@dataclass
class WordTableCell:
    paragraphs: list[WordParagraph] = field(default_factory=list)
    width_percent: float = 100.0
    is_header: bool = False
    colspan: int = 1


@dataclass
class WordTable:
    rows: list[list[WordTableCell]] = field(default_factory=list)
    width_percent: float = 100.0

    @property
    def column_count(self) -> int:
        return max((sum(c.colspan for c in row) for row in self.rows), default=0)


@dataclass
class WordImage:
    data: bytes
    format: str
    alt: str = ""


@dataclass
class WordDocument:
    """Complete Word document ready for packaging."""

    title: str
    elements: list = field(default_factory=list)
    header: list[WordParagraph] = field(default_factory=list)
    footer: list[WordParagraph] = field(default_factory=list)
    page: PageGeometry = field(default_factory=PageGeometry)
    creator: str = ""
    description: str = ""

    @property
    def paragraphs(self) -> list[WordParagraph]:
        return [e for e in self.elements if isinstance(e, WordParagraph)]


def _hex_color(color: Optional[str]) -> Optional[str]:
    """Normalize a CSS hex color to RRGGBB, or None if not a hex color."""
    match = HEX_COLOR_PATTERN.match((color or "").strip())
    if not match:
        return None
    value = match.group(1)
    if len(value) == 3:
        value = "".join(c * 2 for c in value)
    return value.upper()


class WordDocumentBuilder:
    """Build a WordDocument from a Document."""

    def __init__(self, options: Optional[WordOptions] = None) -> None:
        self.options = options or WordOptions()
        self.labels = get_labels(self.options.locale)
        self._handlers = {
            Paragraph: self._paragraph,
            Heading: self._heading,
            Blockquote: self._blockquote,
            CodeBlock: self._code_block,
            Table: self._table,
            HorizontalRule: self._horizontal_rule,
            Image: self._image,
            VideoEmbed: self._video,
            Canvas: self._canvas,
            Details: self._details,
            MathBlock: self._math_block,
        }

    def build(self, document: Document, title: str) -> WordDocument:
        """Lower a Document to a WordDocument.

        The title paragraph is always present. A document whose blocks
        produce nothing falls back to one paragraph per non-empty line of
        its plain text.
        """
        elements: list = [WordParagraph(
            runs=[WordRun(title)],
            style="Title",
            alignment="center",
            spacing_after=TITLE_SPACING_AFTER,
        )]
        if self.options.generated_on is not None:
            elements.append(WordParagraph(
                runs=[WordRun(
                    f"{self.labels.generated_on} {self.options.generated_on:%d/%m/%Y}",
                    italic=True,
                    color=FOOTER_COLOR,
                )],
                alignment="center",
                spacing_after=TITLE_SPACING_AFTER,
            ))

        body = self.blocks(document.children)
        if not body:
            body = [
                WordParagraph(runs=[WordRun(line.strip())], spacing_after=PARAGRAPH_SPACING_AFTER)
                for line in document.plain_text.split("\n")
                if line.strip()
            ]
        elements.extend(body)

        return WordDocument(
            title=title,
            elements=elements,
            header=[WordParagraph(
                runs=[WordRun(title, size=HEADER_SIZE, color=HEADER_COLOR)],
                alignment="right",
            )],
            footer=[WordParagraph(
                runs=[
                    WordRun(f"{self.labels.page} ", size=FOOTER_SIZE, color=FOOTER_COLOR),
                    WordRun("1", size=FOOTER_SIZE, color=FOOTER_COLOR, field_code="PAGE"),
                    WordRun(
                        f" - {self.labels.created_with} {self.options.app_name}",
                        size=FOOTER_SIZE,
                        color=FOOTER_COLOR,
                    ),
                ],
                alignment="center",
            )],
            page=self.options.page,
            creator=self.options.app_name,
            description=f"{self.labels.html_created_with} {self.options.app_name}",
        )

    def blocks(self, blocks) -> list:
        elements: list = []
        for block in group_list_items(blocks):
            if isinstance(block, LIST_TYPES):
                elements.extend(self._list(block))
            elif type(block) in self._handlers:
                elements.extend(self._handlers[type(block)](block))
        return elements

    # -------------------------------------------------------------------------
    # Blocks
    # -------------------------------------------------------------------------

    def _paragraph(self, block: Paragraph) -> list:
        if not block.children:
            return []
        return [WordParagraph(
            runs=self.runs(block.children),
            spacing_after=PARAGRAPH_SPACING_AFTER,
        )]

    def _heading(self, block: Heading) -> list:
        return [WordParagraph(
            runs=self.runs(block.children),
            style=f"Heading {block.level}",
            spacing_before=HEADING_SPACING_BEFORE,
            spacing_after=HEADING_SPACING_AFTER,
        )]

    def _blockquote(self, block: Blockquote) -> list:
        elements = self.blocks(block.children)
        for element in elements:
            if isinstance(element, WordParagraph):
                element.style = "Quote"
                element.indent_left = max(element.indent_left, QUOTE_INDENT)
                element.spacing_before = QUOTE_SPACING
                element.spacing_after = QUOTE_SPACING
        return elements

    def _list(self, block) -> list:
        """Flatten a list to prefixed paragraphs.

        Nested lists are collapsed to the same single indent level.
        """
        elements: list = []
        number = block.start if isinstance(block, OrderedList) else 1
        for item in block.items:
            if isinstance(block, TaskList):
                marker = "☑ " if item.checked else "☐ "
            elif isinstance(block, OrderedList):
                marker = f"{number}. "
                number += 1
            else:
                marker = "• "

            children = list(item.children)
            first_runs: list[WordRun] = []
            if children and isinstance(children[0], (Paragraph, Heading)):
                first_runs = self.runs(children.pop(0).children)
            elements.append(WordParagraph(
                runs=[WordRun(marker)] + first_runs,
                indent_left=LIST_INDENT,
                spacing_after=LIST_SPACING_AFTER,
            ))

            for element in self.blocks(children):
                if isinstance(element, WordParagraph):
                    element.indent_left = max(element.indent_left, LIST_INDENT)
                elements.append(element)
        return elements

    def _code_block(self, block: CodeBlock) -> list:
        return [WordParagraph(
            runs=[WordRun(block.code, font=CODE_FONT)],
            spacing_after=PARAGRAPH_SPACING_AFTER,
        )]

    def _table(self, block: Table) -> list:
        columns = block.column_count
        if not columns:
            return []

        rows: list[list[WordTableCell]] = []
        for row in block.rows:
            cells = []
            for cell in row.cells:
                paragraphs = [
                    e for e in self.blocks(cell.children) if isinstance(e, WordParagraph)
                ] or [WordParagraph()]
                if cell.is_header:
                    for paragraph in paragraphs:
                        for run in paragraph.runs:
                            run.bold = True
                colspan = max(1, cell.colspan)
                cells.append(WordTableCell(
                    paragraphs=paragraphs,
                    width_percent=100 / columns * colspan,
                    is_header=cell.is_header,
                    colspan=colspan,
                ))
            # Pad short rows so every row spans the full grid
            for _ in range(columns - row.span):
                cells.append(WordTableCell(
                    paragraphs=[WordParagraph()],
                    width_percent=100 / columns,
                ))
            rows.append(cells)
        return [WordTable(rows=rows)]

    def _horizontal_rule(self, block: HorizontalRule) -> list:
        return [WordParagraph(
            runs=[WordRun(HORIZONTAL_RULE_TEXT, color=FOOTER_COLOR)],
            alignment="center",
            spacing_before=RULE_SPACING,
            spacing_after=RULE_SPACING,
        )]

    def _image(self, block: Image) -> list:
        match = DATA_URI_PATTERN.match(block.src.strip())
        if match and match.group(1).lower() in EMBEDDABLE_IMAGE_FORMATS:
            try:
                data = base64.b64decode(match.group(2), validate=False)
            except (binascii.Error, ValueError) as exc:
                logger.warning("Could not decode embedded image: %s", exc)
            else:
                return [WordImage(
                    data=data,
                    format=EMBEDDABLE_IMAGE_FORMATS[match.group(1).lower()],
                    alt=block.alt,
                )]
        return [self.placeholder(block.alt)]

    def placeholder(self, alt: str) -> WordParagraph:
        """Paragraph standing in for an image that cannot be embedded."""
        return WordParagraph(
            runs=[WordRun(
                f"[{self.labels.word_image}: {alt or self.labels.word_missing_alt}]",
                italic=True,
            )],
            spacing_after=PARAGRAPH_SPACING_AFTER,
        )

    def _video(self, block: VideoEmbed) -> list:
        label = self.labels.youtube_video if block.provider == "youtube" else self.labels.word_video
        return [WordParagraph(
            runs=[
                WordRun(f"[{label}: ", italic=True),
                WordRun(block.watch_url, italic=True, color=LINK_COLOR, underline=True, href=block.watch_url),
                WordRun("]", italic=True),
            ],
            spacing_after=PARAGRAPH_SPACING_AFTER,
        )]

    def _canvas(self, block: Canvas) -> list:
        if block.strokes:
            description = self.labels.canvas_strokes.format(count=len(block.strokes))
        else:
            description = self.labels.canvas_empty
        return [WordParagraph(
            runs=[WordRun(f"[{self.labels.word_drawing}: {description}]", italic=True)],
            spacing_after=PARAGRAPH_SPACING_AFTER,
        )]

    def _details(self, block: Details) -> list:
        summary = WordParagraph(
            runs=[WordRun("▸ ", bold=True)] + [
                self._bold(run) for run in self.runs(block.summary.children)
            ],
            spacing_after=PARAGRAPH_SPACING_AFTER,
        )
        content = self.blocks(block.content.children)
        for element in content:
            if isinstance(element, WordParagraph):
                element.indent_left = max(element.indent_left, LIST_INDENT)
        return [summary] + content

    def _bold(self, run: WordRun) -> WordRun:
        run.bold = True
        return run

    def _math_block(self, block: MathBlock) -> list:
        return [WordParagraph(
            runs=[WordRun(block.latex, font=CODE_FONT)],
            alignment="center",
            spacing_after=PARAGRAPH_SPACING_AFTER,
        )]

    # -------------------------------------------------------------------------
    # Inline
    # -------------------------------------------------------------------------

    def runs(self, children) -> list[WordRun]:
        """Convert inline nodes to Word runs."""
        runs: list[WordRun] = []
        for node in children:
            if isinstance(node, Text):
                runs.append(self._text_run(node))
            elif isinstance(node, HardBreak):
                runs.append(WordRun("\n"))
            elif isinstance(node, MentionRef):
                runs.append(WordRun(node.display, bold=True))
            elif isinstance(node, Emoji):
                runs.append(WordRun(f":{node.shortcode}:"))
            elif isinstance(node, MathInline):
                runs.append(WordRun(node.latex, font=CODE_FONT))
        return runs

    def _text_run(self, node: Text) -> WordRun:
        run = WordRun(
            text=node.value,
            bold=node.has(MarkType.BOLD),
            italic=node.has(MarkType.ITALIC),
            underline=node.has(MarkType.UNDERLINE),
            strike=node.has(MarkType.STRIKE),
            subscript=node.has(MarkType.SUBSCRIPT),
            superscript=node.has(MarkType.SUPERSCRIPT),
        )
        if node.has(MarkType.CODE):
            run.font = CODE_FONT
        font = node.get(MarkType.FONT_FAMILY)
        if font is not None and run.font is None:
            run.font = font.name
        color = node.get(MarkType.TEXT_COLOR)
        if color is not None:
            run.color = _hex_color(color.color)
        if node.has(MarkType.HIGHLIGHT):
            run.highlight = HIGHLIGHT_COLOR
        link = node.get(MarkType.LINK)
        if link is not None and link.href:
            run.href = link.href
            run.color = LINK_COLOR
            run.underline = True
        return run


def to_word_document(
    document: Document,
    title: str,
    options: Optional[WordOptions] = None,
) -> WordDocument:
    """Build the Word document model for a Document."""
    return WordDocumentBuilder(options).build(document, title)
