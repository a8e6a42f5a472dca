"""Plain text file handler and plain-text export."""

import re
from itertools import groupby
from pathlib import Path
from typing import Optional

from spark_text.formats.base import FormatHandler
from spark_text.formatting.ir import (
    LIST_TYPES,
    Blockquote,
    BulletList,
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
from spark_text.options import TextOptions

HEADING_RULES = {1: "=" * 40, 2: "=" * 20, 3: "-" * 15}
HEADING_STARS = {4: "***", 5: "**", 6: "*"}
HORIZONTAL_RULE = "=" * 50

# Inline cues, innermost first
MARK_CUES = (
    (MarkType.HIGHLIGHT, "【", "】"),
    (MarkType.STRIKE, "~", "~"),
    (MarkType.UNDERLINE, "_", "_"),
    (MarkType.ITALIC, "*", "*"),
    (MarkType.BOLD, "**", "**"),
)

ENTITIES = {
    "&amp;": "&",
    "&lt;": "<",
    "&gt;": ">",
    "&quot;": '"',
    "&#39;": "'",
    "&nbsp;": " ",
}
ENTITY_PATTERN = re.compile("|".join(re.escape(e) for e in ENTITIES))
HORIZONTAL_WHITESPACE_PATTERN = re.compile(r"[ \t]+")
BLANK_LINES_PATTERN = re.compile(r"\n{3,}")


class PlainTextRenderer:
    """Render a Document as readable plain text.

    Structure survives as visual cues: ruled headings, bullets,
    checkboxes, bracketed placeholders and aligned tables.
    """

    def __init__(self, options: Optional[TextOptions] = None) -> None:
        self.options = options or TextOptions()
        self.labels = get_labels(self.options.locale)

    def render(self, document: Document) -> str:
        text = self._blocks(document.children)
        if self.options.collapse_whitespace:
            text = self._collapse(text)
        return ENTITY_PATTERN.sub(lambda m: ENTITIES[m.group(0)], text).strip()

    def _blocks(self, blocks, depth: int = 0) -> str:
        rendered = (self._block(block, depth) for block in group_list_items(blocks))
        return "\n\n".join(chunk for chunk in rendered if chunk.strip())

    def _block(self, block, depth: int = 0) -> str:
        if isinstance(block, Paragraph):
            return self.inline(block.children)
        if isinstance(block, Heading):
            return self._heading(block)
        if isinstance(block, (BulletList, OrderedList, TaskList)):
            return self._list(block, depth)
        if isinstance(block, Blockquote):
            quoted = " ".join(self._blocks(block.children).split())
            return f'"{quoted}"'
        if isinstance(block, CodeBlock):
            return f"{self.labels.code}\n{block.code}\n{self.labels.code_end}"
        if isinstance(block, Table):
            return self._table(block)
        if isinstance(block, HorizontalRule):
            return HORIZONTAL_RULE
        if isinstance(block, Image):
            if block.alt:
                return f"[{self.labels.image}: {block.alt} - {block.src}]"
            return f"[{self.labels.image}: {block.src}]"
        if isinstance(block, VideoEmbed):
            return f"[{self.labels.video}: {block.watch_url}]"
        if isinstance(block, Canvas):
            if block.strokes:
                description = self.labels.canvas_strokes.format(count=len(block.strokes))
            else:
                description = self.labels.canvas_empty
            return f"[{self.labels.drawing}: {description}]"
        if isinstance(block, Details):
            summary = self.inline(block.summary.children)
            content = self._blocks(block.content.children)
            lines = [f"[{self.labels.details}: {summary}]"]
            if content:
                lines.append(content)
            lines.append(self.labels.details_end)
            return "\n".join(lines)
        if isinstance(block, MathBlock):
            return block.latex
        return ""

    def _heading(self, block: Heading) -> str:
        text = self.inline(block.children)
        if block.level == 1:
            rule = HEADING_RULES[1]
            return f"{rule}\n{text}\n{rule}"
        if block.level in HEADING_RULES:
            return f"{text}\n{HEADING_RULES[block.level]}"
        stars = HEADING_STARS[block.level]
        return f"{stars} {text} {stars}"

    def _list(self, block, depth: int) -> str:
        indent = "  " * depth
        number = block.start if isinstance(block, OrderedList) else 1
        lines: list[str] = []
        for item in block.items:
            if isinstance(block, TaskList):
                marker = "☑ " if item.checked else "☐ "
            elif isinstance(block, OrderedList):
                marker = f"{number}. "
                number += 1
            else:
                marker = "• "

            rest = list(item.children)
            first = ""
            if rest and isinstance(rest[0], (Paragraph, Heading)):
                first = self._block(rest.pop(0))
            lines.append(f"{indent}{marker}{first}".rstrip())

            for child in group_list_items(rest):
                chunk = self._block(child, depth + 1)
                if not chunk.strip():
                    continue
                if isinstance(child, LIST_TYPES):
                    lines.append(chunk)
                else:
                    lines.extend(f"{indent}  {line}" for line in chunk.split("\n"))
        return "\n".join(lines)

    def _table(self, block: Table) -> str:
        rows = [
            [" ".join(self._blocks(cell.children).split()) for cell in row.cells]
            for row in block.rows
        ]
        columns = max((len(row) for row in rows), default=0)
        if not columns:
            return ""
        rows = [row + [""] * (columns - len(row)) for row in rows]
        widths = [max(len(row[i]) for row in rows) for i in range(columns)]

        def format_row(row: list[str]) -> str:
            return " | ".join(cell.ljust(widths[i]) for i, cell in enumerate(row)).rstrip()

        header = format_row(rows[0])
        lines = [self.labels.table, header, "-" * len(header)]
        lines.extend(format_row(row) for row in rows[1:])
        lines.append(self.labels.table_end)
        return "\n".join(lines)

    def _collapse(self, text: str) -> str:
        """Collapse runs of spaces, except inside tables and code blocks."""
        lines: list[str] = []
        verbatim = False
        for line in text.split("\n"):
            # Bracket labels may be indented inside list items
            marker = line.strip()
            if marker in (self.labels.table, self.labels.code):
                verbatim = True
            elif marker in (self.labels.table_end, self.labels.code_end):
                verbatim = False
            elif not verbatim:
                body = line.lstrip(" ")
                indent = line[: len(line) - len(body)]
                line = indent + HORIZONTAL_WHITESPACE_PATTERN.sub(" ", body).rstrip()
            lines.append(line)
        return BLANK_LINES_PATTERN.sub("\n\n", "\n".join(lines))

    # -------------------------------------------------------------------------
    # Inline
    # -------------------------------------------------------------------------

    def inline(self, children) -> str:
        parts: list[str] = []

        def link_key(node):
            return node.get(MarkType.LINK) if isinstance(node, Text) else None

        for link_mark, group in groupby(children, key=link_key):
            rendered = "".join(self._inline_node(node) for node in group)
            if link_mark is not None and link_mark.href and link_mark.href != rendered:
                rendered = f"{rendered} ({link_mark.href})"
            parts.append(rendered)
        return "".join(parts)

    def _inline_node(self, node) -> str:
        if isinstance(node, Text):
            value = node.value
            if not value.strip():
                return value
            if node.has(MarkType.CODE):
                value = f"`{value}`"
            for mark_type, opening, closing in MARK_CUES:
                if node.has(mark_type):
                    value = f"{opening}{value}{closing}"
            return value
        if isinstance(node, HardBreak):
            return "\n"
        if isinstance(node, MentionRef):
            return node.display
        if isinstance(node, Emoji):
            return f":{node.shortcode}:"
        if isinstance(node, MathInline):
            return node.latex
        return ""


class TXTHandler(FormatHandler):
    """Handler for plain text (.txt) files.

    Reading treats every non-blank line as a literal paragraph; blank
    lines only separate paragraphs.
    """

    def __init__(self, options: Optional[TextOptions] = None) -> None:
        self.options = options or TextOptions()

    @property
    def supported_extensions(self) -> tuple[str, ...]:
        return (".txt",)

    def read(self, path: Path) -> Document:
        """Read plain text from file."""
        return from_plain_text(self.read_text(path))

    def render(self, document: Document, title: Optional[str] = None) -> str:
        return PlainTextRenderer(self.options).render(document) + "\n"


def from_plain_text(text: str) -> Document:
    """Import plain text: one literal paragraph per non-blank line."""
    lines = (text or "").replace("\r\n", "\n").replace("\r", "\n").split("\n")
    return Document(children=tuple(
        Paragraph((Text(line.strip()),)) for line in lines if line.strip()
    ))


def to_text(document: Document, options: Optional[TextOptions] = None) -> str:
    """Export a Document as plain text."""
    return PlainTextRenderer(options).render(document)
