"""Markdown file handler and Markdown export."""

import re
from itertools import groupby
from pathlib import Path
from typing import Optional

from spark_text.formats.base import FormatHandler
from spark_text.formatting.ir import (
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
    block_text,
    group_list_items,
    sort_marks,
)
from spark_text.formatting.labels import get_labels
from spark_text.formatting.parser import MarkdownParser
from spark_text.formatting.renderer import escape_text
from spark_text.options import MarkdownOptions

# Wrappers applied from the innermost mark outwards
MARK_WRAPPERS = {
    MarkType.BOLD: ("**", "**"),
    MarkType.ITALIC: ("*", "*"),
    MarkType.UNDERLINE: ("<u>", "</u>"),
    MarkType.STRIKE: ("~~", "~~"),
    MarkType.HIGHLIGHT: ("==", "=="),
    MarkType.SUBSCRIPT: ("<sub>", "</sub>"),
    MarkType.SUPERSCRIPT: ("<sup>", "</sup>"),
}

EDGE_WHITESPACE_PATTERN = re.compile(r"^(\s*)(.*?)(\s*)$", re.DOTALL)


class MarkdownRenderer:
    """Render a Document as Markdown.

    Text color and font family have no Markdown form and are dropped.
    Ordered lists restart at 1 unless ``respect_start`` is set.
    """

    def __init__(self, options: Optional[MarkdownOptions] = None) -> None:
        self.options = options or MarkdownOptions()
        self.labels = get_labels(self.options.locale)

    def render(self, document: Document) -> str:
        return self._blocks(document.children).strip()

    def _blocks(self, blocks) -> str:
        rendered = (self._block(block) for block in group_list_items(blocks))
        return "\n\n".join(chunk for chunk in rendered if chunk)

    def _block(self, block) -> str:
        if isinstance(block, Paragraph):
            return self.inline(block.children)
        if isinstance(block, Heading):
            return f"{'#' * block.level} {self.inline(block.children)}"
        if isinstance(block, (BulletList, OrderedList, TaskList)):
            return self._list(block)
        if isinstance(block, Blockquote):
            inner = self._blocks(block.children)
            return "\n".join(f"> {line}" if line else ">" for line in inner.split("\n"))
        if isinstance(block, CodeBlock):
            return f"```{block.language or ''}\n{block.code}\n```"
        if isinstance(block, Table):
            return self._table(block)
        if isinstance(block, HorizontalRule):
            return "---"
        if isinstance(block, Image):
            return f"![{block.alt}]({block.src})"
        if isinstance(block, VideoEmbed):
            return self._video(block)
        if isinstance(block, Canvas):
            return self._canvas(block)
        if isinstance(block, Details):
            return self._details(block)
        if isinstance(block, MathBlock):
            return f"$$\n{block.latex}\n$$"
        return ""

    def _list(self, block) -> str:
        lines: list[str] = []
        number = block.start if isinstance(block, OrderedList) and self.options.respect_start else 1
        for item in block.items:
            if isinstance(block, TaskList):
                marker = f"- [{'x' if item.checked else ' '}] "
            elif isinstance(block, OrderedList):
                marker = f"{number}. "
                number += 1
            else:
                marker = "- "

            body = "\n".join(
                chunk for chunk in (self._block(b) for b in group_list_items(item.children)) if chunk
            )
            body_lines = body.split("\n") if body else [""]
            lines.append(f"{marker}{body_lines[0]}".rstrip())
            indent = " " * len(marker)
            lines.extend(f"{indent}{line}" if line else "" for line in body_lines[1:])
        return "\n".join(lines)

    def _table(self, block: Table) -> str:
        rows = [
            [self._cell_text(cell) for cell in row.cells]
            for row in block.rows
        ]
        columns = max((len(row) for row in rows), default=0)
        if not columns:
            return ""
        rows = [row + [""] * (columns - len(row)) for row in rows]

        lines = [self._table_row(rows[0]), self._table_row(["---"] * columns)]
        lines.extend(self._table_row(row) for row in rows[1:])
        return "\n".join(lines)

    def _table_row(self, cells: list[str]) -> str:
        return "| " + " | ".join(cells) + " |"

    def _cell_text(self, cell) -> str:
        text = " ".join(
            chunk for chunk in (self._block(b) for b in cell.children) if chunk
        )
        return text.replace("|", "\\|").replace("\n", " ").strip()

    def _video(self, block: VideoEmbed) -> str:
        if block.thumbnail_url:
            return f"[![{self.labels.youtube_video}]({block.thumbnail_url})]({block.watch_url})"
        return f"[{self.labels.word_video}: {block.watch_url}]({block.watch_url})"

    def _canvas(self, block: Canvas) -> str:
        if block.strokes:
            return f"![{self.labels.markdown_canvas.format(count=len(block.strokes))}]"
        return f"![{self.labels.markdown_canvas_empty}]"

    def _details(self, block: Details) -> str:
        opening = "<details open>" if block.open else "<details>"
        summary = escape_text(block_text(block.summary))
        content = self._blocks(block.content.children)
        parts = [opening, f"<summary>{summary}</summary>", ""]
        if content:
            parts.extend([content, ""])
        parts.append("</details>")
        return "\n".join(parts)

    # -------------------------------------------------------------------------
    # Inline
    # -------------------------------------------------------------------------

    def inline(self, children) -> str:
        """Render inline nodes; adjacent runs sharing a link become one link."""
        parts: list[str] = []

        def link_key(node):
            return node.get(MarkType.LINK) if isinstance(node, Text) else None

        for link_mark, group in groupby(children, key=link_key):
            rendered = "".join(self._inline_node(node) for node in group)
            if link_mark is not None:
                rendered = f"[{rendered}]({link_mark.href})"
            parts.append(rendered)
        return "".join(parts)

    def _inline_node(self, node) -> str:
        if isinstance(node, Text):
            return self._text(node)
        if isinstance(node, HardBreak):
            return "  \n"
        if isinstance(node, MentionRef):
            return node.display
        if isinstance(node, Emoji):
            return f":{node.shortcode}:"
        if isinstance(node, MathInline):
            return f"${node.latex}$"
        return ""

    def _text(self, node: Text) -> str:
        leading, value, trailing = EDGE_WHITESPACE_PATTERN.match(node.value).groups()
        if not value:
            return node.value
        if node.has(MarkType.CODE):
            value = f"`{value}`"
        for mark in reversed(sort_marks(node.marks)):
            if mark.type in MARK_WRAPPERS:
                opening, closing = MARK_WRAPPERS[mark.type]
                value = f"{opening}{value}{closing}"
        return f"{leading}{value}{trailing}"


class MarkdownHandler(FormatHandler):
    """Handler for Markdown (.md) files."""

    def __init__(self, options: Optional[MarkdownOptions] = None) -> None:
        self.options = options or MarkdownOptions()

    @property
    def supported_extensions(self) -> tuple[str, ...]:
        return (".md", ".markdown")

    def read(self, path: Path) -> Document:
        """Import a Markdown file with the restricted paste parser."""
        return MarkdownParser().parse(self.read_text(path))

    def render(self, document: Document, title: Optional[str] = None) -> str:
        return MarkdownRenderer(self.options).render(document) + "\n"


def to_markdown(document: Document, options: Optional[MarkdownOptions] = None) -> str:
    """Export a Document as Markdown."""
    return MarkdownRenderer(options).render(document)
