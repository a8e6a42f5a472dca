"""Markdown parser for converting pasted Markdown to IR.

Only the subset the editor's paste handler understands is recognized:
``#`` headings, bold, italic, inline and fenced code, links, ``* `` bullets
and ``N. `` numbered items. Everything else is kept as literal text.
"""

import re

from spark_text.formatting.ir import (
    BOLD,
    CODE,
    ITALIC,
    BulletList,
    CodeBlock,
    Document,
    Heading,
    ListItem,
    OrderedList,
    Paragraph,
    Text,
    add_mark,
    link,
    merge_text_runs,
)


class MarkdownParser:
    """Parse restricted markdown into structured IR."""

    HEADING_PATTERN = re.compile(r"^(#{1,6})\s+(.*?)\s*$")
    FENCE_PATTERN = re.compile(r"^```\s*([\w+#.-]*)\s*$")
    BULLET_PATTERN = re.compile(r"^\*\s+(.*)$")
    NUMBERED_PATTERN = re.compile(r"^(\d+)\.\s+(.*)$")
    LINK_PATTERN = re.compile(r"\[([^\]]*)\]\(([^)\s]+)\)")

    def parse(self, markdown_text: str) -> Document:
        """Convert markdown text to a Document.

        Args:
            markdown_text: Markdown pasted into the editor

        Returns:
            Document with parsed blocks
        """
        self._blocks: list = []
        self._paragraph: list[str] = []
        self._list_kind = None
        self._list_items: list[ListItem] = []
        self._list_start = 1

        lines = (markdown_text or "").replace("\r\n", "\n").replace("\r", "\n").split("\n")
        pos = 0
        while pos < len(lines):
            stripped = lines[pos].strip()

            fence = self.FENCE_PATTERN.match(stripped)
            if fence:
                end = self._find_fence_end(lines, pos + 1)
                if end != -1:
                    self._flush()
                    self._blocks.append(CodeBlock(
                        code="\n".join(lines[pos + 1 : end]),
                        language=fence.group(1) or None,
                    ))
                    pos = end + 1
                    continue
                # No closing fence, treat as plain text

            if not stripped:
                self._flush()
            elif self.HEADING_PATTERN.match(stripped):
                self._flush()
                match = self.HEADING_PATTERN.match(stripped)
                self._blocks.append(Heading(
                    level=len(match.group(1)),
                    children=self.parse_inline(match.group(2)),
                ))
            elif self.BULLET_PATTERN.match(stripped):
                self._add_item("bullet", self.BULLET_PATTERN.match(stripped).group(1), 1)
            elif self.NUMBERED_PATTERN.match(stripped):
                match = self.NUMBERED_PATTERN.match(stripped)
                self._add_item("ordered", match.group(2), int(match.group(1)))
            else:
                self._flush_list()
                self._paragraph.append(stripped)
            pos += 1

        self._flush()
        return Document(children=self._blocks)

    def _find_fence_end(self, lines: list[str], start: int) -> int:
        for index in range(start, len(lines)):
            if lines[index].strip() == "```":
                return index
        return -1

    def _add_item(self, kind: str, text: str, number: int) -> None:
        self._flush_paragraph()
        if self._list_kind != kind:
            self._flush_list()
            self._list_kind = kind
            self._list_start = number
        self._list_items.append(ListItem(children=(Paragraph(self.parse_inline(text)),)))

    def _flush(self) -> None:
        self._flush_paragraph()
        self._flush_list()

    def _flush_paragraph(self) -> None:
        if self._paragraph:
            self._blocks.append(Paragraph(self.parse_inline(" ".join(self._paragraph))))
            self._paragraph = []

    def _flush_list(self) -> None:
        if self._list_items:
            if self._list_kind == "ordered":
                self._blocks.append(OrderedList(items=self._list_items, start=self._list_start))
            else:
                self._blocks.append(BulletList(items=self._list_items))
        self._list_items = []
        self._list_kind = None

    def parse_inline(self, text: str, marks: frozenset = frozenset()) -> tuple:
        """Tokenize inline markdown into marked Text runs.

        Handles:
        - ***bold italic***
        - **bold** and __bold__
        - *italic* and _italic_ (underscores only at word boundaries)
        - `code`
        - [text](href)
        - plain text
        """
        nodes: list = []
        plain: list[str] = []
        pos = 0

        def flush_plain() -> None:
            if plain:
                nodes.append(Text("".join(plain), marks))
                plain.clear()

        while pos < len(text):
            # Inline code: contents are literal
            if text[pos] == "`":
                end = text.find("`", pos + 1)
                if end > pos + 1:
                    flush_plain()
                    nodes.append(Text(text[pos + 1 : end], add_mark(marks, CODE)))
                    pos = end + 1
                    continue

            # Check for bold-italic (***)
            if text[pos : pos + 3] == "***":
                end = text.find("***", pos + 3)
                if end > pos + 3:
                    flush_plain()
                    inner = add_mark(add_mark(marks, BOLD), ITALIC)
                    nodes.extend(self.parse_inline(text[pos + 3 : end], inner))
                    pos = end + 3
                    continue

            # Check for bold (** or __)
            if text[pos : pos + 2] in ("**", "__"):
                delimiter = text[pos : pos + 2]
                end = text.find(delimiter, pos + 2)
                if end > pos + 2:
                    flush_plain()
                    nodes.extend(self.parse_inline(text[pos + 2 : end], add_mark(marks, BOLD)))
                    pos = end + 2
                    continue

            # Check for italic (* or _)
            if text[pos] in "*_":
                end = self._find_italic_end(text, pos)
                if end != -1:
                    flush_plain()
                    nodes.extend(self.parse_inline(text[pos + 1 : end], add_mark(marks, ITALIC)))
                    pos = end + 1
                    continue

            if text[pos] == "[":
                match = self.LINK_PATTERN.match(text, pos)
                if match:
                    flush_plain()
                    nodes.extend(self.parse_inline(match.group(1), add_mark(marks, link(match.group(2)))))
                    pos = match.end()
                    continue

            plain.append(text[pos])
            pos += 1

        flush_plain()
        return merge_text_runs(nodes)

    def _find_italic_end(self, text: str, pos: int) -> int:
        """Find the closing delimiter of a single-character emphasis span."""
        delimiter = text[pos]
        if pos + 1 >= len(text) or text[pos + 1] in (delimiter, " "):
            return -1
        if delimiter == "_" and pos > 0 and text[pos - 1].isalnum():
            return -1

        end = pos + 1
        while end < len(text):
            if text[end] == delimiter and text[end - 1] != " " and (
                end + 1 >= len(text) or text[end + 1] != delimiter
            ):
                if delimiter == "_" and end + 1 < len(text) and text[end + 1].isalnum():
                    end += 1
                    continue
                return end
            end += 1
        return -1


def from_markdown(markdown_text: str) -> Document:
    """Parse restricted Markdown into a Document."""
    return MarkdownParser().parse(markdown_text)
