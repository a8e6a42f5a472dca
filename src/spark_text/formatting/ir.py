"""Intermediate Representation for editor documents.

This module defines the document model that every importer produces and
every renderer consumes. Nodes are frozen dataclasses: a document is built
fresh for each conversion and never mutated afterwards, so renderers
always see an immutable snapshot.
"""

import re
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Iterable, Optional, Union
from urllib.parse import parse_qs, urlparse


# =============================================================================
# Marks
# =============================================================================

class MarkType(Enum):
    """Inline style kinds, declared in canonical nesting order (outermost first)."""

    BOLD = 1
    ITALIC = 2
    UNDERLINE = 3
    STRIKE = 4
    CODE = 5
    LINK = 6
    HIGHLIGHT = 7
    TEXT_COLOR = 8
    FONT_FAMILY = 9
    SUBSCRIPT = 10
    SUPERSCRIPT = 11


@dataclass(frozen=True)
class Mark:
    """A style attached to a run of text.

    Attributes:
        type: The kind of mark
        color: Highlight or text color (hex string), when relevant
        href: Link target URL
        target: Link target window (e.g. "_blank")
        name: Font family name
    """

    type: MarkType
    color: Optional[str] = None
    href: Optional[str] = None
    target: Optional[str] = None
    name: Optional[str] = None


BOLD = Mark(MarkType.BOLD)
ITALIC = Mark(MarkType.ITALIC)
UNDERLINE = Mark(MarkType.UNDERLINE)
STRIKE = Mark(MarkType.STRIKE)
CODE = Mark(MarkType.CODE)
SUBSCRIPT = Mark(MarkType.SUBSCRIPT)
SUPERSCRIPT = Mark(MarkType.SUPERSCRIPT)


def link(href: str, target: Optional[str] = None) -> Mark:
    """Create a link mark."""
    return Mark(MarkType.LINK, href=href, target=target)


def highlight(color: Optional[str] = None) -> Mark:
    """Create a highlight mark, optionally colored."""
    return Mark(MarkType.HIGHLIGHT, color=color)


def text_color(color: str) -> Mark:
    """Create a text color mark."""
    return Mark(MarkType.TEXT_COLOR, color=color)


def font_family(name: str) -> Mark:
    """Create a font family mark."""
    return Mark(MarkType.FONT_FAMILY, name=name)


def add_mark(marks: Iterable[Mark], mark: Mark) -> frozenset:
    """Return a mark set with ``mark`` applied.

    A text run carries at most one mark of each type, so applying a mark
    replaces any existing mark of the same type. Applying the same mark
    twice is a no-op.
    """
    return frozenset(m for m in marks if m.type is not mark.type) | {mark}


def sort_marks(marks: Iterable[Mark]) -> list[Mark]:
    """Sort marks into canonical nesting order, outermost first."""
    return sorted(marks, key=lambda m: m.type.value)


def _freeze(node: object, *names: str) -> None:
    """Coerce sequence fields of a frozen node to tuples."""
    for name in names:
        value = getattr(node, name)
        if not isinstance(value, tuple):
            object.__setattr__(node, name, tuple(value))


# =============================================================================
# Inline nodes
# =============================================================================

@dataclass(frozen=True)
class Text:
    """A run of text sharing one set of marks."""

    value: str
    marks: frozenset = frozenset()

    def __post_init__(self) -> None:
        if not isinstance(self.marks, frozenset):
            object.__setattr__(self, "marks", frozenset(self.marks))

    def get(self, mark_type: MarkType) -> Optional[Mark]:
        """Get the mark of the given type, if present."""
        for mark in self.marks:
            if mark.type is mark_type:
                return mark
        return None

    def has(self, mark_type: MarkType) -> bool:
        """Check if this run carries a mark of the given type."""
        return self.get(mark_type) is not None

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class MentionRef:
    """Reference to a user (``@label``) or a tag (``#label``)."""

    kind: str = "user"
    id: str = ""
    label: str = ""

    @property
    def display(self) -> str:
        prefix = "#" if self.kind == "tag" else "@"
        return f"{prefix}{self.label or self.id}"


@dataclass(frozen=True)
class Emoji:
    shortcode: str


@dataclass(frozen=True)
class MathInline:
    latex: str


@dataclass(frozen=True)
class HardBreak:
    """Forced line break inside a block's inline content."""


Inline = Union[Text, MentionRef, Emoji, MathInline, HardBreak]
INLINE_TYPES = (Text, MentionRef, Emoji, MathInline, HardBreak)


# =============================================================================
# Block nodes
# =============================================================================

class HeadingLevel:
    """Valid heading levels."""

    MIN = 1
    MAX = 6

    @classmethod
    def validate(cls, level: int) -> int:
        """Validate and clamp level to valid range."""
        return max(cls.MIN, min(cls.MAX, level))


@dataclass(frozen=True)
class Paragraph:
    children: tuple = ()

    def __post_init__(self) -> None:
        _freeze(self, "children")


@dataclass(frozen=True)
class Heading:
    """A heading; ``level`` is clamped to 1-6 on construction."""

    level: int = 1
    children: tuple = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "level", HeadingLevel.validate(int(self.level)))
        _freeze(self, "children")


@dataclass(frozen=True)
class ListItem:
    """A list entry holding block children.

    ``checked`` is None for bullet/ordered items and a bool for task items.
    """

    children: tuple = ()
    checked: Optional[bool] = None

    def __post_init__(self) -> None:
        _freeze(self, "children")


@dataclass(frozen=True)
class BulletList:
    items: tuple = ()

    def __post_init__(self) -> None:
        _freeze(self, "items")


@dataclass(frozen=True)
class OrderedList:
    items: tuple = ()
    start: int = 1

    def __post_init__(self) -> None:
        _freeze(self, "items")


@dataclass(frozen=True)
class TaskList:
    items: tuple = ()

    def __post_init__(self) -> None:
        _freeze(self, "items")


@dataclass(frozen=True)
class Blockquote:
    children: tuple = ()

    def __post_init__(self) -> None:
        _freeze(self, "children")


@dataclass(frozen=True)
class CodeBlock:
    code: str = ""
    language: Optional[str] = None


@dataclass(frozen=True)
class TableCell:
    children: tuple = ()
    is_header: bool = False
    colspan: int = 1
    rowspan: int = 1

    def __post_init__(self) -> None:
        _freeze(self, "children")


@dataclass(frozen=True)
class TableRow:
    cells: tuple = ()

    def __post_init__(self) -> None:
        _freeze(self, "cells")

    @property
    def span(self) -> int:
        """Number of grid columns this row occupies."""
        return sum(max(1, cell.colspan) for cell in self.cells)


@dataclass(frozen=True)
class Table:
    rows: tuple = ()

    def __post_init__(self) -> None:
        _freeze(self, "rows")

    @property
    def column_count(self) -> int:
        return max((row.span for row in self.rows), default=0)


@dataclass(frozen=True)
class HorizontalRule:
    pass


@dataclass(frozen=True)
class Image:
    src: str = ""
    alt: str = ""
    title: str = ""


_YOUTUBE_HOSTS = ("youtube.com", "youtube-nocookie.com")


@dataclass(frozen=True)
class VideoEmbed:
    """An embedded video.

    Attributes:
        provider: "youtube", "vimeo", or the host name for other players
        id: Provider video id, or the full URL for unknown providers
    """

    provider: str
    id: str

    @classmethod
    def from_url(cls, url: str) -> "VideoEmbed":
        """Recognize a video URL (embed, watch or share form)."""
        parsed = urlparse(url if "//" in url else f"https://{url}")
        host = (parsed.hostname or "").lower()
        path = parsed.path.strip("/")

        if host.endswith(_YOUTUBE_HOSTS):
            if path.startswith("embed/"):
                return cls("youtube", path.split("/")[1])
            video_ids = parse_qs(parsed.query).get("v")
            if video_ids:
                return cls("youtube", video_ids[0])
        if host == "youtu.be" and path:
            return cls("youtube", path.split("/")[0])
        if host.endswith("vimeo.com"):
            match = re.search(r"(\d+)$", path)
            if match:
                return cls("vimeo", match.group(1))

        return cls(host or "video", url)

    @property
    def embed_url(self) -> str:
        if self.provider == "youtube":
            return f"https://www.youtube-nocookie.com/embed/{self.id}"
        if self.provider == "vimeo":
            return f"https://player.vimeo.com/video/{self.id}"
        return self.id

    @property
    def watch_url(self) -> str:
        if self.provider == "youtube":
            return f"https://www.youtube.com/watch?v={self.id}"
        if self.provider == "vimeo":
            return f"https://vimeo.com/{self.id}"
        return self.id

    @property
    def thumbnail_url(self) -> Optional[str]:
        """Thumbnail URL, when one can be derived from the video id."""
        if self.provider == "youtube":
            return f"https://img.youtube.com/vi/{self.id}/maxresdefault.jpg"
        return None


@dataclass(frozen=True)
class Stroke:
    """One freehand stroke of a drawing canvas (SVG path data)."""

    path: str
    color: str = "#000000"
    width: float = 2


@dataclass(frozen=True)
class Canvas:
    strokes: tuple = ()

    def __post_init__(self) -> None:
        _freeze(self, "strokes")


@dataclass(frozen=True)
class DetailsSummary:
    children: tuple = ()

    def __post_init__(self) -> None:
        _freeze(self, "children")


@dataclass(frozen=True)
class DetailsContent:
    children: tuple = ()

    def __post_init__(self) -> None:
        _freeze(self, "children")


@dataclass(frozen=True)
class Details:
    """Collapsible section: an inline summary over block content."""

    summary: DetailsSummary = field(default_factory=DetailsSummary)
    content: DetailsContent = field(default_factory=DetailsContent)
    open: bool = False


@dataclass(frozen=True)
class MathBlock:
    latex: str


Block = Union[
    Paragraph, Heading, BulletList, OrderedList, TaskList, ListItem,
    Blockquote, CodeBlock, Table, HorizontalRule, Image, VideoEmbed,
    Canvas, Details, MathBlock,
]
LIST_TYPES = (BulletList, OrderedList, TaskList)


@dataclass(frozen=True)
class Document:
    """Complete document: a sequence of blocks.

    Attributes:
        children: Top-level blocks
        title: Optional document title
    """

    children: tuple = ()
    title: Optional[str] = None

    def __post_init__(self) -> None:
        _freeze(self, "children")

    @property
    def plain_text(self) -> str:
        """Get all text content without styling, one line per block."""
        return "\n".join(
            line for line in (block_text(b) for b in self.children) if line
        )

    @property
    def is_empty(self) -> bool:
        return not self.plain_text.strip() and not any(
            not isinstance(b, Paragraph) for b in self.children
        )


# =============================================================================
# Text flattening
# =============================================================================

def inline_text(children: Iterable) -> str:
    """Flatten inline content to plain text."""
    parts: list[str] = []
    for node in children:
        if isinstance(node, Text):
            parts.append(node.value)
        elif isinstance(node, MentionRef):
            parts.append(node.display)
        elif isinstance(node, Emoji):
            parts.append(f":{node.shortcode}:")
        elif isinstance(node, MathInline):
            parts.append(node.latex)
        elif isinstance(node, HardBreak):
            parts.append("\n")
    return "".join(parts)


def block_text(block: object) -> str:
    """Flatten a block and its descendants to plain text."""
    if isinstance(block, (Paragraph, Heading, DetailsSummary)):
        return inline_text(block.children)
    if isinstance(block, (Blockquote, ListItem, TableCell, DetailsContent)):
        return "\n".join(filter(None, (block_text(b) for b in block.children)))
    if isinstance(block, LIST_TYPES):
        return "\n".join(filter(None, (block_text(i) for i in block.items)))
    if isinstance(block, Table):
        return "\n".join(
            " ".join(block_text(cell) for cell in row.cells) for row in block.rows
        )
    if isinstance(block, Details):
        return "\n".join(
            filter(None, (block_text(block.summary), block_text(block.content)))
        )
    if isinstance(block, CodeBlock):
        return block.code
    if isinstance(block, MathBlock):
        return block.latex
    if isinstance(block, Image):
        return block.alt
    return ""


# =============================================================================
# Normalization
# =============================================================================

def merge_text_runs(children: Iterable) -> tuple:
    """Merge adjacent Text siblings with identical marks; drop empty runs."""
    merged: list = []
    for node in children:
        if isinstance(node, Text):
            if not node.value:
                continue
            if merged and isinstance(merged[-1], Text) and merged[-1].marks == node.marks:
                merged[-1] = Text(merged[-1].value + node.value, node.marks)
                continue
        merged.append(node)
    return tuple(merged)


def _list_kind_for(item: ListItem) -> type:
    return TaskList if item.checked is not None else BulletList


def group_list_items(blocks: Iterable) -> tuple:
    """Wrap orphaned ListItems into lists.

    Consecutive orphaned items are grouped by kind (task items into a
    TaskList, others into a BulletList). An orphan directly following a
    list of matching kind is appended to that list instead.
    """
    grouped: list = []
    for block in blocks:
        if not isinstance(block, ListItem):
            grouped.append(block)
            continue

        kind = _list_kind_for(block)
        previous = grouped[-1] if grouped else None
        if kind is BulletList and isinstance(previous, (BulletList, OrderedList)):
            grouped[-1] = replace(previous, items=previous.items + (block,))
        elif kind is TaskList and isinstance(previous, TaskList):
            grouped[-1] = replace(previous, items=previous.items + (block,))
        else:
            grouped.append(kind(items=(block,)))
    return tuple(grouped)


def _is_empty_paragraph(block: object) -> bool:
    return isinstance(block, Paragraph) and not inline_text(block.children).strip() and not any(
        not isinstance(c, (Text, HardBreak)) for c in block.children
    )


def collapse_empty_paragraphs(blocks: Iterable) -> tuple:
    """Collapse runs of consecutive empty paragraphs into one."""
    collapsed: list = []
    for block in blocks:
        if _is_empty_paragraph(block) and collapsed and _is_empty_paragraph(collapsed[-1]):
            continue
        collapsed.append(Paragraph() if _is_empty_paragraph(block) else block)
    return tuple(collapsed)


def normalize_blocks(blocks: Iterable) -> tuple:
    """Normalize a block sequence and everything below it."""
    result = group_list_items(normalize_block(b) for b in blocks)
    return collapse_empty_paragraphs(result)


def normalize_block(block: object) -> object:
    """Normalize one block: merge text runs and regroup orphaned items."""
    if isinstance(block, (Paragraph, Heading)):
        return replace(block, children=merge_text_runs(block.children))
    if isinstance(block, (Blockquote, ListItem, TableCell)):
        return replace(block, children=normalize_blocks(block.children))
    if isinstance(block, LIST_TYPES):
        return replace(block, items=tuple(normalize_block(i) for i in block.items))
    if isinstance(block, Table):
        return replace(block, rows=tuple(
            replace(row, cells=tuple(normalize_block(c) for c in row.cells))
            for row in block.rows
        ))
    if isinstance(block, Details):
        return replace(
            block,
            summary=DetailsSummary(merge_text_runs(block.summary.children)),
            content=DetailsContent(normalize_blocks(block.content.children)),
        )
    return block


def normalize(document: Document) -> Document:
    """Return a normalized copy of the document."""
    return replace(document, children=normalize_blocks(document.children))
