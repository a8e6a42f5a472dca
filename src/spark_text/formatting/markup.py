"""Markup importer: editor HTML into the document model.

Every element maps to exactly one node constructor through a fixed
dispatch table keyed by ``TagKind``. Unknown elements are flattened into
their children, so the importer never fails on odd markup.
"""

import json
import logging
import re
from enum import Enum, auto
from typing import Callable, Optional

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import Comment, Declaration, Doctype, ProcessingInstruction

from spark_text.formatting.ir import (
    BOLD,
    CODE,
    ITALIC,
    STRIKE,
    SUBSCRIPT,
    SUPERSCRIPT,
    UNDERLINE,
    Blockquote,
    BulletList,
    Canvas,
    CodeBlock,
    Details,
    DetailsContent,
    DetailsSummary,
    Document,
    Emoji,
    HardBreak,
    Heading,
    HorizontalRule,
    Image,
    INLINE_TYPES,
    ListItem,
    MathBlock,
    MathInline,
    MentionRef,
    OrderedList,
    Paragraph,
    Stroke,
    Table,
    TableCell,
    TableRow,
    TaskList,
    Text,
    VideoEmbed,
    add_mark,
    font_family,
    highlight,
    link,
    merge_text_runs,
    normalize_blocks,
    text_color,
)

logger = logging.getLogger(__name__)


class TagKind(Enum):
    """Closed set of element kinds the importer understands."""

    PARAGRAPH = auto()
    HEADING = auto()
    BULLET_LIST = auto()
    ORDERED_LIST = auto()
    TASK_LIST = auto()
    LIST_ITEM = auto()
    BLOCKQUOTE = auto()
    CODE_BLOCK = auto()
    TABLE = auto()
    TABLE_ROW = auto()
    TABLE_CELL = auto()
    HORIZONTAL_RULE = auto()
    IMAGE = auto()
    VIDEO = auto()
    CANVAS = auto()
    DETAILS = auto()
    DETAILS_SUMMARY = auto()
    DETAILS_CONTENT = auto()
    MATH_BLOCK = auto()
    HARD_BREAK = auto()
    # Inline
    BOLD = auto()
    ITALIC = auto()
    UNDERLINE = auto()
    STRIKE = auto()
    CODE = auto()
    SUBSCRIPT = auto()
    SUPERSCRIPT = auto()
    LINK = auto()
    HIGHLIGHT = auto()
    SPAN = auto()
    MENTION = auto()
    EMOJI = auto()
    MATH_INLINE = auto()
    # Structural
    CONTAINER = auto()
    IGNORED = auto()
    UNKNOWN = auto()


TAG_KINDS: dict[str, TagKind] = {
    "p": TagKind.PARAGRAPH,
    "ul": TagKind.BULLET_LIST,
    "ol": TagKind.ORDERED_LIST,
    "li": TagKind.LIST_ITEM,
    "blockquote": TagKind.BLOCKQUOTE,
    "pre": TagKind.CODE_BLOCK,
    "table": TagKind.TABLE,
    "thead": TagKind.CONTAINER,
    "tbody": TagKind.CONTAINER,
    "tfoot": TagKind.CONTAINER,
    "tr": TagKind.TABLE_ROW,
    "td": TagKind.TABLE_CELL,
    "th": TagKind.TABLE_CELL,
    "hr": TagKind.HORIZONTAL_RULE,
    "img": TagKind.IMAGE,
    "iframe": TagKind.VIDEO,
    "details": TagKind.DETAILS,
    "summary": TagKind.DETAILS_SUMMARY,
    "br": TagKind.HARD_BREAK,
    "strong": TagKind.BOLD,
    "b": TagKind.BOLD,
    "em": TagKind.ITALIC,
    "i": TagKind.ITALIC,
    "u": TagKind.UNDERLINE,
    "ins": TagKind.UNDERLINE,
    "s": TagKind.STRIKE,
    "del": TagKind.STRIKE,
    "strike": TagKind.STRIKE,
    "code": TagKind.CODE,
    "kbd": TagKind.CODE,
    "sub": TagKind.SUBSCRIPT,
    "sup": TagKind.SUPERSCRIPT,
    "a": TagKind.LINK,
    "mark": TagKind.HIGHLIGHT,
    "span": TagKind.SPAN,
    "div": TagKind.CONTAINER,
    "section": TagKind.CONTAINER,
    "article": TagKind.CONTAINER,
    "main": TagKind.CONTAINER,
    "header": TagKind.CONTAINER,
    "footer": TagKind.CONTAINER,
    "aside": TagKind.CONTAINER,
    "nav": TagKind.CONTAINER,
    "figure": TagKind.CONTAINER,
    "figcaption": TagKind.CONTAINER,
    "label": TagKind.CONTAINER,
    "body": TagKind.CONTAINER,
    "html": TagKind.CONTAINER,
    "center": TagKind.CONTAINER,
    "head": TagKind.IGNORED,
    "title": TagKind.IGNORED,
    "meta": TagKind.IGNORED,
    "link": TagKind.IGNORED,
    "style": TagKind.IGNORED,
    "script": TagKind.IGNORED,
    "noscript": TagKind.IGNORED,
    "template": TagKind.IGNORED,
    "input": TagKind.IGNORED,
    "button": TagKind.IGNORED,
    "svg": TagKind.IGNORED,
    "canvas": TagKind.IGNORED,
    "colgroup": TagKind.IGNORED,
    "col": TagKind.IGNORED,
    "caption": TagKind.IGNORED,
}

# Editor extension nodes are identified by ``data-type``
DATA_TYPE_KINDS: dict[str, TagKind] = {
    "taskList": TagKind.TASK_LIST,
    "taskItem": TagKind.LIST_ITEM,
    "canvas": TagKind.CANVAS,
    "details": TagKind.DETAILS,
    "detailsSummary": TagKind.DETAILS_SUMMARY,
    "detailsContent": TagKind.DETAILS_CONTENT,
    "block-math": TagKind.MATH_BLOCK,
    "inline-math": TagKind.MATH_INLINE,
    "mention": TagKind.MENTION,
    "tag": TagKind.MENTION,
    "emoji": TagKind.EMOJI,
}

INLINE_KINDS = frozenset({
    TagKind.HARD_BREAK,
    TagKind.BOLD,
    TagKind.ITALIC,
    TagKind.UNDERLINE,
    TagKind.STRIKE,
    TagKind.CODE,
    TagKind.SUBSCRIPT,
    TagKind.SUPERSCRIPT,
    TagKind.LINK,
    TagKind.HIGHLIGHT,
    TagKind.SPAN,
    TagKind.MENTION,
    TagKind.EMOJI,
    TagKind.MATH_INLINE,
})

SIMPLE_MARKS = {
    TagKind.BOLD: BOLD,
    TagKind.ITALIC: ITALIC,
    TagKind.UNDERLINE: UNDERLINE,
    TagKind.STRIKE: STRIKE,
    TagKind.CODE: CODE,
    TagKind.SUBSCRIPT: SUBSCRIPT,
    TagKind.SUPERSCRIPT: SUPERSCRIPT,
}

# Color classes emitted by Word import tools, read as highlights
COLOR_CLASS_HIGHLIGHTS: dict[str, str] = {
    "text-red": "#ffebee",
    "text-blue": "#e3f2fd",
    "text-green": "#e8f5e8",
}

KEPT_CLASSES = frozenset({"task-list", "task-item", "list-paragraph"}) | frozenset(
    COLOR_CLASS_HIGHLIGHTS
)
STYLED_TAGS = frozenset({"span", "mark"})

HEADING_TAG_PATTERN = re.compile(r"^h(\d+)$")
SELF_CLOSING_TABLE_PATTERN = re.compile(
    r"<(table|thead|tbody|tfoot|tr|td|th)(\s[^<>]*?)?\s*/>", re.IGNORECASE
)
WHITESPACE_PATTERN = re.compile(r"\s+")
STYLE_DECLARATION_PATTERN = re.compile(r"([\w-]+)\s*:\s*([^;]+)")

SKIPPED_STRINGS = (Comment, Declaration, Doctype, ProcessingInstruction)


def has_content(markup: str) -> bool:
    """Check whether editor markup holds anything worth exporting.

    Empty markup and a single empty paragraph (the editor's blank state)
    count as no content.
    """
    stripped = (markup or "").strip()
    if not stripped:
        return False
    return re.fullmatch(r"<p(\s[^>]*)?>\s*(<br\s*/?>)?\s*</p>", stripped, re.IGNORECASE) is None


def _int_attr(tag: Tag, name: str, default: int) -> int:
    try:
        return int(str(tag.get(name, default)).strip())
    except ValueError:
        return default


def _parse_style(tag: Tag) -> dict[str, str]:
    style = tag.get("style") or ""
    return {
        key.strip().lower(): value.strip()
        for key, value in STYLE_DECLARATION_PATTERN.findall(style)
    }


class MarkupImporter:
    """Parse editor markup into a Document."""

    def __init__(self) -> None:
        self._block_handlers: dict[TagKind, Callable[[Tag], list]] = {
            TagKind.PARAGRAPH: self._paragraph,
            TagKind.HEADING: self._heading,
            TagKind.BULLET_LIST: self._list,
            TagKind.ORDERED_LIST: self._list,
            TagKind.TASK_LIST: self._list,
            TagKind.LIST_ITEM: self._orphan_item,
            TagKind.BLOCKQUOTE: self._blockquote,
            TagKind.CODE_BLOCK: self._code_block,
            TagKind.TABLE: self._table,
            TagKind.TABLE_ROW: self._stray_table_part,
            TagKind.TABLE_CELL: self._stray_table_part,
            TagKind.HORIZONTAL_RULE: lambda tag: [HorizontalRule()],
            TagKind.IMAGE: self._image,
            TagKind.VIDEO: self._video,
            TagKind.CANVAS: self._canvas,
            TagKind.DETAILS: self._details,
            TagKind.DETAILS_SUMMARY: self._stray_summary,
            TagKind.DETAILS_CONTENT: self._blocks,
            TagKind.MATH_BLOCK: self._math_block,
            TagKind.HARD_BREAK: lambda tag: [],
        }

    def parse(self, markup: str) -> Document:
        """Convert editor markup to a Document.

        Args:
            markup: HTML produced by the editor (or pasted into it)

        Returns:
            Normalized Document
        """
        markup = SELF_CLOSING_TABLE_PATTERN.sub(r"<\1\2></\1>", markup or "")
        soup = BeautifulSoup(markup, "html.parser")
        self._strip_foreign_attributes(soup)
        return Document(children=self._blocks(soup))

    # -------------------------------------------------------------------------
    # Classification
    # -------------------------------------------------------------------------

    def _strip_foreign_attributes(self, soup: BeautifulSoup) -> None:
        """Drop presentation attributes the model has no place for."""
        for tag in soup.find_all(True):
            classes = [
                c for c in tag.get("class", [])
                if c in KEPT_CLASSES or c.startswith("language-")
            ]
            if classes:
                tag["class"] = classes
            elif "class" in tag.attrs:
                del tag["class"]
            if tag.name not in STYLED_TAGS and "style" in tag.attrs:
                del tag["style"]

    def classify(self, tag: Tag) -> TagKind:
        """Map an element to its TagKind."""
        data_type = tag.get("data-type")
        if data_type in DATA_TYPE_KINDS:
            return DATA_TYPE_KINDS[data_type]

        classes = tag.get("class", [])
        if "task-list" in classes:
            return TagKind.TASK_LIST
        if "task-item" in classes or "list-paragraph" in classes:
            return TagKind.LIST_ITEM

        name = (tag.name or "").lower()
        if HEADING_TAG_PATTERN.match(name):
            return TagKind.HEADING
        return TAG_KINDS.get(name, TagKind.UNKNOWN)

    # -------------------------------------------------------------------------
    # Block content
    # -------------------------------------------------------------------------

    def _blocks(self, parent: Tag) -> list:
        """Convert the children of ``parent`` to a normalized block list."""
        return self._children_to_blocks(list(parent.children))

    def _children_to_blocks(self, children: list) -> list:
        blocks: list = []
        pending: list = []

        for child in children:
            if isinstance(child, SKIPPED_STRINGS):
                continue
            if isinstance(child, NavigableString):
                pending.append(Text(WHITESPACE_PATTERN.sub(" ", str(child))))
                continue
            if not isinstance(child, Tag):
                continue

            kind = self.classify(child)
            if kind in INLINE_KINDS:
                pending.extend(self._inline_tag(child, kind, frozenset()))
            elif kind is TagKind.IGNORED:
                continue
            elif kind in (TagKind.CONTAINER, TagKind.UNKNOWN):
                if kind is TagKind.UNKNOWN:
                    logger.debug("Flattening unknown element <%s>", child.name)
                blocks.extend(self._segment(pending))
                pending = []
                blocks.extend(self._blocks(child))
            else:
                blocks.extend(self._segment(pending))
                pending = []
                blocks.extend(self._block_handlers[kind](child))

        blocks.extend(self._segment(pending))
        return list(normalize_blocks(blocks))

    def _segment(self, items: list) -> list:
        """Split mixed inline/hoisted-block content into blocks.

        Inline runs become paragraphs; whitespace-only runs are dropped.
        """
        blocks: list = []
        run: list = []
        for item in items + [None]:
            if isinstance(item, INLINE_TYPES):
                run.append(item)
                continue
            children = _trim(run)
            if children:
                blocks.append(Paragraph(children))
            run = []
            if item is not None:
                blocks.append(item)
        return blocks

    def _paragraph(self, tag: Tag) -> list:
        items = self._inlines(tag, frozenset())
        blocks = self._segment(items)
        if not blocks:
            return [Paragraph()]
        return blocks

    def _heading(self, tag: Tag) -> list:
        match = HEADING_TAG_PATTERN.match(tag.name.lower())
        level = int(match.group(1)) if match else 1
        items = self._inlines(tag, frozenset())
        inlines = [i for i in items if isinstance(i, INLINE_TYPES)]
        hoisted = [i for i in items if not isinstance(i, INLINE_TYPES)]
        return [Heading(level=level, children=_trim(inlines))] + hoisted

    def _list(self, tag: Tag) -> list:
        kind = self.classify(tag)
        item_tags = [c for c in tag.children if isinstance(c, Tag)]
        is_task = kind is TagKind.TASK_LIST or any(
            self._is_task_item(c) for c in item_tags if c.name == "li"
        )

        items: list[ListItem] = []
        for child in tag.children:
            if isinstance(child, SKIPPED_STRINGS):
                continue
            if isinstance(child, NavigableString):
                if str(child).strip():
                    items.append(self._wrap_item([Paragraph((Text(str(child).strip()),))], is_task))
                continue
            if not isinstance(child, Tag):
                continue

            child_kind = self.classify(child)
            if child_kind is TagKind.LIST_ITEM:
                items.append(self._list_item(child, is_task))
            elif child_kind in (TagKind.BULLET_LIST, TagKind.ORDERED_LIST, TagKind.TASK_LIST):
                nested = self._list(child)
                if items:
                    last = items[-1]
                    items[-1] = ListItem(last.children + tuple(nested), last.checked)
                else:
                    items.append(self._wrap_item(nested, is_task))
            elif child_kind is not TagKind.IGNORED:
                content = self._blocks(child)
                if content:
                    items.append(self._wrap_item(content, is_task))

        if is_task:
            return [TaskList(items=items)]
        if kind is TagKind.ORDERED_LIST:
            return [OrderedList(items=items, start=_int_attr(tag, "start", 1))]
        return [BulletList(items=items)]

    def _wrap_item(self, blocks: list, is_task: bool) -> ListItem:
        return ListItem(children=blocks, checked=False if is_task else None)

    def _is_task_item(self, tag: Tag) -> bool:
        return tag.get("data-type") == "taskItem" or "task-item" in tag.get("class", [])

    def _item_checked(self, tag: Tag) -> bool:
        flag = tag.get("data-checked")
        if flag is not None:
            return str(flag).lower() == "true"
        checkbox = tag.find("input", attrs={"type": "checkbox"})
        return checkbox is not None and checkbox.has_attr("checked")

    def _list_item(self, tag: Tag, is_task: bool) -> ListItem:
        checked: Optional[bool] = None
        if is_task:
            checked = self._item_checked(tag)
        return ListItem(children=self._blocks(tag), checked=checked)

    def _orphan_item(self, tag: Tag) -> list:
        """A list item outside any list; regrouped by normalization."""
        is_task = self._is_task_item(tag)
        return [self._list_item(tag, is_task)]

    def _blockquote(self, tag: Tag) -> list:
        return [Blockquote(children=self._blocks(tag))]

    def _code_block(self, tag: Tag) -> list:
        code_tag = tag.find("code")
        language = None
        for candidate in (code_tag, tag):
            if candidate is None:
                continue
            for css_class in candidate.get("class", []):
                if css_class.startswith("language-"):
                    language = css_class[len("language-"):] or None
                    break
            if language:
                break
        return [CodeBlock(code=tag.get_text(), language=language)]

    def _table(self, tag: Tag) -> list:
        rows = [
            TableRow(cells=self._row_cells(row))
            for row in tag.find_all("tr")
            if row.find_parent("table") is tag
        ]
        rows = [row for row in rows if row.cells]
        if not rows:
            return []
        return [Table(rows=rows)]

    def _row_cells(self, row: Tag) -> list[TableCell]:
        return [
            TableCell(
                children=self._blocks(cell),
                is_header=cell.name == "th",
                colspan=max(1, _int_attr(cell, "colspan", 1)),
                rowspan=max(1, _int_attr(cell, "rowspan", 1)),
            )
            for cell in row.find_all(["td", "th"], recursive=False)
        ]

    def _stray_table_part(self, tag: Tag) -> list:
        logger.debug("Flattening <%s> outside of a table", tag.name)
        return self._blocks(tag)

    def _image(self, tag: Tag) -> list:
        src = (tag.get("src") or "").strip()
        if not src:
            return []
        return [Image(src=src, alt=tag.get("alt") or "", title=tag.get("title") or "")]

    def _video(self, tag: Tag) -> list:
        src = (tag.get("src") or "").strip()
        if not src:
            return []
        return [VideoEmbed.from_url(src)]

    def _canvas(self, tag: Tag) -> list:
        raw = tag.get("data-lines") or "[]"
        try:
            lines = json.loads(raw)
        except (TypeError, ValueError) as exc:
            logger.warning("Unreadable canvas stroke data, importing empty canvas: %s", exc)
            return [Canvas()]
        if not isinstance(lines, list):
            logger.warning("Canvas stroke data is not a list, importing empty canvas")
            return [Canvas()]

        strokes = []
        for line in lines:
            if not isinstance(line, dict) or not isinstance(line.get("path"), str):
                continue
            width = line.get("size", line.get("width", 2))
            if not isinstance(width, (int, float)):
                width = 2
            strokes.append(Stroke(
                path=line["path"],
                color=str(line.get("color") or "#000000"),
                width=width,
            ))
        return [Canvas(strokes=strokes)]

    def _details(self, tag: Tag) -> list:
        summary: Optional[list] = None
        content: list = []
        loose: list = []
        for child in tag.children:
            kind = self.classify(child) if isinstance(child, Tag) else None
            if kind is TagKind.DETAILS_SUMMARY and summary is None:
                summary = [i for i in self._inlines(child, frozenset()) if isinstance(i, INLINE_TYPES)]
            elif kind is TagKind.DETAILS_CONTENT:
                content.extend(self._blocks(child))
            else:
                loose.append(child)
        content.extend(self._children_to_blocks(loose))

        is_open = tag.has_attr("open") or str(tag.get("data-open", "")).lower() == "true"
        return [Details(
            summary=DetailsSummary(_trim(summary or [])),
            content=DetailsContent(normalize_blocks(content)),
            open=is_open,
        )]

    def _stray_summary(self, tag: Tag) -> list:
        return self._paragraph(tag)

    def _math_block(self, tag: Tag) -> list:
        return [MathBlock(latex=tag.get("data-latex") or tag.get_text().strip())]

    # -------------------------------------------------------------------------
    # Inline content
    # -------------------------------------------------------------------------

    def _inlines(self, parent: Tag, marks: frozenset) -> list:
        """Convert children to inline nodes; block elements are hoisted out."""
        items: list = []
        for child in parent.children:
            if isinstance(child, SKIPPED_STRINGS):
                continue
            if isinstance(child, NavigableString):
                items.append(Text(WHITESPACE_PATTERN.sub(" ", str(child)), marks))
            elif isinstance(child, Tag):
                kind = self.classify(child)
                if kind in INLINE_KINDS:
                    items.extend(self._inline_tag(child, kind, marks))
                elif kind in (TagKind.CONTAINER, TagKind.UNKNOWN):
                    items.extend(self._inlines(child, marks))
                elif kind is not TagKind.IGNORED:
                    items.extend(self._block_handlers[kind](child))
        return items

    def _inline_tag(self, tag: Tag, kind: TagKind, marks: frozenset) -> list:
        if kind is TagKind.HARD_BREAK:
            return [HardBreak()]
        if kind in SIMPLE_MARKS:
            return self._inlines(tag, add_mark(marks, SIMPLE_MARKS[kind]))
        if kind is TagKind.LINK:
            href = tag.get("href")
            if not href:
                return self._inlines(tag, marks)
            return self._inlines(tag, add_mark(marks, link(href, tag.get("target"))))
        if kind is TagKind.HIGHLIGHT:
            color = tag.get("data-color") or _parse_style(tag).get("background-color")
            return self._inlines(tag, add_mark(marks, highlight(color)))
        if kind is TagKind.SPAN:
            return self._inlines(tag, self._span_marks(tag, marks))
        if kind is TagKind.MENTION:
            prefix = "#" if tag.get("data-type") == "tag" else "@"
            text = tag.get_text().strip().lstrip(prefix)
            mention_id = tag.get("data-id") or text
            if tag.has_attr("data-label"):
                label = tag["data-label"]
            else:
                # Text that only repeats the id is the display fallback
                label = "" if text == mention_id else text
            return [MentionRef(
                kind="tag" if prefix == "#" else "user",
                id=mention_id,
                label=label,
            )]
        if kind is TagKind.EMOJI:
            name = tag.get("data-name") or tag.get_text().strip().strip(":")
            return [Emoji(shortcode=name)] if name else []
        if kind is TagKind.MATH_INLINE:
            return [MathInline(latex=tag.get("data-latex") or tag.get_text().strip())]
        return self._inlines(tag, marks)

    def _span_marks(self, tag: Tag, marks: frozenset) -> frozenset:
        for css_class in tag.get("class", []):
            if css_class in COLOR_CLASS_HIGHLIGHTS:
                marks = add_mark(marks, highlight(COLOR_CLASS_HIGHLIGHTS[css_class]))
        style = _parse_style(tag)
        if style.get("color"):
            marks = add_mark(marks, text_color(style["color"]))
        if style.get("font-family"):
            marks = add_mark(marks, font_family(style["font-family"].strip("'\"")))
        return marks


def _trim(inlines: list) -> tuple:
    """Strip whitespace at the edges of a run and merge adjacent texts.

    Returns an empty tuple when the run holds no visible content.
    """
    children = list(merge_text_runs(inlines))
    while children and isinstance(children[0], Text) and not children[0].value.strip():
        children.pop(0)
    while children and isinstance(children[-1], Text) and not children[-1].value.strip():
        children.pop()
    if children and isinstance(children[0], Text):
        children[0] = Text(children[0].value.lstrip(), children[0].marks)
    if children and isinstance(children[-1], Text):
        children[-1] = Text(children[-1].value.rstrip(), children[-1].marks)
    if all(isinstance(c, HardBreak) for c in children):
        return ()
    return tuple(children)


def parse(markup: str) -> Document:
    """Parse editor markup into a Document."""
    return MarkupImporter().parse(markup)
