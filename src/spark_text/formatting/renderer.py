"""Markup renderer: document model back to canonical editor HTML.

The output is the form the markup importer reads back, so
``parse(render(doc))`` reproduces a normalized document.
"""

import json

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
    ListItem,
    Mark,
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
    sort_marks,
)


def escape_text(text: str) -> str:
    """Escape text content for HTML."""
    return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def escape_attr(value: str) -> str:
    """Escape an attribute value for a double-quoted HTML attribute."""
    return escape_text(value).replace('"', "&quot;")


def _attrs(**attributes) -> str:
    parts = []
    for name, value in attributes.items():
        if value is None or value is False:
            continue
        name = name.rstrip("_").replace("_", "-")
        if value is True:
            parts.append(f" {name}")
        else:
            parts.append(f' {name}="{escape_attr(str(value))}"')
    return "".join(parts)


SIMPLE_MARK_TAGS = {
    MarkType.BOLD: "strong",
    MarkType.ITALIC: "em",
    MarkType.UNDERLINE: "u",
    MarkType.STRIKE: "s",
    MarkType.CODE: "code",
    MarkType.SUBSCRIPT: "sub",
    MarkType.SUPERSCRIPT: "sup",
}


class MarkupRenderer:
    """Render a Document to editor markup."""

    def __init__(self) -> None:
        self._block_renderers = {
            Paragraph: self._paragraph,
            Heading: self._heading,
            BulletList: self._bullet_list,
            OrderedList: self._ordered_list,
            TaskList: self._task_list,
            Blockquote: self._blockquote,
            CodeBlock: self._code_block,
            Table: self._table,
            HorizontalRule: lambda node: "<hr>",
            Image: self._image,
            VideoEmbed: self._video,
            Canvas: self._canvas,
            Details: self._details,
            MathBlock: self._math_block,
        }

    def render(self, document: Document) -> str:
        return self.render_blocks(document.children)

    def render_blocks(self, blocks) -> str:
        # ListItems never appear outside a list in the output
        return "".join(
            self._block_renderers[type(block)](block)
            for block in group_list_items(blocks)
            if type(block) in self._block_renderers
        )

    # -------------------------------------------------------------------------
    # Inline
    # -------------------------------------------------------------------------

    def render_inlines(self, children) -> str:
        return "".join(self._inline(node) for node in children)

    def _inline(self, node) -> str:
        if isinstance(node, Text):
            return self._text(node)
        if isinstance(node, HardBreak):
            return "<br>"
        if isinstance(node, MentionRef):
            data_type = "tag" if node.kind == "tag" else "mention"
            return (
                f"<span{_attrs(data_type=data_type, data_id=node.id, data_label=node.label or None)}>"
                f"{escape_text(node.display)}</span>"
            )
        if isinstance(node, Emoji):
            return (
                f"<span{_attrs(data_type='emoji', data_name=node.shortcode)}>"
                f":{escape_text(node.shortcode)}:</span>"
            )
        if isinstance(node, MathInline):
            return f"<span{_attrs(data_type='inline-math', data_latex=node.latex)}></span>"
        return ""

    def _text(self, node: Text) -> str:
        html = escape_text(node.value)
        for mark in reversed(sort_marks(node.marks)):
            opening, closing = self._mark_tags(mark)
            html = f"{opening}{html}{closing}"
        return html

    def _mark_tags(self, mark: Mark) -> tuple[str, str]:
        if mark.type in SIMPLE_MARK_TAGS:
            tag = SIMPLE_MARK_TAGS[mark.type]
            return f"<{tag}>", f"</{tag}>"
        if mark.type is MarkType.LINK:
            return f"<a{_attrs(href=mark.href or '', target=mark.target)}>", "</a>"
        if mark.type is MarkType.HIGHLIGHT:
            if mark.color:
                style = f"background-color: {mark.color}; color: inherit"
                return f"<mark{_attrs(data_color=mark.color, style=style)}>", "</mark>"
            return "<mark>", "</mark>"
        if mark.type is MarkType.TEXT_COLOR:
            return f"<span{_attrs(style=f'color: {mark.color}')}>", "</span>"
        if mark.type is MarkType.FONT_FAMILY:
            return f"<span{_attrs(style=f'font-family: {mark.name}')}>", "</span>"
        return "", ""

    # -------------------------------------------------------------------------
    # Blocks
    # -------------------------------------------------------------------------

    def _paragraph(self, node: Paragraph) -> str:
        return f"<p>{self.render_inlines(node.children)}</p>"

    def _heading(self, node: Heading) -> str:
        return f"<h{node.level}>{self.render_inlines(node.children)}</h{node.level}>"

    def _items(self, items) -> str:
        return "".join(f"<li>{self.render_blocks(item.children)}</li>" for item in items)

    def _bullet_list(self, node: BulletList) -> str:
        return f"<ul>{self._items(node.items)}</ul>"

    def _ordered_list(self, node: OrderedList) -> str:
        start = node.start if node.start != 1 else None
        return f"<ol{_attrs(start=start)}>{self._items(node.items)}</ol>"

    def _task_list(self, node: TaskList) -> str:
        items = "".join(self._task_item(item) for item in node.items)
        return f'<ul data-type="taskList">{items}</ul>'

    def _task_item(self, item: ListItem) -> str:
        checked = bool(item.checked)
        return (
            f'<li data-type="taskItem" data-checked="{str(checked).lower()}">'
            f'<label><input type="checkbox"{_attrs(checked=checked)}></label>'
            f"<div>{self.render_blocks(item.children)}</div></li>"
        )

    def _blockquote(self, node: Blockquote) -> str:
        return f"<blockquote>{self.render_blocks(node.children)}</blockquote>"

    def _code_block(self, node: CodeBlock) -> str:
        css_class = f"language-{node.language}" if node.language else None
        return f"<pre><code{_attrs(class_=css_class)}>{escape_text(node.code)}</code></pre>"

    def _table(self, node: Table) -> str:
        rows = []
        for row in node.rows:
            cells = []
            for cell in row.cells:
                tag = "th" if cell.is_header else "td"
                attrs = _attrs(
                    colspan=cell.colspan if cell.colspan != 1 else None,
                    rowspan=cell.rowspan if cell.rowspan != 1 else None,
                )
                cells.append(f"<{tag}{attrs}>{self.render_blocks(cell.children)}</{tag}>")
            rows.append(f"<tr>{''.join(cells)}</tr>")
        return f"<table><tbody>{''.join(rows)}</tbody></table>"

    def _image(self, node: Image) -> str:
        return f"<img{_attrs(src=node.src, alt=node.alt, title=node.title or None)}>"

    def _video(self, node: VideoEmbed) -> str:
        iframe = f"<iframe{_attrs(src=node.embed_url, allowfullscreen=True)}></iframe>"
        if node.provider == "youtube":
            return f"<div data-youtube-video>{iframe}</div>"
        return f"<div>{iframe}</div>"

    def _canvas(self, node: Canvas) -> str:
        lines = json.dumps(
            [{"path": s.path, "color": s.color, "size": s.width} for s in node.strokes],
            ensure_ascii=False,
        )
        return f"<div{_attrs(data_type='canvas', data_lines=lines)}></div>"

    def _details(self, node: Details) -> str:
        return (
            f'<details{_attrs(open=node.open)}>'
            f"<summary>{self.render_inlines(node.summary.children)}</summary>"
            f'<div data-type="detailsContent">{self.render_blocks(node.content.children)}</div>'
            f"</details>"
        )

    def _math_block(self, node: MathBlock) -> str:
        return f"<div{_attrs(data_type='block-math', data_latex=node.latex)}></div>"


def render(document: Document) -> str:
    """Render a Document to canonical editor markup."""
    return MarkupRenderer().render(document)
