"""Tests for the markup importer."""

import logging

import pytest

from spark_text.formatting.ir import (
    Blockquote,
    BulletList,
    Canvas,
    CodeBlock,
    Details,
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
)
from spark_text.formatting.markup import MarkupImporter, has_content, parse


class TestHasContent:
    """Tests for the degenerate-content guard."""

    @pytest.mark.parametrize("markup", ["", "   ", "<p></p>", "<p><br></p>", "<p> <br/> </p>"])
    def test_no_content(self, markup: str):
        """Test that blank markup and a single empty paragraph are no content."""
        assert has_content(markup) is False

    @pytest.mark.parametrize("markup", ["<p>x</p>", "<p></p><p></p>", "<hr>"])
    def test_content(self, markup: str):
        """Test that anything else counts as content."""
        assert has_content(markup) is True


class TestMarkupImporter:
    """Tests for the MarkupImporter class."""

    @pytest.fixture
    def importer(self) -> MarkupImporter:
        return MarkupImporter()

    def test_paragraph_with_marks(self, importer: MarkupImporter):
        """Test nested inline marks."""
        doc = importer.parse("<p>a <strong>b <em>c</em></strong></p>")
        para = doc.children[0]
        assert isinstance(para, Paragraph)
        assert para.children[0] == Text("a ")
        assert para.children[1].value == "b "
        assert para.children[1].has(MarkType.BOLD)
        assert para.children[2].value == "c"
        assert para.children[2].has(MarkType.BOLD)
        assert para.children[2].has(MarkType.ITALIC)

    def test_empty_paragraph_kept(self, importer: MarkupImporter):
        """Test that an empty paragraph imports as an empty paragraph."""
        doc = importer.parse("<p></p>")
        assert doc.children == (Paragraph(),)

    @pytest.mark.parametrize("tag,level", [("h0", 1), ("h1", 1), ("h3", 3), ("h9", 6)])
    def test_heading_levels_clamped(self, importer: MarkupImporter, tag: str, level: int):
        """Test that out-of-range heading levels are clamped."""
        doc = importer.parse(f"<{tag}>Title</{tag}>")
        assert isinstance(doc.children[0], Heading)
        assert doc.children[0].level == level

    def test_orphan_items_grouped(self, importer: MarkupImporter):
        """Test that list items outside a list are regrouped."""
        doc = importer.parse("<li>a</li><li>b</li><p>x</p><li>c</li>")
        assert [type(b) for b in doc.children] == [BulletList, Paragraph, BulletList]
        assert len(doc.children[0].items) == 2

    def test_list_paragraph_class_items_grouped(self, importer: MarkupImporter):
        """Test that Word-style list paragraphs become list items."""
        doc = importer.parse('<p class="list-paragraph">uno</p><p class="list-paragraph">dos</p>')
        assert len(doc.children) == 1
        assert isinstance(doc.children[0], BulletList)

    def test_ordered_list_start(self, importer: MarkupImporter):
        """Test ordered list start attribute."""
        doc = importer.parse('<ol start="4"><li><p>d</p></li></ol>')
        assert isinstance(doc.children[0], OrderedList)
        assert doc.children[0].start == 4

    def test_nested_list_attaches_to_last_item(self, importer: MarkupImporter):
        """Test that a list directly inside a list joins the previous item."""
        doc = importer.parse("<ul><li>a</li><ul><li>b</li></ul></ul>")
        outer = doc.children[0]
        assert len(outer.items) == 1
        assert isinstance(outer.items[0].children[-1], BulletList)

    def test_task_list(self, importer: MarkupImporter):
        """Test editor task list markup."""
        doc = importer.parse(
            '<ul data-type="taskList">'
            '<li data-type="taskItem" data-checked="true"><label><input type="checkbox" checked></label><div><p>Hecho</p></div></li>'
            '<li data-type="taskItem" data-checked="false"><label><input type="checkbox"></label><div><p>Pendiente</p></div></li>'
            "</ul>"
        )
        task_list = doc.children[0]
        assert isinstance(task_list, TaskList)
        assert [i.checked for i in task_list.items] == [True, False]
        assert task_list.items[0].children == (Paragraph((Text("Hecho"),)),)

    def test_task_list_by_class(self, importer: MarkupImporter):
        """Test task lists written with classes and checkboxes."""
        doc = importer.parse(
            '<ul class="task-list"><li class="task-item"><input type="checkbox" checked> listo</li></ul>'
        )
        assert isinstance(doc.children[0], TaskList)
        assert doc.children[0].items[0].checked is True

    def test_code_block_language(self, importer: MarkupImporter):
        """Test code block language class and literal content."""
        doc = importer.parse('<pre><code class="language-python">x = 1 &lt; 2</code></pre>')
        assert doc.children[0] == CodeBlock(code="x = 1 < 2", language="python")

    def test_table_spans(self, importer: MarkupImporter):
        """Test table header cells and spans."""
        doc = importer.parse(
            "<table><tr><th colspan=\"2\">H</th></tr><tr><td>a</td><td rowspan=\"2\">b</td></tr></table>"
        )
        table = doc.children[0]
        assert isinstance(table, Table)
        assert table.rows[0].cells[0].is_header
        assert table.rows[0].cells[0].colspan == 2
        assert table.rows[1].cells[1].rowspan == 2
        assert table.column_count == 2

    def test_self_closing_table_cells(self, importer: MarkupImporter):
        """Test that self-closing cells are expanded into empty cells."""
        doc = importer.parse("<table><tr><td/><td>x</td></tr></table>")
        cells = doc.children[0].rows[0].cells
        assert len(cells) == 2
        assert cells[0].children == ()

    def test_unknown_tags_flattened(self, importer: MarkupImporter, caplog):
        """Test that unknown elements are replaced by their children."""
        with caplog.at_level(logging.DEBUG, logger="spark_text.formatting.markup"):
            doc = importer.parse("<custom-box><p>dentro</p></custom-box>")
        assert doc.children == (Paragraph((Text("dentro"),)),)
        assert "custom-box" in caplog.text

    def test_bare_text_becomes_paragraph(self, importer: MarkupImporter):
        """Test loose inline content at the top level."""
        doc = importer.parse("hola <b>mundo</b>")
        assert isinstance(doc.children[0], Paragraph)
        assert doc.children[0].children[1].has(MarkType.BOLD)

    def test_link(self, importer: MarkupImporter):
        """Test link href and target."""
        doc = importer.parse('<p><a href="https://x.org" target="_blank">x</a></p>')
        mark = doc.children[0].children[0].get(MarkType.LINK)
        assert mark.href == "https://x.org"
        assert mark.target == "_blank"

    def test_color_class_becomes_highlight(self, importer: MarkupImporter):
        """Test Word color classes mapped to highlights."""
        doc = importer.parse('<p><span class="text-red">rojo</span></p>')
        mark = doc.children[0].children[0].get(MarkType.HIGHLIGHT)
        assert mark.color == "#ffebee"

    def test_span_styles(self, importer: MarkupImporter):
        """Test text color and font family from span styles."""
        doc = importer.parse('<p><span style="color: #ff0000; font-family: \'Arial\'">x</span></p>')
        run = doc.children[0].children[0]
        assert run.get(MarkType.TEXT_COLOR).color == "#ff0000"
        assert run.get(MarkType.FONT_FAMILY).name == "Arial"

    def test_foreign_styles_ignored(self, importer: MarkupImporter):
        """Test that styles on other elements are dropped."""
        doc = importer.parse('<p style="color: red">x</p>')
        assert doc.children[0] == Paragraph((Text("x"),))

    def test_highlight_color(self, importer: MarkupImporter):
        """Test mark color from data-color."""
        doc = importer.parse('<p><mark data-color="#fff59d">x</mark></p>')
        assert doc.children[0].children[0].get(MarkType.HIGHLIGHT).color == "#fff59d"

    def test_hard_break(self, importer: MarkupImporter):
        """Test line breaks inside a paragraph."""
        doc = importer.parse("<p>a<br>b</p>")
        assert doc.children[0].children == (Text("a"), HardBreak(), Text("b"))

    def test_inline_atoms(self, importer: MarkupImporter):
        """Test mentions, emoji and inline math."""
        doc = importer.parse(
            '<p><span data-type="mention" data-id="7" data-label="ana">@ana</span> '
            '<span data-type="emoji" data-name="smile">:smile:</span> '
            '<span data-type="inline-math" data-latex="x^2"></span></p>'
        )
        children = doc.children[0].children
        assert children[0] == MentionRef(kind="user", id="7", label="ana")
        assert Emoji("smile") in children
        assert MathInline("x^2") in children

    def test_image_and_rule(self, importer: MarkupImporter):
        """Test images and horizontal rules."""
        doc = importer.parse('<img src="a.png" alt="Logo"><hr>')
        assert doc.children == (Image(src="a.png", alt="Logo"), HorizontalRule())

    def test_image_hoisted_from_paragraph(self, importer: MarkupImporter):
        """Test that block content inside a paragraph is hoisted out."""
        doc = importer.parse('<p>antes <img src="a.png"> despues</p>')
        assert [type(b) for b in doc.children] == [Paragraph, Image, Paragraph]

    def test_video(self, importer: MarkupImporter):
        """Test YouTube iframes."""
        doc = importer.parse(
            '<div data-youtube-video><iframe src="https://www.youtube.com/embed/abc"></iframe></div>'
        )
        assert doc.children == (VideoEmbed("youtube", "abc"),)

    def test_canvas(self, importer: MarkupImporter):
        """Test canvas stroke data."""
        doc = importer.parse(
            '<div data-type="canvas" data-lines=\'[{"path": "M0 0 L1 1", "color": "#f00", "size": 3}]\'></div>'
        )
        canvas = doc.children[0]
        assert isinstance(canvas, Canvas)
        assert canvas.strokes[0].path == "M0 0 L1 1"
        assert canvas.strokes[0].width == 3

    def test_canvas_bad_json(self, importer: MarkupImporter, caplog):
        """Test that unreadable stroke data yields an empty canvas."""
        with caplog.at_level(logging.WARNING):
            doc = importer.parse('<div data-type="canvas" data-lines="not json"></div>')
        assert doc.children == (Canvas(),)
        assert "canvas" in caplog.text.lower()

    def test_details(self, importer: MarkupImporter):
        """Test collapsible sections."""
        doc = importer.parse(
            "<details open><summary>Más</summary>"
            '<div data-type="detailsContent"><p>oculto</p></div></details>'
        )
        details = doc.children[0]
        assert isinstance(details, Details)
        assert details.open is True
        assert details.summary.children == (Text("Más"),)
        assert details.content.children == (Paragraph((Text("oculto"),)),)

    def test_math_block(self, importer: MarkupImporter):
        """Test block math."""
        doc = importer.parse('<div data-type="block-math" data-latex="E=mc^2"></div>')
        assert doc.children == (MathBlock("E=mc^2"),)

    def test_blockquote(self, importer: MarkupImporter):
        """Test blockquotes."""
        doc = importer.parse("<blockquote><p>cita</p></blockquote>")
        assert doc.children == (Blockquote(children=(Paragraph((Text("cita"),)),)),)

    def test_comments_and_scripts_skipped(self):
        """Test that comments and scripts never reach the document."""
        doc = parse("<!-- nota --><script>alert(1)</script><p>x</p>")
        assert doc.children == (Paragraph((Text("x"),)),)

    def test_consecutive_empty_paragraphs_collapse(self):
        """Test that runs of empty paragraphs collapse to one."""
        doc = parse("<p>a</p><p></p><p><br></p><p></p><p>b</p>")
        assert len(doc.children) == 3
