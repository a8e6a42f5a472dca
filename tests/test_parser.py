"""Tests for the markdown parser."""

import pytest

from spark_text.formatting.ir import (
    BulletList,
    CodeBlock,
    Heading,
    MarkType,
    OrderedList,
    Paragraph,
    Text,
)
from spark_text.formatting.parser import MarkdownParser, from_markdown


class TestMarkdownParser:
    """Tests for the MarkdownParser class."""

    @pytest.fixture
    def parser(self) -> MarkdownParser:
        """Create a parser instance."""
        return MarkdownParser()

    def test_parse_plain_text(self, parser: MarkdownParser):
        """Test parsing plain text without formatting."""
        doc = parser.parse("Hello, world!")

        assert doc.children == (Paragraph((Text("Hello, world!"),)),)

    def test_parse_bold_text(self, parser: MarkdownParser):
        """Test parsing bold text."""
        runs = parser.parse("This is **bold** text").children[0].children

        assert runs[0] == Text("This is ")
        assert runs[1].value == "bold"
        assert runs[1].has(MarkType.BOLD)
        assert runs[2] == Text(" text")

    def test_parse_underscore_bold(self, parser: MarkdownParser):
        """Test __bold__ delimiters."""
        runs = parser.parse("__fuerte__").children[0].children
        assert runs[0].has(MarkType.BOLD)

    def test_parse_italic_text(self, parser: MarkdownParser):
        """Test parsing italic text."""
        runs = parser.parse("She *ran* quickly").children[0].children

        assert runs[1].value == "ran"
        assert runs[1].has(MarkType.ITALIC)
        assert not runs[1].has(MarkType.BOLD)

    def test_parse_bold_italic_text(self, parser: MarkdownParser):
        """Test parsing bold+italic text."""
        runs = parser.parse("This is ***important*** stuff").children[0].children

        assert runs[1].value == "important"
        assert runs[1].has(MarkType.BOLD)
        assert runs[1].has(MarkType.ITALIC)

    def test_underscores_inside_words_are_literal(self, parser: MarkdownParser):
        """Test that snake_case identifiers are not italicized."""
        doc = parser.parse("use snake_case_name here")
        assert doc.children[0].children == (Text("use snake_case_name here"),)

    def test_inline_code_is_literal(self, parser: MarkdownParser):
        """Test that inline code contents are not parsed."""
        runs = parser.parse("run `a **b**` now").children[0].children
        assert runs[1].value == "a **b**"
        assert runs[1].has(MarkType.CODE)
        assert not runs[1].has(MarkType.BOLD)

    def test_link(self, parser: MarkdownParser):
        """Test inline links."""
        runs = parser.parse("see [the docs](https://x.org) now").children[0].children
        assert runs[1].value == "the docs"
        assert runs[1].get(MarkType.LINK).href == "https://x.org"

    def test_unmatched_delimiters_literal(self, parser: MarkdownParser):
        """Test that unmatched markers stay as text."""
        doc = parser.parse("2 * 3 and **open")
        assert doc.children[0].children == (Text("2 * 3 and **open"),)

    def test_headings(self, parser: MarkdownParser):
        """Test heading levels."""
        doc = parser.parse("# One\n### Three")
        assert doc.children == (
            Heading(level=1, children=(Text("One"),)),
            Heading(level=3, children=(Text("Three"),)),
        )

    def test_seven_hashes_is_text(self, parser: MarkdownParser):
        """Test that more than six hashes is not a heading."""
        doc = parser.parse("####### no")
        assert isinstance(doc.children[0], Paragraph)

    def test_parse_multiple_paragraphs(self, parser: MarkdownParser):
        """Test parsing multiple paragraphs."""
        doc = parser.parse("First paragraph.\n\nSecond paragraph.")

        assert len(doc.children) == 2
        assert doc.plain_text == "First paragraph.\nSecond paragraph."

    def test_lines_join_into_paragraph(self, parser: MarkdownParser):
        """Test that consecutive lines form one paragraph."""
        doc = parser.parse("one\ntwo")
        assert doc.children == (Paragraph((Text("one two"),)),)

    def test_bullet_list(self, parser: MarkdownParser):
        """Test * bullet items."""
        doc = parser.parse("* a\n* b")
        assert len(doc.children) == 1
        assert isinstance(doc.children[0], BulletList)
        assert len(doc.children[0].items) == 2

    def test_numbered_list_start(self, parser: MarkdownParser):
        """Test that a numbered list starts at its first number."""
        doc = parser.parse("3. c\n4. d")
        assert isinstance(doc.children[0], OrderedList)
        assert doc.children[0].start == 3

    def test_list_kind_change_splits(self, parser: MarkdownParser):
        """Test that switching marker kinds starts a new list."""
        doc = parser.parse("* a\n1. b")
        assert [type(b) for b in doc.children] == [BulletList, OrderedList]

    def test_fenced_code(self, parser: MarkdownParser):
        """Test fenced code with a language."""
        doc = parser.parse("```python\nx = 1\n\ny = 2\n```")
        assert doc.children == (CodeBlock(code="x = 1\n\ny = 2", language="python"),)

    def test_unclosed_fence_is_text(self, parser: MarkdownParser):
        """Test that a fence without a closing line stays literal."""
        doc = parser.parse("```\ncode")
        assert doc.children == (Paragraph((Text("``` code"),)),)

    def test_parser_reusable(self, parser: MarkdownParser):
        """Test that one parser instance can parse repeatedly."""
        parser.parse("* a")
        doc = parser.parse("plain")
        assert doc.children == (Paragraph((Text("plain"),)),)

    def test_from_markdown(self):
        """Test the module-level helper."""
        assert from_markdown("").children == ()
