"""Core data models for Spark Text.

Re-exports the IR models for convenience.
"""

from spark_text.formatting.ir import (
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
    ListItem,
    Mark,
    MarkType,
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
)

__all__ = [
    "Blockquote",
    "BulletList",
    "Canvas",
    "CodeBlock",
    "Details",
    "DetailsContent",
    "DetailsSummary",
    "Document",
    "Emoji",
    "HardBreak",
    "Heading",
    "HorizontalRule",
    "Image",
    "ListItem",
    "Mark",
    "MarkType",
    "MathBlock",
    "MathInline",
    "MentionRef",
    "OrderedList",
    "Paragraph",
    "Stroke",
    "Table",
    "TableCell",
    "TableRow",
    "TaskList",
    "Text",
    "VideoEmbed",
]
