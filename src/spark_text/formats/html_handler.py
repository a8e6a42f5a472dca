"""HTML file handler.

Reading goes through the markup importer. Writing wraps the canonical
markup in a standalone, styled page.
"""

from pathlib import Path
from typing import Optional

from bs4 import BeautifulSoup

from spark_text.formats.base import FormatHandler
from spark_text.formatting.ir import Document
from spark_text.formatting.labels import get_labels
from spark_text.formatting.markup import MarkupImporter
from spark_text.formatting.renderer import MarkupRenderer, escape_text
from spark_text.options import HTMLOptions

STYLESHEET = """
body {
  font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", Roboto, sans-serif;
  line-height: 1.6;
  max-width: 800px;
  margin: 0 auto;
  padding: 40px 20px;
  color: #333;
  background: #fff;
}
header { border-bottom: 2px solid #e0e0e0; margin-bottom: 30px; padding-bottom: 20px; }
header h1 { margin: 0 0 8px; color: #2c3e50; }
header .date { color: #7f8c8d; font-size: 0.9em; }
h1, h2, h3, h4, h5, h6 { color: #2c3e50; margin-top: 1.5em; }
blockquote { border-left: 4px solid #3498db; margin: 1em 0; padding: 0.5em 1em; background: #f8f9fa; color: #555; }
pre { background: #f4f4f4; border-radius: 4px; padding: 1em; overflow-x: auto; }
code { font-family: "Courier New", monospace; background: #f4f4f4; padding: 0.1em 0.3em; border-radius: 3px; }
pre code { background: none; padding: 0; }
table { border-collapse: collapse; width: 100%; margin: 1em 0; }
th, td { border: 1px solid #ddd; padding: 8px 12px; text-align: left; }
th { background: #f2f2f2; font-weight: bold; }
img { max-width: 100%; height: auto; }
mark { background: #fff59d; padding: 0.1em 0.2em; }
ul[data-type="taskList"] { list-style: none; padding-left: 0.5em; }
ul[data-type="taskList"] li { display: flex; gap: 0.5em; }
[data-youtube-video] iframe { width: 100%; aspect-ratio: 16 / 9; border: 0; }
details { border: 1px solid #e0e0e0; border-radius: 4px; padding: 0.5em 1em; margin: 1em 0; }
summary { cursor: pointer; font-weight: bold; }
footer { border-top: 1px solid #e0e0e0; margin-top: 40px; padding-top: 20px; color: #7f8c8d; font-size: 0.85em; text-align: center; }
""".strip()


class HTMLHandler(FormatHandler):
    """Handler for HTML (.html) files."""

    def __init__(self, options: Optional[HTMLOptions] = None) -> None:
        self.options = options or HTMLOptions()

    @property
    def supported_extensions(self) -> tuple[str, ...]:
        return (".html", ".htm")

    def read(self, path: Path) -> Document:
        """Import an HTML file with the markup importer.

        Pages written by this handler are read back from their
        ``<main>`` element only, leaving out the header and footer.
        """
        markup = self.read_text(path)
        main = BeautifulSoup(markup, "html.parser").find("main")
        if main is not None:
            markup = main.decode_contents()
        return MarkupImporter().parse(markup)

    def render(self, document: Document, title: Optional[str] = None) -> str:
        """Render the document as a complete HTML page."""
        labels = get_labels(self.options.locale)
        title = escape_text(title or document.title or "")
        body = MarkupRenderer().render(document)

        head = [
            '<meta charset="utf-8">',
            '<meta name="viewport" content="width=device-width, initial-scale=1">',
            f"<title>{title}</title>",
        ]
        if self.options.include_styles:
            head.append(f"<style>\n{STYLESHEET}\n</style>")

        header = [f"<h1>{title}</h1>"]
        if self.options.generated_on is not None:
            header.append(
                f'<div class="date">{labels.generated_on} '
                f"{self.options.generated_on:%d/%m/%Y}</div>"
            )

        return "\n".join([
            "<!DOCTYPE html>",
            f'<html lang="{escape_text(self.options.locale)}">',
            "<head>",
            *head,
            "</head>",
            "<body>",
            "<header>",
            *header,
            "</header>",
            f"<main>{body}</main>",
            "<footer>",
            f"<p>{labels.html_created_with} {escape_text(self.options.app_name)}</p>",
            "</footer>",
            "</body>",
            "</html>",
            "",
        ])
