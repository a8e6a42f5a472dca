"""Immutable options passed explicitly to each converter.

Converters never read global settings; ``Settings`` builds these structs
(see ``spark_text.config``) and ``DocumentConverter`` hands them down.
"""

from dataclasses import dataclass
from datetime import date
from typing import Optional

DEFAULT_LOCALE = "es"

DEFAULT_APP_NAME = "Text Code Spark"


@dataclass(frozen=True)
class MarkdownOptions:
    """Markdown export options.

    Parameters
    ----------
    respect_start : bool
        Number ordered lists from their ``start`` attribute. When False,
        every ordered list restarts at 1.
    locale : str
        Locale for placeholder labels (videos, canvases).
    """

    respect_start: bool = False
    locale: str = DEFAULT_LOCALE


@dataclass(frozen=True)
class TextOptions:
    locale: str = DEFAULT_LOCALE
    collapse_whitespace: bool = True


@dataclass(frozen=True)
class PageGeometry:
    """Page size and margins in twips (1/1440 inch). Defaults to A4 portrait."""

    width: int = 11906
    height: int = 16838
    margin_top: int = 1134
    margin_right: int = 1134
    margin_bottom: int = 1134
    margin_left: int = 1134
    header_distance: int = 708
    footer_distance: int = 708


@dataclass(frozen=True)
class WordOptions:
    """Word export options.

    Parameters
    ----------
    locale : str
        Locale for header/footer text and placeholders.
    app_name : str
        Application name shown in the footer and document metadata.
    generated_on : date, optional
        When set, a "generated on" line is added under the title.
    page : PageGeometry
        Page size, margins and header/footer distances.
    """

    locale: str = DEFAULT_LOCALE
    app_name: str = DEFAULT_APP_NAME
    generated_on: Optional[date] = None
    page: PageGeometry = PageGeometry()


@dataclass(frozen=True)
class HTMLOptions:
    locale: str = DEFAULT_LOCALE
    app_name: str = DEFAULT_APP_NAME
    generated_on: Optional[date] = None
    include_styles: bool = True


@dataclass(frozen=True)
class SalvageOptions:
    """Options for reconstructing documents from damaged PDF text.

    Parameters
    ----------
    locale : str
        Locale of the explanatory notice paragraphs.
    max_input_bytes : int
        Size limit enforced by the file-level PDF reader.
    min_text_length : int
        Cleaned text shorter than this is treated as no content.
    max_noise_ratio : float
        Fraction of non-whitelisted characters above which the text is
        considered garbled.
    min_raw_text_length : int
        Raw-byte extraction must yield more characters than this.
    """

    locale: str = DEFAULT_LOCALE
    max_input_bytes: int = 20 * 1024 * 1024
    min_text_length: int = 10
    max_noise_ratio: float = 0.3
    min_raw_text_length: int = 20
