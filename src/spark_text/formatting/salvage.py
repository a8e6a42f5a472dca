"""Salvage importer for damaged or text-poor PDF content.

Two stages:

1. Extraction pulls candidate strings out of raw PDF content streams with
   a set of text-operator strategies, decodes string escapes and drops
   structural noise.
2. Structuring classifies each line of cleaned text as a heading, list
   item or paragraph.

Recall is deliberately traded for precision: text that looks garbled is
rejected with an explanatory notice rather than structured.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from spark_text.formatting.ir import (
    Document,
    Heading,
    ListItem,
    Paragraph,
    Text,
    group_list_items,
)
from spark_text.formatting.labels import get_labels
from spark_text.options import SalvageOptions

logger = logging.getLogger(__name__)

# A PDF literal string body; escaped parentheses stay inside
PDF_STRING = r"\(((?:\\.|[^\\)])*)\)"
ARRAY_STRING_PATTERN = re.compile(PDF_STRING, re.DOTALL)
ESCAPE_PATTERN = re.compile(r"\\([0-7]{1,3}|\r\n|.)", re.DOTALL)
ESCAPES = {
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "b": "\b",
    "f": "\f",
    "(": "(",
    ")": ")",
    "\\": "\\",
    "\n": "",
    "\r": "",
    "\r\n": "",
}

STRUCTURAL_PATTERN = re.compile(
    r"^(obj|endobj|stream|endstream|xref|trailer|startxref|\d+\s+\d+\s+R|\d+\s+\d+\s+obj)$",
    re.IGNORECASE,
)
NUMERIC_PATTERN = re.compile(r"^[\d\s.\-]+$")

HORIZONTAL_WHITESPACE_PATTERN = re.compile(r"[ \t]+")
BLANK_LINES_PATTERN = re.compile(r"\n\s*\n\s*\n")
NOISE_PATTERN = re.compile(r"[^\w\s.,;:!?\-áéíóúñüÁÉÍÓÚÑÜ]", re.ASCII)

HEADING_MAX_LENGTH = 60
SECTION_PATTERN = re.compile(
    r"^\d+\.|\d+\.\d+\.|\b(CAPÍTULO|CHAPTER|SECCIÓN|SECTION|TÍTULO|TITLE)\b",
    re.IGNORECASE,
)
LIST_MARKER_PATTERN = re.compile(
    r"^[-•▪▫◦‣⁃*]\s+|^\d+[.)]\s+|^[a-z][.)]\s+",
    re.IGNORECASE,
)


class SalvageStatus(Enum):
    OK = "ok"
    NO_CONTENT = "no_content"


@dataclass(frozen=True)
class SalvageResult:
    """Outcome of a salvage attempt.

    A NO_CONTENT result still carries a document holding one explanatory
    paragraph.
    """

    document: Document
    status: SalvageStatus

    @property
    def ok(self) -> bool:
        return self.status is SalvageStatus.OK


def decode_pdf_string(raw: str) -> str:
    """Decode backslash escapes in a PDF literal string."""
    def replace(match: re.Match) -> str:
        token = match.group(1)
        if token[0] in "01234567":
            return chr(int(token, 8) & 0xFF)
        return ESCAPES.get(token, token)

    return ESCAPE_PATTERN.sub(replace, raw)


@dataclass(frozen=True)
class TextExtractor:
    """One text-operator matching strategy.

    Attributes:
        name: Strategy name, used in debug logs
        pattern: Regex whose first group captures the operand
        array: Operand is a bracketed array of strings to concatenate
    """

    name: str
    pattern: re.Pattern
    array: bool = False

    def extract(self, stream: str) -> list[str]:
        fragments = []
        for match in self.pattern.finditer(stream):
            operand = match.group(1)
            if self.array:
                fragments.append("".join(
                    decode_pdf_string(part) for part in ARRAY_STRING_PATTERN.findall(operand)
                ))
            else:
                fragments.append(decode_pdf_string(operand))
        logger.debug("Extractor %s matched %d fragment(s)", self.name, len(fragments))
        return fragments


SHOW_TEXT = TextExtractor(
    "show-text",
    re.compile(PDF_STRING + r"\s*Tj", re.DOTALL),
)
SHOW_TEXT_ARRAY = TextExtractor(
    "show-text-array",
    re.compile(r"\[((?:\\.|[^\]\\])*)\]\s*TJ", re.DOTALL),
    array=True,
)
POSITIONED_TEXT = TextExtractor(
    "positioned-text",
    re.compile(
        r"(?:T[dDm*]|/F\d+\s+[\d.]+\s+Tf)\s*" + PDF_STRING + r"\s*(?:Tj|')",
        re.DOTALL,
    ),
)

DEFAULT_EXTRACTORS = (SHOW_TEXT, SHOW_TEXT_ARRAY, POSITIONED_TEXT)


class SalvageImporter:
    """Reconstruct a Document from raw or extracted PDF text."""

    def __init__(
        self,
        options: Optional[SalvageOptions] = None,
        extractors: tuple[TextExtractor, ...] = DEFAULT_EXTRACTORS,
    ) -> None:
        self.options = options or SalvageOptions()
        self.extractors = extractors
        self.labels = get_labels(self.options.locale)

    # -------------------------------------------------------------------------
    # Extraction
    # -------------------------------------------------------------------------

    def extract_text(self, stream: Union[str, bytes]) -> str:
        """Pull readable text out of a raw PDF content stream.

        Fragments from all strategies are decoded, filtered, de-duplicated
        in first-seen order and joined with single spaces.
        """
        if isinstance(stream, bytes):
            stream = stream.decode("latin-1")

        fragments: list[str] = []
        for extractor in self.extractors:
            fragments.extend(extractor.extract(stream))

        kept = [f.strip() for f in fragments if not self._is_noise(f)]
        return " ".join(dict.fromkeys(kept))

    def has_operators(self, text: str) -> bool:
        """Check whether text is a raw content stream rather than prose."""
        return bool(text) and any(e.pattern.search(text) for e in self.extractors)

    def _is_noise(self, fragment: str) -> bool:
        stripped = fragment.strip()
        if len(stripped) < 2:
            return True
        if not any(c.isalnum() for c in stripped):
            return True
        if STRUCTURAL_PATTERN.match(stripped):
            return True
        return bool(NUMERIC_PATTERN.match(stripped))

    def salvage_bytes(self, data: bytes) -> SalvageResult:
        """Salvage a raw PDF file that text extraction could not read."""
        if not data.startswith(b"%PDF-"):
            logger.info("Input is not a PDF file, nothing to salvage")
            return self._no_content(self.labels.pdf_unprocessable)

        text = self.extract_text(data)
        if len(text) <= self.options.min_raw_text_length:
            logger.info("Raw PDF scan yielded only %d character(s)", len(text))
            return self._no_content(self.labels.pdf_no_text)
        return self.reconstruct(text)

    # -------------------------------------------------------------------------
    # Structuring
    # -------------------------------------------------------------------------

    def clean(self, text: str) -> str:
        """Normalize line endings and collapse spacing."""
        text = (text or "").replace("\r\n", "\n").replace("\r", "\n")
        text = HORIZONTAL_WHITESPACE_PATTERN.sub(" ", text)
        text = BLANK_LINES_PATTERN.sub("\n\n", text)
        return text.strip()

    def looks_garbled(self, text: str) -> bool:
        if len(text) < self.options.min_text_length:
            return True
        noise = len(NOISE_PATTERN.findall(text))
        return noise > len(text) * self.options.max_noise_ratio

    def reconstruct(self, raw_text: str) -> SalvageResult:
        """Structure extracted text into a Document.

        Input holding raw text-showing operators is run through the
        extractors first; extracted text is structured as is.

        Returns:
            SalvageResult with status OK, or NO_CONTENT carrying a single
            explanatory paragraph when the text is too short or garbled
        """
        if self.has_operators(raw_text):
            logger.debug("Input holds text operators, extracting before structuring")
            raw_text = self.extract_text(raw_text)
        text = self.clean(raw_text)
        if self.looks_garbled(text):
            logger.info("Rejected salvaged text (%d character(s)) as unreadable", len(text))
            return self._no_content(self.labels.pdf_no_text)

        blocks = group_list_items(
            self.classify(line.strip()) for line in text.split("\n") if line.strip()
        )
        if not blocks:
            return self._no_content(self.labels.pdf_unprocessable)
        return SalvageResult(Document(children=blocks), SalvageStatus.OK)

    def classify(self, line: str):
        """Classify one line of text.

        Numbered lines such as "1. Intro" match the section rule before
        the list rule and become level-3 headings.
        """
        if (
            len(line) < HEADING_MAX_LENGTH
            and line == line.upper()
            and any(c.isalpha() for c in line)
        ):
            return Heading(level=2, children=(Text(line),))
        if SECTION_PATTERN.search(line):
            return Heading(level=3, children=(Text(line),))
        marker = LIST_MARKER_PATTERN.match(line)
        if marker:
            return ListItem(children=(Paragraph((Text(line[marker.end():].strip()),)),))
        return Paragraph((Text(line),))

    def _no_content(self, message: str) -> SalvageResult:
        return SalvageResult(
            Document(children=(Paragraph((Text(message),)),)),
            SalvageStatus.NO_CONTENT,
        )


def reconstruct(raw_text: str, options: Optional[SalvageOptions] = None) -> SalvageResult:
    """Structure salvaged text into a Document."""
    return SalvageImporter(options).reconstruct(raw_text)


def extract_text(stream: Union[str, bytes], options: Optional[SalvageOptions] = None) -> str:
    """Extract readable text from a raw PDF content stream."""
    return SalvageImporter(options).extract_text(stream)
