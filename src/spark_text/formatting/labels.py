"""Localized fixed strings used by the renderers.

Spanish is the default locale; the bracketed plain-text markers
([TABLA], [IMAGEN: ...]) are part of the exported format and change with
the locale.
"""

import logging
from dataclasses import dataclass

from spark_text.options import DEFAULT_LOCALE

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Labels:
    table: str
    table_end: str
    code: str
    code_end: str
    image: str
    video: str
    drawing: str
    canvas_strokes: str
    canvas_empty: str
    details: str
    details_end: str
    youtube_video: str
    markdown_canvas: str
    markdown_canvas_empty: str
    word_image: str
    word_missing_alt: str
    word_video: str
    word_drawing: str
    page: str
    created_with: str
    generated_on: str
    html_created_with: str
    pdf_no_text: str
    pdf_unprocessable: str


SPANISH = Labels(
    table="[TABLA]",
    table_end="[FIN TABLA]",
    code="[CÓDIGO]",
    code_end="[FIN CÓDIGO]",
    image="IMAGEN",
    video="VIDEO",
    drawing="DIBUJO",
    canvas_strokes="Canvas con {count} trazo(s)",
    canvas_empty="Canvas de dibujo",
    details="DESPLEGABLE",
    details_end="[FIN DESPLEGABLE]",
    youtube_video="Video de YouTube",
    markdown_canvas="Dibujo canvas con {count} trazo(s)",
    markdown_canvas_empty="Canvas de dibujo",
    word_image="Imagen",
    word_missing_alt="Sin descripción",
    word_video="Video",
    word_drawing="Dibujo",
    page="Página",
    created_with="Creado con",
    generated_on="Documento generado el",
    html_created_with="Documento creado con",
    pdf_no_text=(
        "El PDF contiene principalmente texto no extraíble "
        "o está codificado de manera especial."
    ),
    pdf_unprocessable="No se pudo procesar el contenido del PDF correctamente.",
)

ENGLISH = Labels(
    table="[TABLE]",
    table_end="[END TABLE]",
    code="[CODE]",
    code_end="[END CODE]",
    image="IMAGE",
    video="VIDEO",
    drawing="DRAWING",
    canvas_strokes="Canvas with {count} stroke(s)",
    canvas_empty="Drawing canvas",
    details="COLLAPSIBLE",
    details_end="[END COLLAPSIBLE]",
    youtube_video="YouTube video",
    markdown_canvas="Canvas drawing with {count} stroke(s)",
    markdown_canvas_empty="Drawing canvas",
    word_image="Image",
    word_missing_alt="No description",
    word_video="Video",
    word_drawing="Drawing",
    page="Page",
    created_with="Created with",
    generated_on="Document generated on",
    html_created_with="Document created with",
    pdf_no_text=(
        "The PDF contains mostly non-extractable text "
        "or uses an unusual encoding."
    ),
    pdf_unprocessable="The PDF content could not be processed correctly.",
)

LABELS: dict[str, Labels] = {
    "es": SPANISH,
    "en": ENGLISH,
}


def get_labels(locale: str = DEFAULT_LOCALE) -> Labels:
    """Get labels for a locale such as "es" or "en-US"."""
    language = (locale or DEFAULT_LOCALE).split("-")[0].split("_")[0].lower()
    if language not in LABELS:
        logger.warning("Unknown locale %r, falling back to %r", locale, DEFAULT_LOCALE)
        return LABELS[DEFAULT_LOCALE]
    return LABELS[language]
