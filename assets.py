import logging
from typing import Optional

from drawing import DATA_URL_PREFIX
from models import SignatureSettings

logger = logging.getLogger(__name__)

SIGNATURE_FONTS = {
    "cursive": "times",
    "handwritten": "times",
    "formal": "times",
    "modern": "helvetica",
}
DEFAULT_SIGNATURE_FONT = "times"
SIGNATURE_LABEL = "Authorized Signature:"


def embed_image(canvas, data, x: float, y: float, w: float, h: float, role: str = "logo") -> bool:
    """
    Draw a logo or signature image if ``data`` is an image data URL.

    Returns False (leaving the canvas untouched) for anything that is not an
    image data URL, and False when drawing fails. A broken image never fails
    the surrounding render.
    """
    if not isinstance(data, str) or not data.startswith(DATA_URL_PREFIX):
        return False
    try:
        canvas.image(data, x, y, w, h)
        return True
    except Exception as e:
        logger.warning(f"Could not add {role} to PDF: {e}", extra={"asset_role": role})
        return False


def embed_signature(canvas, settings: Optional[SignatureSettings], page_width: float, y_top: float) -> None:
    """Signature block right-anchored between page_width - 70 and page_width - 20."""
    if settings is None or settings.type == "none":
        return

    left = page_width - 70

    canvas.set_font(style="normal", size=9)
    canvas.set_text_color((100, 100, 100))
    canvas.text(SIGNATURE_LABEL, left, y_top)

    if settings.type == "image":
        embed_image(canvas, settings.image, left, y_top + 3, 50, 20, role="signature")
    elif settings.type == "text" and settings.text:
        canvas.set_text_color((0, 0, 0))
        canvas.set_font(family=SIGNATURE_FONTS.get(settings.font, DEFAULT_SIGNATURE_FONT), style="italic", size=16)
        canvas.text(settings.text, left, y_top + 15)

    canvas.set_line_width(0.5)
    canvas.set_draw_color((150, 150, 150))
    canvas.line(left, y_top + 25, page_width - 20, y_top + 25)
