import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Mapping, Optional

from config import config
from document_types import get_kind_config
from drawing import PdfCanvas
from layout import BOTTOM_MARGIN, TOP_MARGIN, LayoutEngine, format_date
from models import DocumentBase, Receipt
from normalizer import normalize, normalize_receipt
from themes import get_theme

logger = logging.getLogger(__name__)

SAVE = "save"
PREVIEW = "preview"
RENDER_MODES = (SAVE, PREVIEW)


class DocumentGenerationError(Exception):
    """A document could not be rendered. The cause is chained as ``__cause__``."""

    def __init__(self, message: str, kind: Optional[str] = None, theme: Optional[str] = None):
        super().__init__(message)
        self.kind = kind
        self.theme = theme


@dataclass(frozen=True)
class Artifact:
    filename: str
    content: bytes
    page_count: int
    # Only set in save mode
    path: Optional[Path] = None


def safe_filename(name: str) -> str:
    """Strip path separators and characters that are not allowed in filenames"""
    cleaned = re.sub(r'[\\/*?:"<>|]', "", name).strip().strip(".")
    return cleaned or "document"


def document_filename(document: DocumentBase) -> str:
    if isinstance(document, Receipt):
        date_part = format_date(document.date, "%d-%m-%Y")
        return safe_filename(f"Payment_Receipt_{document.number}_{date_part}") + ".pdf"
    return safe_filename(document.number) + ".pdf"


def render(
    document: DocumentBase,
    mode: str = PREVIEW,
    output_dir: Optional[Path] = None,
    canvas_factory: Callable[..., PdfCanvas] = PdfCanvas,
) -> Artifact:
    """
    Lay out a normalized document and finish it as a saved file or an in-memory PDF.

    Both modes run the same layout pass and produce the same bytes; save mode
    additionally writes them to ``output_dir`` (default: PDF_OUTPUT_DIR).
    """
    if mode not in RENDER_MODES:
        raise ValueError(f"Unknown render mode '{mode}'")

    theme = get_theme(document.template)
    kind_title = get_kind_config(document.kind).title
    canvas = canvas_factory(
        title=f"{kind_title} {document.number}",
        top_margin=TOP_MARGIN,
        bottom_margin=BOTTOM_MARGIN,
    )
    LayoutEngine(canvas, theme).render(document)
    content = canvas.output()
    filename = document_filename(document)

    if mode == PREVIEW:
        logger.info(f"Rendered preview {filename}: {len(content)} bytes, {canvas.page_count} page(s), theme={theme.name}")
        return Artifact(filename=filename, content=content, page_count=canvas.page_count)

    directory = Path(output_dir) if output_dir is not None else config.pdf_output_path
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / filename
    path.write_bytes(content)
    logger.info(f"Generated PDF {document.kind}: {path}")
    return Artifact(filename=filename, content=content, page_count=canvas.page_count, path=path)


def _run(build: Callable[[], DocumentBase], kind: str, template: Any, mode: str,
         output_dir: Optional[Path]) -> Artifact:
    document = None
    try:
        document = build()
        return render(document, mode, output_dir)
    except Exception as e:
        theme = document.template if document is not None else template
        logger.error(
            f"Error generating {kind} PDF: {str(e)}",
            extra={
                "document_kind": kind,
                "theme": theme,
                "document_number": document.number if document is not None else None,
                "error_type": type(e).__name__,
            },
        )
        raise DocumentGenerationError(f"Failed to generate {kind} PDF", kind=kind, theme=theme) from e


def generate_document(raw: Optional[Mapping], kind: str, output_dir: Optional[Path] = None) -> Artifact:
    """Render an invoice or quotation record and save it as ``{number}.pdf``."""
    get_kind_config(kind)
    template = (raw or {}).get("template")
    return _run(lambda: normalize(raw, kind), kind, template, SAVE, output_dir)


def preview_document(raw: Optional[Mapping], kind: str) -> Artifact:
    get_kind_config(kind)
    template = (raw or {}).get("template")
    return _run(lambda: normalize(raw, kind), kind, template, PREVIEW, None)


def generate_payment_receipt(
    payment: Optional[Mapping],
    project: Optional[Mapping] = None,
    settings: Optional[Mapping] = None,
    output_dir: Optional[Path] = None,
) -> Artifact:
    """Render a payment receipt and save it as ``Payment_Receipt_{id}_{DD-MM-YYYY}.pdf``."""
    template = (settings or {}).get("template")
    return _run(lambda: normalize_receipt(payment, project, settings), "receipt", template, SAVE, output_dir)


def preview_payment_receipt(
    payment: Optional[Mapping],
    project: Optional[Mapping] = None,
    settings: Optional[Mapping] = None,
) -> Artifact:
    template = (settings or {}).get("template")
    return _run(lambda: normalize_receipt(payment, project, settings), "receipt", template, PREVIEW, None)
