"""PDF composition and protection.

Pages are built with reportlab's canvas, one image per page at native pixel
size. Encryption is applied afterwards with PyPDF2.
"""
from __future__ import annotations

import io
import logging
from typing import Iterable, Optional

import PyPDF2
from PIL import Image, UnidentifiedImageError
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from camnote.errors import CompositionError
from camnote.services.imaging import NormalizedImage

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "Untitled Document"
DEFAULT_CREATOR = "CamNote"

# Embedding is attempted in this order; upstream code paths produce either.
EMBED_FORMATS = ("PNG", "JPEG")


def _image_reader(data: bytes) -> ImageReader:
    for fmt in EMBED_FORMATS:
        try:
            with Image.open(io.BytesIO(data), formats=[fmt]) as candidate:
                candidate.verify()
        except (UnidentifiedImageError, OSError, SyntaxError, ValueError):
            continue
        reader = ImageReader(io.BytesIO(data))
        reader.getSize()
        return reader
    raise UnidentifiedImageError("Page is neither PNG nor JPEG")


def compose(
    pages: Iterable[NormalizedImage],
    title: Optional[str] = None,
    creator: Optional[str] = None,
) -> bytes:
    """Build a PDF with one page per image, in the given order.

    A page whose image cannot be embedded is logged and skipped. If nothing
    could be embedded a CompositionError is raised instead of returning an
    empty document.
    """
    title = (title or "").strip() or DEFAULT_TITLE
    creator = (creator or "").strip() or DEFAULT_CREATOR

    buf = io.BytesIO()
    pdf = canvas.Canvas(buf)
    pdf.setTitle(title)
    pdf.setAuthor(creator)
    pdf.setCreator(creator)

    embedded = 0
    for index, page in enumerate(pages):
        try:
            reader = _image_reader(page.data)
        except Exception as e:
            logger.warning("Skipping page %d: image could not be embedded (%s)", index + 1, e)
            continue

        width, height = page.width, page.height
        pdf.setPageSize((width, height))
        pdf.drawImage(reader, 0, 0, width=width, height=height, mask="auto")
        pdf.showPage()
        embedded += 1

    if embedded == 0:
        raise CompositionError("No page could be embedded")

    pdf.save()
    logger.debug("Composed %d page PDF titled %r", embedded, title)
    return buf.getvalue()


def protect(pdf_bytes: bytes, password: str) -> bytes:
    """Encrypt a PDF so it opens only with password."""
    if not password:
        raise ValueError("A password is required")

    reader = PyPDF2.PdfReader(io.BytesIO(pdf_bytes))
    writer = PyPDF2.PdfWriter()
    for page in reader.pages:
        writer.add_page(page)

    meta = reader.metadata or {}
    writer.add_metadata({k: str(v) for k, v in meta.items()})
    writer.encrypt(user_password=password, owner_password=None, use_128bit=True)

    out = io.BytesIO()
    writer.write(out)
    return out.getvalue()

