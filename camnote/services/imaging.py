"""Raster image handling: normalization, signature overlay and scan filters.

Everything here works on in-memory bytes and Pillow images; nothing touches
the filesystem.
"""
from __future__ import annotations

import io
import logging
from dataclasses import dataclass

from PIL import Image, ImageEnhance, ImageFilter, ImageOps, UnidentifiedImageError

from camnote.errors import UnsupportedImageFormat, ValidationError

logger = logging.getLogger(__name__)

FORMATS = {"png": "PNG", "jpeg": "JPEG", "jpg": "JPEG"}
FILTERS = ("clean", "bw", "soft", "original")
MAX_OVERLAY_SIDE = 4096


@dataclass
class NormalizedImage:
    data: bytes
    format: str
    width: int
    height: int

    @property
    def mimetype(self) -> str:
        return "image/jpeg" if self.format == "JPEG" else "image/png"

    @property
    def extension(self) -> str:
        return ".jpg" if self.format == "JPEG" else ".png"

    def open(self) -> Image.Image:
        return Image.open(io.BytesIO(self.data))


@dataclass
class OverlayPlacement:
    x: int
    y: int
    width: int
    height: int


def _open(raw: bytes) -> tuple[Image.Image, str | None]:
    if not raw:
        raise UnsupportedImageFormat("Empty image upload")
    try:
        img = Image.open(io.BytesIO(raw))
        img.load()
        source_format = img.format
        img = ImageOps.exif_transpose(img)
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError, SyntaxError) as e:
        logger.debug("Image decode failed: %s", e)
        raise UnsupportedImageFormat() from e
    return img, source_format


def decode(raw: bytes) -> Image.Image:
    """Decode raw bytes into an upright Pillow image."""
    img, _ = _open(raw)
    return img


def _encode(img: Image.Image, fmt: str) -> bytes:
    buf = io.BytesIO()
    if fmt == "JPEG":
        if img.mode not in ("RGB", "L"):
            img = img.convert("RGB")
        img.save(buf, format="JPEG", quality=92)
    else:
        if img.mode not in ("1", "L", "LA", "P", "RGB", "RGBA", "I;16"):
            img = img.convert("RGBA")
        img.save(buf, format="PNG")
    return buf.getvalue()


def _normalized(img: Image.Image, source_format: str | None) -> NormalizedImage:
    fmt = "JPEG" if source_format == "JPEG" else "PNG"
    return NormalizedImage(data=_encode(img, fmt), format=fmt, width=img.width, height=img.height)


def normalize(raw: bytes) -> NormalizedImage:
    """Re-encode an arbitrary raster image as PNG, or JPEG for JPEG sources."""
    img, source_format = _open(raw)
    return _normalized(img, source_format)


def normalize_to_format(raw: bytes, fmt: str) -> bytes:
    target = FORMATS.get((fmt or "").strip().lower())
    if target is None:
        raise ValueError(f"Unsupported target format: {fmt}")
    return _encode(decode(raw), target)


def overlay(
    base: NormalizedImage,
    overlay_bytes: bytes,
    placement: OverlayPlacement,
    max_side: int = MAX_OVERLAY_SIDE,
) -> bytes:
    """Alpha-composite overlay_bytes onto base, fitted into the placement box.

    The overlay keeps its aspect ratio and is padded with transparent pixels.
    Placements outside the base are clipped by the canvas, not rejected; a
    box that misses the canvas entirely leaves the base untouched.
    """
    if placement.width <= 0 or placement.height <= 0:
        raise ValidationError("Signature width and height must be positive")
    if placement.width > max_side or placement.height > max_side:
        raise ValidationError(f"Signature width and height must not exceed {max_side}")

    canvas = base.open().convert("RGBA")
    mark = decode(overlay_bytes).convert("RGBA")

    left, top = placement.x, placement.y
    right, bottom = left + placement.width, top + placement.height
    if right <= 0 or bottom <= 0 or left >= canvas.width or top >= canvas.height:
        logger.info(f"Overlay box {(left, top, right, bottom)} misses a {canvas.size} canvas")
        return _encode(canvas, "PNG")

    mark = ImageOps.pad(mark, (placement.width, placement.height), color=(0, 0, 0, 0))
    layer = Image.new("RGBA", canvas.size, (0, 0, 0, 0))
    layer.paste(mark, (left, top))
    composed = Image.alpha_composite(canvas, layer)
    return _encode(composed, "PNG")


def _clip_extremes(value):
    return 0 if value < 15 else (255 if value > 240 else value)


def apply_filter(raw: bytes, name: str) -> NormalizedImage:
    name = (name or "clean").strip().lower()
    if name not in FILTERS:
        raise ValidationError(f"Unknown filter: {name}")

    img, source_format = _open(raw)

    if name == "clean":
        has_alpha = img.mode in ("RGBA", "LA")
        work = img.convert("RGB")
        work = ImageOps.autocontrast(work, cutoff=1)
        work = ImageEnhance.Brightness(work).enhance(1.05)
        work = work.filter(ImageFilter.SHARPEN)
        if has_alpha:
            work.putalpha(img.getchannel("A"))
        img = work
    elif name == "bw":
        gray = Image.eval(img.convert("L"), _clip_extremes)
        img = gray.point(lambda v: 255 if v > 140 else 0)
    elif name == "soft":
        work = img.convert("RGB")
        work = ImageEnhance.Color(work).enhance(0.8)
        work = ImageEnhance.Brightness(work).enhance(1.04)
        img = work.filter(ImageFilter.SMOOTH)

    return _normalized(img, source_format)
