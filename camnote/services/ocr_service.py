"""OCR through the tesseract engine.

The engine is a black box: we hand it a decoded image and keep only the
trimmed text, a 0-100 confidence and a word count.
"""
from __future__ import annotations

import logging
import math
import os
import shutil
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

import pytesseract

from camnote.errors import ExtractionFailed
from camnote.services.imaging import NormalizedImage

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGE = "eng"


@dataclass
class ExtractionResult:
    text: str
    confidence: int
    word_count: int

    def to_dict(self) -> Dict[str, Any]:
        return {"text": self.text, "confidence": self.confidence, "wordCount": self.word_count}


def count_words(text: str) -> int:
    return len((text or "").strip().split())


def configure_tesseract(cmd: Optional[str] = None) -> None:
    """Point pytesseract at the tesseract binary."""
    if cmd:
        pytesseract.pytesseract.tesseract_cmd = cmd
        return
    # Ensure pytesseract can find the tesseract binary on common hosts.
    if shutil.which("tesseract") is None:
        for cand in ("/usr/bin/tesseract", "/usr/local/bin/tesseract", "/opt/homebrew/bin/tesseract"):
            if os.path.exists(cand):
                pytesseract.pytesseract.tesseract_cmd = cand
                break


def ocr_ready() -> Tuple[bool, str]:
    try:
        _ = pytesseract.get_tesseract_version()
    except Exception as e:
        return False, f"tesseract not available: {e}"
    return True, ""


def _confidence(data: Dict[str, list]) -> int:
    scores = []
    for word, conf in zip(data.get("text") or [], data.get("conf") or []):
        try:
            value = float(conf)
        except (TypeError, ValueError):
            continue
        if value >= 0 and str(word).strip():
            scores.append(value)
    if not scores:
        return 0
    # half up, so a mean of 90.5 reports 91
    return max(0, min(100, math.floor(sum(scores) / len(scores) + 0.5)))


def extract(image: NormalizedImage, language: str = DEFAULT_LANGUAGE, timeout: int = 0) -> ExtractionResult:
    lang = (language or "").strip() or DEFAULT_LANGUAGE
    img = image.open()
    try:
        raw = pytesseract.image_to_string(img, lang=lang, timeout=timeout) or ""
        data = pytesseract.image_to_data(img, lang=lang, output_type=pytesseract.Output.DICT, timeout=timeout)
    except (pytesseract.TesseractError, pytesseract.TesseractNotFoundError, RuntimeError, OSError) as e:
        logger.error("OCR engine failed (%s): %s", type(e).__name__, e)
        raise ExtractionFailed() from e

    text = raw.strip()
    result = ExtractionResult(text=text, confidence=_confidence(data), word_count=count_words(text))
    logger.debug("OCR extracted %d words at %d%% confidence", result.word_count, result.confidence)
    return result
