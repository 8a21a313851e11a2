"""Serialize extracted text as DOCX, XLSX or plain text."""
from __future__ import annotations

import io
from dataclasses import dataclass
from typing import List

from docx import Document
from docx.shared import Pt
from openpyxl import Workbook

DOCX_MIMETYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
TXT_MIMETYPE = "text/plain; charset=utf-8"

DOCX_FONT = "Calibri"
DOCX_FONT_SIZE = Pt(11)
SHEET_TITLE = "Extracted Text"


@dataclass
class ExportArtifact:
    data: bytes
    content_type: str
    extension: str


def _lines(text: str) -> List[str]:
    return [line.rstrip("\r") for line in (text or "").split("\n")]


def export_docx(text: str) -> ExportArtifact:
    doc = Document()
    style = doc.styles["Normal"]
    style.font.name = DOCX_FONT
    style.font.size = DOCX_FONT_SIZE

    for line in _lines(text):
        # keep blank lines visible in Word
        doc.add_paragraph(line if line else " ")

    buf = io.BytesIO()
    doc.save(buf)
    return ExportArtifact(buf.getvalue(), DOCX_MIMETYPE, ".docx")


def export_xlsx(text: str) -> ExportArtifact:
    wb = Workbook()
    ws = wb.active
    ws.title = SHEET_TITLE
    for row, line in enumerate(_lines(text), start=1):
        cell = ws.cell(row=row, column=1, value=line or None)
        if line.startswith("="):
            # literal text, not a formula
            cell.data_type = "s"

    buf = io.BytesIO()
    wb.save(buf)
    return ExportArtifact(buf.getvalue(), XLSX_MIMETYPE, ".xlsx")


def export_txt(text: str) -> ExportArtifact:
    return ExportArtifact((text or "").strip().encode("utf-8"), TXT_MIMETYPE, ".txt")


EXPORTERS = {
    "docx": export_docx,
    "xlsx": export_xlsx,
    "txt": export_txt,
}
