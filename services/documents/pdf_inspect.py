from __future__ import annotations

import io

import pdfplumber


class PDFInspectError(Exception):
    pass


def count_pages(data: bytes) -> int:
    """Open an uploaded PDF and return its page count; unreadable files raise."""
    if not data:
        raise PDFInspectError("empty file")
    try:
        with pdfplumber.open(io.BytesIO(data)) as pdf:
            return len(pdf.pages)
    except Exception as e:  # noqa: BLE001
        raise PDFInspectError(str(e)) from e
