"""Text extraction from documents, spreadsheets, images and plain files.

Extraction libraries are imported on first use and run in a worker
thread so a slow PDF or OCR job never stalls the event loop.
"""

from __future__ import annotations

import asyncio
import logging
import os
from typing import Callable

import aiofiles

from termctl.errors import FileAccessFailure

logger = logging.getLogger(__name__)

PDF_EXTENSIONS = frozenset({".pdf"})
SPREADSHEET_EXTENSIONS = frozenset({".xlsx", ".xls"})
IMAGE_EXTENSIONS = frozenset({".png", ".jpg", ".jpeg", ".bmp", ".gif"})


def extract_pdf(path: str) -> str:
    from pypdf import PdfReader

    reader = PdfReader(path)
    return "\n".join(page.extract_text() or "" for page in reader.pages)


def extract_spreadsheet(path: str) -> str:
    """Every sheet as CSV, each under a ``--- Sheet: name ---`` header."""
    import pandas as pd

    sheets = pd.read_excel(path, sheet_name=None, header=None)
    parts = []
    for sheet_name, frame in sheets.items():
        csv = frame.to_csv(index=False, header=False)
        parts.append(f"--- Sheet: {sheet_name} ---\n{csv}\n\n")
    return "".join(parts)


def extract_image(path: str) -> str:
    import pytesseract
    from PIL import Image

    with Image.open(path) as image:
        return pytesseract.image_to_string(image, lang="eng")


def extractor_for(path: str) -> Callable[[str], str] | None:
    """Return the extractor for ``path``'s extension, or None for plain text."""
    ext = os.path.splitext(path)[1].lower()
    if ext in PDF_EXTENSIONS:
        return extract_pdf
    if ext in SPREADSHEET_EXTENSIONS:
        return extract_spreadsheet
    if ext in IMAGE_EXTENSIONS:
        return extract_image
    return None


async def read_special_file(path: str) -> str:
    """Read ``path`` as text, choosing an extractor by file extension.

    Raises:
        FileAccessFailure: the path is missing, is a directory, or its
            contents could not be extracted.
    """
    if not os.path.exists(path):
        raise FileAccessFailure(f"File not found: {path}")
    if os.path.isdir(path):
        raise FileAccessFailure(f"Not a file: {path}")

    extractor = extractor_for(path)
    try:
        if extractor is None:
            async with aiofiles.open(path, "r", encoding="utf-8", errors="replace") as f:
                return await f.read()
        logger.info("Extracting %s with %s", path, extractor.__name__)
        return await asyncio.to_thread(extractor, path)
    except PermissionError as e:
        raise FileAccessFailure(f"Permission denied: {path}") from e
    except Exception as e:
        logger.warning("Extraction failed for %s: %s", path, e)
        raise FileAccessFailure(f"Could not read {path}: {e}") from e
