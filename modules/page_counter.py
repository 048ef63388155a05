"""Page counter for uploaded documents, resilient to malformed PDFs."""

from __future__ import annotations

from io import BytesIO
from typing import Optional

import fitz  # PyMuPDF
from pypdf import PdfReader

from logging_config import get_logger
from models.order import UploadedFile


logger = get_logger(__name__)

# Images, Word documents and anything else count as one page each
NON_DOCUMENT_PAGES = 1


class PageCounter:
    """
    Determine how many pages an uploaded file has.

    PDFs are parsed with pypdf first and PyMuPDF second. When both fail the
    count is 0, meaning "undetermined": the caller falls back to a manual
    override or rejects the order. ``count`` never raises.
    """

    def count(self, upload: UploadedFile) -> int:
        if not upload.is_pdf:
            return NON_DOCUMENT_PAGES

        try:
            data = upload.read_bytes()
        except OSError as exc:
            logger.warning(f"Cannot read {upload.filename} for page counting: {exc}")
            return 0

        pages = self._count_with_pypdf(data, upload.filename)
        if pages:
            return pages

        pages = self._count_with_pymupdf(data, upload.filename)
        if pages:
            return pages

        logger.warning(f"Page count undetermined for {upload.filename}")
        return 0

    @staticmethod
    def _count_with_pypdf(data: bytes, filename: str) -> Optional[int]:
        try:
            reader = PdfReader(BytesIO(data), strict=False)
            if reader.is_encrypted:
                # Most "protected" PDFs only carry an owner password
                reader.decrypt("")
            return len(reader.pages)
        except Exception as exc:
            logger.warning(f"pypdf failed for {filename}: {exc}")
            return None

    @staticmethod
    def _count_with_pymupdf(data: bytes, filename: str) -> Optional[int]:
        try:
            with fitz.open(stream=data, filetype="pdf") as doc:
                return doc.page_count
        except Exception as exc:
            logger.warning(f"PyMuPDF fallback failed for {filename}: {exc}")
            return None
