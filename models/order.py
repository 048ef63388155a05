"""
Order data models.

These models represent one print request as it flows through the pipeline:
upload -> validate/count -> price -> notify -> cleanup.

Every model here is a frozen dataclass built once per request. Stages pass
them along and never mutate them, so the Order handed to the notification
thread is safe to read without locks.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Tuple


PDF_MIME_TYPE = "application/pdf"


@dataclass(frozen=True)
class UploadedFile:
    """
    One submitted document, stored in the temporary upload folder.

    Lives for a single request (and its background notification). The
    pipeline deletes ``path`` on every exit path.
    """

    filename: str
    """Original filename as provided by the client."""

    mimetype: str
    """Declared MIME type of the multipart part."""

    size: int
    """Size in bytes of the stored file."""

    path: Path
    """Where the file lives in the upload folder."""

    @property
    def is_pdf(self) -> bool:
        """True for PDFs, detected by MIME type or by the .pdf extension."""
        return self.mimetype == PDF_MIME_TYPE or self.filename.lower().endswith(".pdf")

    def read_bytes(self) -> bytes:
        return Path(self.path).read_bytes()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "originalName": self.filename,
            "mimetype": self.mimetype,
            "size": self.size,
        }


@dataclass(frozen=True)
class FileSelection:
    """
    Client-declared page selection for the file at ``index`` in the upload list.

    Only meaningful for PDFs (``is_pdf``). ``manual_pages`` is the page count
    the user typed in when automatic detection failed.
    """

    index: int
    is_pdf: bool = False
    select_mode: str = "whole"
    """Either 'whole' or 'range'."""

    range_from: Optional[int] = None
    """First page (1-based, inclusive)."""

    range_to: Optional[int] = None
    """Last page (1-based, inclusive)."""

    manual_pages: Optional[int] = None

    @property
    def is_range(self) -> bool:
        return self.is_pdf and self.select_mode == "range"

    @property
    def has_manual_override(self) -> bool:
        return self.manual_pages is not None and self.manual_pages > 0

    def page_bounds(self, total_pages: int) -> Tuple[int, int]:
        """First and last selected page, clamped into [1, total_pages]."""
        start = self.range_from if self.range_from is not None else 1
        end = self.range_to if self.range_to is not None else total_pages
        return (
            max(1, min(total_pages, start)),
            max(1, min(total_pages, end)),
        )


@dataclass(frozen=True)
class PrintOptions:
    """
    Print configuration chosen by the customer.

    ``paper_size`` is recorded and shown to the administrator but does not
    change the price.
    """

    color_mode: str = "color"
    """'color' or 'monochrome'."""

    paper_size: str = "A4"
    """'A4' or 'A3'."""

    sides: str = "single"
    """'single' or 'double'."""

    copies: int = 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "colorMode": self.color_mode,
            "paperSize": self.paper_size,
            "sides": self.sides,
            "copies": self.copies,
        }


@dataclass(frozen=True)
class BilledFile:
    """An uploaded file with its detected and billed page counts."""

    upload: UploadedFile
    total_pages: int
    """Pages detected in the file (0 when detection failed)."""

    billed_pages: int
    """Pages actually charged after applying the selection."""

    selection: Optional[FileSelection] = None

    @property
    def range_label(self) -> Optional[str]:
        """'3-7' when a page range was applied, otherwise None."""
        if self.selection is None or not self.selection.is_range or self.total_pages <= 0:
            return None
        start, end = self.selection.page_bounds(self.total_pages)
        return f"{start}-{end}"


@dataclass(frozen=True)
class PriceQuote:
    """
    Price estimate for an order. Computed, never persisted.

    printing_cost = unit_price x copies x billing_units, where billing_units
    is the page count (single-sided) or the sheet count (double-sided).
    """

    unit_price: float
    total_pages: int
    copies: int
    billing_units: int
    printing_cost: float
    delivery_fee: float
    grand_total: float
    currency: str = "EGP"
    sides: str = "single"

    @property
    def breakdown(self) -> str:
        """Human-readable formula, e.g. 'EGP 1.0 x 5 pages x 2 copies = EGP 10.0'."""
        unit_label = "sheets" if self.sides == "double" else "pages"
        return (
            f"{self.currency} {self.unit_price} x {self.billing_units} {unit_label} "
            f"x {self.copies} copies = {self.currency} {self.printing_cost}"
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "unitPrice": self.unit_price,
            "totalPages": self.total_pages,
            "copies": self.copies,
            "billingUnits": self.billing_units,
            "printingCost": self.printing_cost,
            "deliveryFee": self.delivery_fee,
            "grandTotal": self.grand_total,
            "currency": self.currency,
        }


def _new_order_id() -> str:
    return str(uuid.uuid4())


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Order:
    """
    A validated print order.

    Lifecycle:
        1. Built by OrderValidator once every constraint passes
        2. Priced by the pipeline (``with_quote``)
        3. Handed to the notification thread, consumed once
        4. Discarded with the request; never stored
    """

    name: str
    mobile: str
    address: str
    options: PrintOptions
    files: Tuple[BilledFile, ...]
    notes: str = ""
    quote: Optional[PriceQuote] = None
    order_id: str = field(default_factory=_new_order_id)
    received_at: datetime = field(default_factory=_utc_now)

    @property
    def total_pages(self) -> int:
        """Sum of billed pages over all files."""
        return sum(f.billed_pages for f in self.files)

    @property
    def uploads(self) -> Tuple[UploadedFile, ...]:
        return tuple(f.upload for f in self.files)

    @property
    def combined_size(self) -> int:
        return sum(f.upload.size for f in self.files)

    def with_quote(self, quote: PriceQuote) -> "Order":
        """Return a copy of this order with the price quote attached."""
        return replace(self, quote=quote)
