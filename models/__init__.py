"""
Data models for the Print4me server.

This module contains immutable dataclasses for:
- UploadedFile / FileSelection: one submitted document and its page selection
- PrintOptions / PriceQuote: what to print and what it costs
- Order: the validated aggregate handed to the notification thread
- DispatchResult: outcome of the background notification email

Orders are frozen so they can be passed to the notification thread safely.
"""

from .order import (
    BilledFile,
    FileSelection,
    Order,
    PriceQuote,
    PrintOptions,
    UploadedFile,
)
from .dispatch_result import DispatchResult, DispatchStatus, RequestState

__all__ = [
    # Order models
    "UploadedFile",
    "FileSelection",
    "PrintOptions",
    "BilledFile",
    "PriceQuote",
    "Order",
    # Dispatch models
    "DispatchResult",
    "DispatchStatus",
    "RequestState",
]
