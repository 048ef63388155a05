"""
Services layer for the Print4me server.

This module contains the request-lifecycle services:
- UploadStore: temporary storage for uploaded documents
- NotificationService: background email dispatch, one thread per order
- PrintRequestPipeline: validate -> count -> price -> dispatch

Thread Model:
    Request thread (Flask)
    └── NotificationService threads (one per accepted order)

Mail threads receive frozen Orders and share nothing with request threads
except the upload folder, where every file has a unique name.
"""

from .upload_store import UploadStore
from .notification_service import NotificationService, DispatchResultStore
from .order_pipeline import PrintRequestPipeline

__all__ = [
    "UploadStore",
    "NotificationService",
    "DispatchResultStore",
    "PrintRequestPipeline",
]
