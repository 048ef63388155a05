"""
Print request pipeline.

Runs one submission through its states:

    RECEIVED -> VALIDATING -> COUNTING -> PRICING -> DISPATCHING -> COMPLETED
                    |                                      |
                 REJECTED                                FAILED

The request thread stops at DISPATCHING: the acknowledgement goes back to
the caller while the NotificationService sends the email. Temporary files
are deleted on every path, by the pipeline when the order does not reach
dispatch and by the mail thread otherwise.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Sequence

from core.exceptions import OrderValidationError
from logging_config import get_logger
from models.dispatch_result import RequestState
from models.order import UploadedFile
from modules.page_counter import PageCounter
from modules.pricing import PriceCalculator
from modules.validator import OrderValidator
from services.notification_service import NotificationService
from services.upload_store import UploadStore


logger = get_logger(__name__)


class PrintRequestPipeline:
    """Validates, prices and queues print requests; counts pages for previews."""

    def __init__(
        self,
        upload_store: UploadStore,
        notification_service: NotificationService,
        page_counter: Optional[PageCounter] = None,
        validator: Optional[OrderValidator] = None,
        price_calculator: Optional[PriceCalculator] = None,
    ):
        self.upload_store = upload_store
        self.notification_service = notification_service
        self.page_counter = page_counter or PageCounter()
        self.validator = validator or OrderValidator(self.page_counter)
        self.price_calculator = price_calculator or PriceCalculator()

    @staticmethod
    def _transition(state: RequestState, detail: str = "") -> RequestState:
        logger.debug(f"Print request -> {state.value}{': ' + detail if detail else ''}")
        return state

    def submit(
        self,
        fields: Mapping[str, Any],
        files: Sequence[UploadedFile],
        files_meta: Any = None,
    ) -> Dict[str, Any]:
        """
        Handle one print request.

        Args:
            fields: Multipart form fields
            files: Uploads already saved by the UploadStore
            files_meta: Raw ``filesMeta`` value (JSON list of page selections)

        Returns:
            Acknowledgement payload for the caller

        Raises:
            OrderValidationError: Order rejected; files already deleted
            Exception: Anything unexpected before dispatch; files already deleted
        """
        state = self._transition(RequestState.RECEIVED, f"{len(files)} file(s)")
        dispatched = False

        try:
            state = self._transition(RequestState.VALIDATING)
            order = self.validator.validate(fields, files, files_meta)

            state = self._transition(RequestState.PRICING)
            quote = self.price_calculator.quote(
                order.options, order.options.copies, order.total_pages
            )
            order = order.with_quote(quote)

            state = self._transition(RequestState.DISPATCHING)
            self.notification_service.dispatch(order)
            dispatched = True

            logger.info(
                f"Order {order.order_id[:8]} queued: {order.total_pages} pages, "
                f"total {quote.currency} {quote.grand_total}"
            )
            return {
                "ok": True,
                "queued": True,
                "pages": order.total_pages,
                "estimatedTotal": quote.grand_total,
                "orderId": order.order_id,
            }

        except OrderValidationError as e:
            state = self._transition(RequestState.REJECTED, "; ".join(e.errors))
            raise

        except Exception:
            state = self._transition(RequestState.FAILED)
            logger.error("Print request failed before dispatch", exc_info=True)
            raise

        finally:
            if not dispatched:
                self.upload_store.discard(files)
            logger.debug(f"Print request finished on the request thread in state {state.value}")

    def count_one(self, upload: UploadedFile) -> Dict[str, Any]:
        """Count pages of a single file, then delete it."""
        try:
            pages = self.page_counter.count(upload)
            return {
                "ok": True,
                "pages": pages,
                "originalName": upload.filename,
                "mimetype": upload.mimetype,
            }
        finally:
            self.upload_store.discard([upload])

    def count_pages(self, files: Sequence[UploadedFile]) -> Dict[str, Any]:
        """Count pages of several files, then delete them."""
        try:
            results: List[Dict[str, Any]] = []
            total_pages = 0
            for index, upload in enumerate(files):
                pages = self.page_counter.count(upload)
                total_pages += pages
                results.append({
                    "index": index,
                    "originalName": upload.filename,
                    "mimetype": upload.mimetype,
                    "pages": pages,
                })
            return {"ok": True, "totalPages": total_pages, "files": results}
        finally:
            self.upload_store.discard(files)
