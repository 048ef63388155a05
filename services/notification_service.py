"""
Order notification service with thread-per-order architecture.

The HTTP handler acknowledges an order before its email is sent. The email
is sent from a background thread so a slow mail server never blocks the
customer.

Thread Model:
    - Each order gets its OWN daemon thread (name ``Mail-<order id>``)
    - The thread receives a frozen Order, so nothing is shared with the
      request thread
    - DispatchResultStore is the ONLY channel back to other threads

Flow:
    1. Request thread calls notification_service.dispatch(order)
    2. Mail thread renders the message (text + HTML, attachments or a note)
    3. Mail thread sends it through the Mailer
    4. Mail thread deletes the order's temporary files (always)
    5. Mail thread stores a DispatchResult

There is no retry: a failed send is logged and final for that order.

Usage:
    notification_service = NotificationService(mailer, upload_store)
    order_id = notification_service.dispatch(order)

    # Tests / shutdown
    notification_service.wait(order_id)
    result = notification_service.get_result(order_id)
    notification_service.shutdown()
"""

from __future__ import annotations

import threading
from collections import OrderedDict
from typing import Dict, Optional

from core.exceptions import ConfigurationError, DispatchError
from logging_config import get_logger, get_order_logger, set_thread_name
from models.dispatch_result import DispatchResult, RequestState
from models.order import Order
from modules.mailer import Mailer, build_message
from services.upload_store import UploadStore


logger = get_logger(__name__)

# Unread results kept before the oldest are dropped
MAX_STORED_RESULTS = 500


class DispatchResultStore:
    """
    Thread-safe storage for dispatch results.

    Mail threads WRITE results here; readers take them out (consume-once).
    Only the most recent ``max_results`` are kept; older unread results are
    dropped.
    """

    def __init__(self, max_results: int = MAX_STORED_RESULTS):
        self._results: "OrderedDict[str, DispatchResult]" = OrderedDict()
        self._max_results = max_results
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._results)

    def put_result(self, result: DispatchResult) -> None:
        with self._lock:
            self._results[result.order_id] = result
            self._results.move_to_end(result.order_id)
            while len(self._results) > self._max_results:
                evicted_id, _ = self._results.popitem(last=False)
                logger.debug(f"Dropped unread dispatch result for order {evicted_id[:8]}")
            logger.debug(f"Stored dispatch result for order {result.order_id[:8]}")

    def get_result(self, order_id: str) -> Optional[DispatchResult]:
        """Get and remove the result for an order. None if not finished yet."""
        with self._lock:
            return self._results.pop(order_id, None)

    def peek_result(self, order_id: str) -> Optional[DispatchResult]:
        """Check for a result without removing it."""
        with self._lock:
            return self._results.get(order_id)

    def clear(self) -> int:
        with self._lock:
            count = len(self._results)
            self._results.clear()
            logger.info(f"Cleared {count} dispatch results from store")
            return count


class NotificationService:
    """
    Sends order notifications in background threads.

    Attributes:
        result_store: DispatchResultStore with the outcome of finished dispatches
    """

    def __init__(
        self,
        mailer: Mailer,
        upload_store: UploadStore,
        max_stored_results: int = MAX_STORED_RESULTS,
    ):
        self._mailer = mailer
        self._upload_store = upload_store
        self._result_store = DispatchResultStore(max_stored_results)

        # Track active mail threads for wait/shutdown
        self._active_threads: Dict[str, threading.Thread] = {}
        self._threads_lock = threading.Lock()

        logger.info("NotificationService initialized")

    @property
    def result_store(self) -> DispatchResultStore:
        return self._result_store

    @property
    def active_count(self) -> int:
        with self._threads_lock:
            return sum(1 for thread in self._active_threads.values() if thread.is_alive())

    def dispatch(self, order: Order) -> str:
        """
        Start sending the notification for an order. Returns immediately.

        The mail thread owns the order's temporary files from here on and
        deletes them whatever the outcome.

        Returns:
            The order id
        """
        order_id = order.order_id
        logger.info(f"Queueing notification for order {order_id[:8]}")

        thread = threading.Thread(
            target=self._dispatch_thread_main,
            args=(order,),
            name=f"Mail-{order_id[:8]}",
            daemon=True,
        )

        with self._threads_lock:
            self._active_threads[order_id] = thread

        thread.start()
        return order_id

    def get_result(self, order_id: str) -> Optional[DispatchResult]:
        """Get dispatch result (consumes on read)."""
        return self._result_store.get_result(order_id)

    def is_pending(self, order_id: str) -> bool:
        with self._threads_lock:
            thread = self._active_threads.get(order_id)
            return thread is not None and thread.is_alive()

    def wait(self, order_id: str, timeout: float = 30.0) -> bool:
        """
        Block until an order's dispatch thread has finished.

        Returns:
            True if the thread is done (or was never started)
        """
        with self._threads_lock:
            thread = self._active_threads.get(order_id)
        if thread is None:
            return True
        thread.join(timeout=timeout)
        return not thread.is_alive()

    def shutdown(self, timeout_per_thread: float = 5.0) -> None:
        """Wait for all active mail threads to finish (application shutdown)."""
        with self._threads_lock:
            active = list(self._active_threads.items())

        if not active:
            logger.info("No active notification threads to wait for")
            return

        logger.info(f"Waiting for {len(active)} notification threads to complete...")

        for order_id, thread in active:
            if thread.is_alive():
                thread.join(timeout=timeout_per_thread)
                if thread.is_alive():
                    logger.warning(f"Notification thread {order_id[:8]} did not complete in time")

        logger.info("Notification service shutdown complete")

    def _dispatch_thread_main(self, order: Order) -> None:
        set_thread_name(f"Mail-{order.order_id[:8]}")
        order_logger = get_order_logger(order.order_id)

        order_logger.info(f"Preparing notification for {order.name} ({len(order.files)} files)")
        result: Optional[DispatchResult] = None

        try:
            message = build_message(order, self._mailer.settings)
            if not message.attachments_included:
                order_logger.info(
                    f"Attachments omitted, combined size {order.combined_size} bytes exceeds limit"
                )

            message_id = self._mailer.send(message)
            order_logger.info(f"Notification sent, message id {message_id}")

            result = DispatchResult.create_completed(
                order_id=order.order_id,
                message_id=message_id,
                attachments_included=message.attachments_included,
            )

        except ConfigurationError as e:
            order_logger.error(f"Notification not sent, mail is not configured: {e}")
            result = DispatchResult.create_failed(order.order_id, e.message)

        except DispatchError as e:
            order_logger.error(f"Notification failed: {e.reason}")
            result = DispatchResult.create_failed(order.order_id, e.reason)

        except Exception as e:
            order_logger.error(f"Notification failed unexpectedly: {e}", exc_info=True)
            result = DispatchResult.create_failed(order.order_id, str(e))

        finally:
            self._upload_store.discard(order.uploads)

            state = RequestState.COMPLETED if result is not None and result.succeeded else RequestState.FAILED
            order_logger.info(f"Print request -> {state.value}")

            if result is not None:
                self._result_store.put_result(result)

            with self._threads_lock:
                self._active_threads.pop(order.order_id, None)

            order_logger.info("Notification thread exiting")
