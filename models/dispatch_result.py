"""
Request state and notification dispatch result models.

DispatchResult is written once by the notification thread and read by
whoever asks the NotificationService about that order (tests, health checks).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional


class RequestState(Enum):
    """
    State of one print request.

    Lifecycle:
        RECEIVED -> VALIDATING -> COUNTING -> PRICING -> DISPATCHING -> COMPLETED
        (REJECTED after validation, FAILED on unexpected errors)

    COUNTING is entered inside validation once the fields are checked.
    COMPLETED and FAILED after dispatch are reached on the mail thread.
    """

    RECEIVED = "received"
    VALIDATING = "validating"
    COUNTING = "counting"
    PRICING = "pricing"
    DISPATCHING = "dispatching"
    COMPLETED = "completed"
    REJECTED = "rejected"
    FAILED = "failed"


class DispatchStatus(Enum):
    """Outcome of a notification email attempt."""

    COMPLETED = "completed"
    """Email accepted by the mail server."""

    FAILED = "failed"
    """Email not sent (configuration or transport error). Not retried."""


@dataclass
class DispatchResult:
    """
    Result of one order's notification dispatch.

    Created by the notification thread after the send attempt and after the
    order's temporary files were removed.
    """

    order_id: str
    status: DispatchStatus
    message_id: str = ""
    """Message-ID header of the sent email (empty on failure)."""

    attachments_included: bool = False
    error: Optional[str] = None
    finished_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def create_completed(
        cls,
        order_id: str,
        message_id: str,
        attachments_included: bool,
    ) -> "DispatchResult":
        return cls(
            order_id=order_id,
            status=DispatchStatus.COMPLETED,
            message_id=message_id,
            attachments_included=attachments_included,
        )

    @classmethod
    def create_failed(cls, order_id: str, error_message: str) -> "DispatchResult":
        return cls(
            order_id=order_id,
            status=DispatchStatus.FAILED,
            error=error_message,
        )

    @property
    def succeeded(self) -> bool:
        return self.status == DispatchStatus.COMPLETED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "orderId": self.order_id,
            "status": self.status.value,
            "messageId": self.message_id,
            "attachmentsIncluded": self.attachments_included,
            "error": self.error,
            "finishedAt": self.finished_at.isoformat(),
        }
