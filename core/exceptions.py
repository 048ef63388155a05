"""
Custom exceptions for the Print4me server.

Exception Hierarchy:
    Print4meError (base)
    ├── ConfigurationError    - Mail transport / admin address missing (dispatch time)
    ├── OrderValidationError  - Client submitted an invalid order (HTTP 400)
    └── DispatchError         - Notification email could not be delivered

Usage:
    OrderValidationError is raised synchronously and carries EVERY violated
    constraint, never just the first one.
    ConfigurationError and DispatchError only happen inside the background
    notification thread, after the client already got its acknowledgement,
    so they are logged and never reach the caller.

    Page-count detection failures are not exceptions: the page counter
    returns 0 and the caller decides (manual override or rejection).
"""

from typing import Any, Dict, List, Optional


class Print4meError(Exception):
    """
    Base exception for all Print4me errors.

    Allows callers to catch every application-specific error with a single
    except clause.
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        """
        Initialize the exception.

        Args:
            message: Human-readable error message
            details: Optional dictionary with additional context for debugging
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


# =============================================================================
# OPERATIONAL ERRORS - surfaced when a notification is attempted
# =============================================================================

class ConfigurationError(Print4meError):
    """
    The mail transport or the administrator address is not configured.

    Checked lazily: the server starts without mail credentials and only the
    dispatch of an order fails. The order's acknowledgement has already been
    sent at that point.

    Typical causes:
    - Neither SMTP_HOST/SMTP_USER/SMTP_PASS nor GMAIL_USER/GMAIL_APP_PASSWORD set
    - ADMIN_EMAIL not set
    """

    def __init__(self, message: str, setting: Optional[str] = None):
        details = {"resolution": "Set the missing value in the environment or .env"}
        if setting:
            details["setting"] = setting
        super().__init__(message, details)
        self.setting = setting


# =============================================================================
# CLIENT ERRORS
# =============================================================================

class OrderValidationError(Print4meError):
    """
    The submitted print order violates one or more constraints.

    ``errors`` holds every violation message, in the order they were found.
    """

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        message = f"Order rejected with {len(self.errors)} error(s)"
        super().__init__(message, {"errors": self.errors})


# =============================================================================
# DISPATCH ERRORS
# =============================================================================

class DispatchError(Print4meError):
    """
    The notification email for an order could not be delivered.

    Terminal for that order: there is no retry. The original exception is
    chained as ``__cause__``.
    """

    def __init__(self, order_id: str, reason: str):
        message = f"Notification for order {order_id[:8]} failed: {reason}"
        super().__init__(message, {"order_id": order_id})
        self.order_id = order_id
        self.reason = reason
