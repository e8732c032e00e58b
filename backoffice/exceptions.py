"""
Back-office Error Taxonomy

Every failure the engine can report derives from BackofficeError.
The remote store raises them; the orchestrator and workflow engine
catch them at their boundary and turn them into notifications.

    BackofficeError
    ├── ValidationError      required field missing / bad value, no call made
    ├── TransportError       no response received
    ├── ServerError          non-2xx response
    │   └── AuthError        401 / 403
    ├── FetchError           a listing failed (wraps the cause)
    ├── InvalidTransition    illegal order status change, no call made
    └── UnconfirmedDelete    delete attempted without a matching confirmation

Author: Khalil Bannouri
Version: 1.0.0
"""

from typing import Optional


class BackofficeError(Exception):
    """Base class for all engine errors."""

    default_message = "Something went wrong"

    def __init__(self, message: Optional[str] = None):
        # detail is only set when a specific message was supplied
        self.detail = message
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(BackofficeError):
    """Client-side pre-check failed before any network call."""

    default_message = "Invalid input"

    def __init__(self, message: Optional[str] = None, field: Optional[str] = None):
        self.field = field
        super().__init__(message)


class TransportError(BackofficeError):
    """The request never produced a response (connection, timeout)."""

    default_message = "Unable to reach the server"


class ServerError(BackofficeError):
    """The server answered with a non-2xx status."""

    default_message = "The server rejected the request"

    def __init__(self, message: Optional[str] = None, status_code: int = 500):
        self.status_code = status_code
        super().__init__(message)


class AuthError(ServerError):
    """401/403: the session credential is missing, expired or insufficient."""

    default_message = "Not authorized"


class FetchError(BackofficeError):
    """Listing a collection failed; `cause` holds the underlying error."""

    def __init__(self, message: Optional[str] = None, cause: Optional[BackofficeError] = None):
        self.cause = cause
        super().__init__(message)


class InvalidTransition(BackofficeError):
    """Requested order status change is not an edge of the workflow."""

    def __init__(self, order_id: str, current: Optional[str], target: str):
        self.order_id = order_id
        self.current = current
        self.target = target
        if current is None:
            message = f"Order {order_id} is not loaded"
        else:
            message = f"Cannot move order from {current} to {target}"
        super().__init__(message)


class UnconfirmedDelete(BackofficeError):
    """A delete reached the orchestrator without passing the confirmation gate."""

    default_message = "Delete requires a confirmed request"
