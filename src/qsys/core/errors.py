"""Domain exceptions raised by the queue services.

The API layer maps each class to an HTTP status; background follow-ups catch
``StatsRecordingError`` and never let it reach a client.
"""

from __future__ import annotations


class QueueError(RuntimeError):
    """Base exception for all queue domain failures."""

    status_code: int = 500
    error_code: str = "queue_error"


class UnknownBranchError(QueueError):
    """Raised when a branch parameter cannot be resolved and no default exists."""

    status_code = 404
    error_code = "unknown_branch"

    def __init__(self, param: str) -> None:
        super().__init__(f'Unknown branch "{param}"')
        self.param = param


class TicketNotFoundError(QueueError):
    """Raised when an operation targets a missing or retired ticket.

    Callers treat this as a stale view and refresh.
    """

    status_code = 404
    error_code = "ticket_not_found"

    def __init__(self, ticket_id: str) -> None:
        super().__init__("Ticket not found")
        self.ticket_id = ticket_id


class InvalidInputError(QueueError):
    """Raised for malformed caller input; carries the offending field name."""

    status_code = 400
    error_code = "invalid_input"

    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field
        self.message = message


class InvalidTransitionError(InvalidInputError):
    """Raised when a ticket status change is not allowed from its current status."""

    status_code = 409
    error_code = "invalid_transition"

    def __init__(self, current: str, target: str) -> None:
        super().__init__("status", f"Cannot move a {current} ticket to {target}")
        self.current = current
        self.target = target


class TransactionConflictError(QueueError):
    """Raised when a store transaction loses a concurrency race."""

    status_code = 409
    error_code = "transaction_conflict"


class ServerError(QueueError):
    """Raised when a transient store failure outlasts the retry budget."""

    status_code = 503
    error_code = "server_error"


class StatsRecordingError(QueueError):
    """Raised when a best-effort statistics write fails."""

    error_code = "stats_recording_failure"
