"""
Error taxonomy for the receivables ledger.

Every error carries a stable error code and a details dict so the log line
holds enough context (endpoint, status, party) to diagnose the failure.
"""
from __future__ import annotations
from typing import Any, Dict, Optional


class LedgerError(Exception):
    """Base ledger exception."""

    def __init__(self, message: str, error_code: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(message)


class SourceUnavailable(LedgerError):
    """A fetch to parties, sales, receipts or balances failed."""

    def __init__(self, endpoint: str, status: Optional[int] = None, message: str = ""):
        self.endpoint = endpoint
        self.status = status
        if not message:
            message = f"{endpoint} unavailable"
            if status is not None:
                message = f"{endpoint} returned HTTP {status}"
        super().__init__(
            message=message,
            error_code="ERR_SOURCE_001",
            details={"endpoint": endpoint, "status": status},
        )


class MalformedResponse(SourceUnavailable):
    """Response body is not JSON or lacks the expected shape."""

    def __init__(self, endpoint: str, status: Optional[int] = None, reason: str = "malformed response"):
        super().__init__(endpoint, status, message=f"{endpoint}: {reason}")
        self.error_code = "ERR_SOURCE_002"


class ExportFailure(LedgerError):
    """Spreadsheet rendering or writing failed."""

    def __init__(self, filepath: str, reason: str):
        super().__init__(
            message=f"Could not export report to {filepath}: {reason}",
            error_code="ERR_EXPORT_001",
            details={"filepath": filepath},
        )


class ValidationGap(LedgerError):
    """Record cannot be decoded into a transaction."""

    def __init__(self, resource: str, reason: str, record: Any = None):
        super().__init__(
            message=f"Skipping {resource} record: {reason}",
            error_code="ERR_VALIDATION_001",
            details={"resource": resource, "record": repr(record)[:200]},
        )


class InvalidTransition(LedgerError):
    """Balance state machine was asked for a move it does not allow."""

    def __init__(self, current: str, target: str):
        super().__init__(
            message=f"Cannot move from {current} to {target}",
            error_code="ERR_STATE_001",
            details={"from": current, "to": target},
        )
