"""
Medic Core Error Classes

Structured exceptions raised inside data-layer operations. Each error carries
a stable ``code`` and converts to an ``OperationResult`` at the operation
boundary, so callers receive a failed result with a readable message instead
of an exception.
"""

from __future__ import annotations

from typing import Any


class MedicError(Exception):
    """Base exception for data-layer operations."""

    code: str = "MEDIC_ERROR"

    def to_result(self) -> dict[str, Any]:
        """Convert to the failed-operation result shape."""
        return {
            "success": False,
            "message": str(self),
            "code": self.code,
            "data": self._error_data() or None,
        }

    def _error_data(self) -> dict[str, Any]:
        """Override to provide error-specific data."""
        return {}


class ValidationError(MedicError):
    """Raised when a required field is missing or a value breaks a rule."""

    code = "VALIDATION_ERROR"

    def __init__(self, message: str, fields: list[str] | None = None):
        self.fields = fields or []
        super().__init__(message)

    def _error_data(self) -> dict[str, Any]:
        return {"fields": self.fields} if self.fields else {}


class NotFoundError(MedicError):
    """Raised when operating on a record id that does not exist."""

    code = "NOT_FOUND"

    def __init__(self, kind: str, record_id: str):
        self.kind = kind
        self.record_id = record_id
        super().__init__(f"{kind.capitalize()} not found: {record_id}")

    def _error_data(self) -> dict[str, Any]:
        return {"kind": self.kind, "id": self.record_id}


class InvalidStatusError(MedicError):
    """Raised when a status value is outside the fixed set."""

    code = "INVALID_STATUS"

    def __init__(self, status: str, allowed: list[str] | tuple[str, ...]):
        self.status = status
        self.allowed = list(allowed)
        super().__init__(f"Invalid status: {status!r}. Expected one of: {', '.join(self.allowed)}")

    def _error_data(self) -> dict[str, Any]:
        return {"status": self.status, "allowed": self.allowed}


class StorageFailureError(MedicError):
    """Raised when the underlying key-value backend rejects a write."""

    code = "STORAGE_FAILURE"

    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"Could not save {key}: {reason}")

    def _error_data(self) -> dict[str, Any]:
        return {"key": self.key}


class StorageQuotaError(StorageFailureError):
    """Raised by a backend when a write would exceed its byte quota."""

    code = "STORAGE_QUOTA_EXCEEDED"

    def __init__(self, key: str, required: int, quota: int):
        self.required = required
        self.quota = quota
        super().__init__(key, f"quota exceeded ({required} > {quota} bytes)")

    def _error_data(self) -> dict[str, Any]:
        return {"key": self.key, "required": self.required, "quota": self.quota}
