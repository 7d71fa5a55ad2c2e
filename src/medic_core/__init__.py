"""
Medic Core - Local Persistent Data Layer

Applications, gallery uploads, support tickets, ratings and preferences
kept in a key-value store with per-entry expiry.

Usage:
    from medic_core import create_context

    ctx = create_context()
    ctx.init()
    result = await ctx.api.submit_application({"gameUsername": "pilot_one"})
"""

__version__ = "2.2.0"

from .context import MedicContext, create_context  # noqa: E402
from .errors import (  # noqa: E402
    InvalidStatusError,
    MedicError,
    NotFoundError,
    StorageFailureError,
    StorageQuotaError,
    ValidationError,
)
from .models import OperationResult  # noqa: E402

__all__ = [
    "__version__",
    "MedicContext",
    "create_context",
    "OperationResult",
    "MedicError",
    "ValidationError",
    "NotFoundError",
    "InvalidStatusError",
    "StorageFailureError",
    "StorageQuotaError",
]
