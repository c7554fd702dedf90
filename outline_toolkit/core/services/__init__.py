from __future__ import annotations

"""High-level orchestration services for list editing.

Services wrap the list engine in transactions and report outcomes through
:class:`OperationResult` instead of raising.
"""

from .list_editing_service import ListEditingService, OperationResult  # noqa: F401
from .transaction import DocumentTransaction  # noqa: F401

__all__: list[str] = [
    "ListEditingService",
    "OperationResult",
    "DocumentTransaction",
]
