"""Top-level package for Outline Toolkit.

Hierarchical list editing on an in-memory outline tree. Front-ends should
only depend on the public API exposed here rather than importing internal
modules directly.
"""

from .core.models import OutlineDocument  # re-export for convenience
from .core.services import ListEditingService, OperationResult

__all__: list[str] = [
    "OutlineDocument",
    "ListEditingService",
    "OperationResult",
]
