from __future__ import annotations

"""Exception classes for the outline restructuring core.

Only genuine invariant violations are raised. Conditions where there is
simply nothing to do (no indented item to outdent, no list to remove) are
not errors: engine functions return without mutating the tree.
"""

from typing import Optional

__all__ = ["OutlineError", "ListInvariantError", "SelectionError"]


class OutlineError(Exception):
    """Base exception for all outline-related errors.

    Carries the key of the offending node when one is known so that logs
    can point at the exact element of the tree.
    """

    def __init__(self, message: str, node_key: Optional[str] = None) -> None:
        super().__init__(message)
        self.node_key = node_key

    def __str__(self) -> str:
        if self.node_key:
            return f"[Node: {self.node_key}] {super().__str__()}"
        return super().__str__()


class ListInvariantError(OutlineError):
    """Raised when the tree violates a structural list invariant.

    Typical causes are an item whose parent is not a list, or a list left
    without items. These indicate a caller precondition violation; the
    enclosing transaction must be discarded.
    """
    pass


class SelectionError(OutlineError):
    """Raised when a selection point names a node that is not attached."""
    pass
