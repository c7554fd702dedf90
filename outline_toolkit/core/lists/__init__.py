from __future__ import annotations

"""Hierarchical list restructuring engine.

The functions re-exported here are the engine's public surface; they work
directly on an :class:`~outline_toolkit.core.models.OutlineDocument` or on
list/item elements of its tree.
"""

from .format_list import (  # noqa: F401
    handle_indent,
    handle_list_insert_paragraph,
    handle_outdent,
    insert_list,
    merge_lists,
    merge_next_sibling_list_if_same_type,
    remove_list,
    set_indent,
    update_children_list_item_value,
)
from .utils import NestingShape, get_indent, toggle_checked  # noqa: F401
from .validation import check_invariants, find_violations  # noqa: F401

__all__: list[str] = [
    "insert_list",
    "remove_list",
    "handle_indent",
    "handle_outdent",
    "handle_list_insert_paragraph",
    "merge_lists",
    "merge_next_sibling_list_if_same_type",
    "update_children_list_item_value",
    "set_indent",
    "get_indent",
    "toggle_checked",
    "NestingShape",
    "check_invariants",
    "find_violations",
]
