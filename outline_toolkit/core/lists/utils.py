from __future__ import annotations

"""List/Item helpers shared by the restructuring engine.

An item that owns a nested list comes in two shapes, modelled explicitly by
:class:`NestingShape`:

- content-bearing: ``<listitem><text/>…<list/></listitem>``
- empty wrapper:   ``<listitem><list/></listitem>``

Engine code asks for the shape once and dispatches on it rather than
re-inspecting children at every branch.
"""

from enum import Enum
import logging
from typing import List, Optional

from lxml import etree as ET  # type: ignore

from outline_toolkit.core.exceptions import ListInvariantError
from outline_toolkit.core.nodes import (
    get_checked,
    get_first_child,
    get_key,
    get_last_child,
    get_list_type,
    get_next_sibling,
    get_previous_sibling,
    is_list,
    is_list_item,
    is_same,
    mark_dirty,
    remove,
    set_checked,
)

__all__ = [
    "NestingShape",
    "is_nested_list_node",
    "get_nested_list",
    "get_nesting_shape",
    "get_owning_list",
    "get_nearest_list_item",
    "get_top_list_node",
    "get_list_depth",
    "get_indent",
    "get_all_list_items",
    "remove_highest_empty_list_parent",
    "is_selecting_empty_list_item",
    "toggle_checked",
]

logger = logging.getLogger(__name__)


class NestingShape(Enum):
    """How an item that owns a nested list represents itself."""

    CONTENT_BEARING = "content-bearing"
    EMPTY_WRAPPER = "empty-wrapper"


def is_nested_list_node(node: Optional[ET.Element]) -> bool:
    """Return True for an item whose first child is a list (wrapper shape)."""
    return is_list_item(node) and is_list(get_first_child(node))


def get_nested_list(item: Optional[ET.Element]) -> Optional[ET.Element]:
    """Return the nested list an item ends with, whatever its shape."""
    if not is_list_item(item):
        return None
    last = get_last_child(item)
    return last if is_list(last) else None


def get_nesting_shape(item: ET.Element) -> NestingShape:
    """Classify *item* by whether it holds anything besides lists.

    Returns
    -------
    NestingShape
        ``CONTENT_BEARING`` when the item has text or inline children,
        ``EMPTY_WRAPPER`` when its only children are lists (or it has none).
    """
    if any(not is_list(child) for child in item):
        return NestingShape.CONTENT_BEARING
    return NestingShape.EMPTY_WRAPPER


def get_owning_list(item: ET.Element) -> ET.Element:
    """Return the list *item* is a direct child of.

    Raises
    ------
    ListInvariantError
        If the parent of *item* is not a list.
    """
    parent = item.getparent()
    if not is_list(parent):
        raise ListInvariantError("A list item must have a list for a parent.", get_key(item))
    return parent


def get_nearest_list_item(node: Optional[ET.Element]) -> Optional[ET.Element]:
    """Return *node* or its closest ancestor that is a list item."""
    current = node
    while current is not None:
        if is_list_item(current):
            return current
        current = current.getparent()
    return None


def get_top_list_node(item: ET.Element) -> ET.Element:
    """Return the outermost list of the nested chain containing *item*."""
    top = get_owning_list(item)
    parent = top.getparent()
    while parent is not None:
        if is_list(parent):
            top = parent
        parent = parent.getparent()
    return top


def get_list_depth(list_node: ET.Element) -> int:
    """Number of lists from the document down to *list_node*, inclusive."""
    depth = 0
    current = list_node
    while current is not None:
        if is_list(current):
            depth += 1
        current = current.getparent()
    return depth


def get_indent(item: ET.Element) -> int:
    """Nesting level of *item*: 0 for items of a top list."""
    return get_list_depth(get_owning_list(item)) - 1


def get_all_list_items(list_node: ET.Element) -> List[ET.Element]:
    """Flatten every real item under *list_node* in reading order.

    Wrapper items only contribute their nested items; content-bearing items
    contribute themselves followed by their nested items.
    """
    items: List[ET.Element] = []
    for child in list_node:
        if not is_list_item(child):
            continue
        if not is_nested_list_node(child):
            items.append(child)
        for grandchild in child:
            if is_list(grandchild):
                items.extend(get_all_list_items(grandchild))
    return items


def remove_highest_empty_list_parent(node: ET.Element) -> None:
    """Remove *node* together with every ancestor list/item it leaves empty."""
    target = node
    while get_next_sibling(target) is None and get_previous_sibling(target) is None:
        parent = target.getparent()
        if parent is None or not (is_list_item(parent) or is_list(parent)):
            break
        target = parent
    logger.debug("Removing empty list chain up to <%s key=%s>", target.tag, target.get("key"))
    remove(target)


def is_selecting_empty_list_item(anchor_node: ET.Element, nodes: List[ET.Element]) -> bool:
    return is_list_item(anchor_node) and (
        len(nodes) == 0
        or (len(nodes) == 1 and is_same(anchor_node, nodes[0]) and len(anchor_node) == 0)
    )


def toggle_checked(item: ET.Element) -> bool:
    """Flip the checked state of a checklist item.

    Returns False (and leaves the item untouched) when the owning list is
    not a checklist, since ``checked`` must stay undefined there.
    """
    if get_list_type(get_owning_list(item)) != "check":
        return False
    set_checked(item, not bool(get_checked(item)))
    mark_dirty(item)
    return True
