from __future__ import annotations

"""Structural checks run after every list edit.

:func:`find_violations` reports problems as human-readable strings so they
can be logged in one go; :func:`check_invariants` raises on the first one.
"""

import logging
from typing import List, Optional

from lxml import etree as ET  # type: ignore

from outline_toolkit.core.exceptions import ListInvariantError, SelectionError
from outline_toolkit.core.nodes import (
    LIST_ITEM_TAG,
    LIST_KINDS,
    LIST_TAG,
    get_checked,
    get_list_type,
    is_list,
    is_list_item,
)
from outline_toolkit.core.selection import RangeSelection

__all__ = ["find_violations", "check_invariants"]

logger = logging.getLogger(__name__)


def find_violations(
    root: ET.Element,
    selection: Optional[RangeSelection] = None,
    *,
    strict_checked: bool = True,
) -> List[str]:
    """Return a description of every invariant the tree currently breaks.

    Parameters
    ----------
    root
        Document root to inspect.
    selection
        When given, both of its points must name attached nodes.
    strict_checked
        Also require that items outside checklists carry no checked state.
        Only meaningful once lists have been renumbered.
    """
    problems: List[str] = []

    for list_node in root.iter(LIST_TAG):
        key = list_node.get("key")
        if get_list_type(list_node) not in LIST_KINDS:
            problems.append(f"list {key} has unknown kind {list_node.get('kind')!r}")
        if len(list_node) == 0:
            problems.append(f"list {key} has no items")
        for child in list_node:
            if not is_list_item(child):
                problems.append(f"list {key} contains <{child.tag}>")

    for item in root.iter(LIST_ITEM_TAG):
        key = item.get("key")
        parent = item.getparent()
        if not is_list(parent):
            problems.append(f"item {key} is not inside a list")
            continue
        nested = [child for child in item if is_list(child)]
        if len(nested) > 1:
            problems.append(f"item {key} owns {len(nested)} nested lists")
        elif nested and nested[0] is not item[-1]:
            problems.append(f"item {key} has content after its nested list")
        if strict_checked and get_list_type(parent) != "check" and get_checked(item) is not None:
            problems.append(f"item {key} is checked outside a checklist")

    if selection is not None:
        for name, point in (("anchor", selection.anchor), ("focus", selection.focus)):
            if not point.resolves(root):
                problems.append(f"selection {name} names detached node {point.key}")

    return problems


def check_invariants(
    root: ET.Element,
    selection: Optional[RangeSelection] = None,
    *,
    strict_checked: bool = True,
) -> None:
    """Raise if the tree or selection is structurally broken.

    Raises
    ------
    SelectionError
        A selection point no longer resolves.
    ListInvariantError
        Any other violation.
    """
    problems = find_violations(root, selection, strict_checked=strict_checked)
    if not problems:
        return
    for problem in problems:
        logger.error("Invariant violated: %s", problem)
    first = problems[0]
    if first.startswith("selection"):
        raise SelectionError(first)
    raise ListInvariantError(first)
