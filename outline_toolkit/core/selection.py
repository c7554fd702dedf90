from __future__ import annotations

"""Range selection over the outline document tree.

A selection is an anchor/focus pair of points. Each point names a node by
key plus an offset whose meaning depends on the point type:

- ``"text"``: character offset inside a ``<text>`` run;
- ``"element"``: child index inside a container element.

Points never hold element references. They are resolved against the tree
on demand, so a point naming a removed node is detected immediately
(``SelectionError``) instead of silently pointing into a detached subtree.
"""

from dataclasses import dataclass
from typing import List, Literal, Optional, Tuple

from lxml import etree as ET  # type: ignore

from outline_toolkit.core.exceptions import SelectionError
from outline_toolkit.core.nodes import (
    find_by_key,
    get_first_descendant,
    get_key,
    get_last_descendant,
    is_element_node,
    is_same,
    is_text,
    iter_document_order,
)

__all__ = ["PointType", "Point", "RangeSelection"]

PointType = Literal["text", "element"]


@dataclass
class Point:
    """One end of a selection."""

    key: str
    offset: int = 0
    type: PointType = "text"

    def set(self, key: str, offset: int, type: PointType) -> None:
        self.key = key
        self.offset = offset
        self.type = type

    def get_node(self, root: ET.Element) -> ET.Element:
        node = find_by_key(root, self.key)
        if node is None:
            raise SelectionError("Selection point does not resolve to an attached node", self.key)
        return node

    def resolves(self, root: ET.Element) -> bool:
        return find_by_key(root, self.key) is not None

    def copy(self) -> "Point":
        return Point(self.key, self.offset, self.type)


def _descendant_by_index(node: ET.Element, index: int) -> Optional[ET.Element]:
    """Return the leaf-most node at child slot *index* of *node*."""
    children = list(node)
    if not children:
        return None
    if index >= len(children):
        resolved = children[-1]
        return get_last_descendant(resolved) if len(resolved) else resolved
    resolved = children[max(0, index)]
    return get_first_descendant(resolved) if len(resolved) else resolved


def _child_at(node: ET.Element, index: int) -> Optional[ET.Element]:
    if 0 <= index < len(node):
        return node[index]
    return None


@dataclass
class RangeSelection:
    """Anchor/focus selection with the pending inline format and style.

    ``format`` and ``style`` are applied to blocks created while the
    selection is active (for example the paragraph produced by leaving a
    list), mirroring what the user would type next.
    """

    anchor: Point
    focus: Point
    format: int = 0
    style: str = ""

    @classmethod
    def collapsed(cls, key: str, offset: int = 0, type: PointType = "text") -> "RangeSelection":
        return cls(Point(key, offset, type), Point(key, offset, type))

    def is_collapsed(self) -> bool:
        return (
            self.anchor.key == self.focus.key
            and self.anchor.offset == self.focus.offset
            and self.anchor.type == self.focus.type
        )

    def resolves(self, root: ET.Element) -> bool:
        return self.anchor.resolves(root) and self.focus.resolves(root)

    # ------------------------------------------------------------------
    # Ordering and node collection
    # ------------------------------------------------------------------
    def get_start_end_points(self, root: ET.Element) -> Tuple[Point, Point]:
        """Return ``(start, end)`` with start preceding end in document order."""
        if self._is_backward(root):
            return self.focus, self.anchor
        return self.anchor, self.focus

    def _is_backward(self, root: ET.Element) -> bool:
        if self.anchor.key == self.focus.key:
            return self.focus.offset < self.anchor.offset
        order = {el.get("key"): index for index, el in enumerate(root.iter(ET.Element))}
        anchor_pos = order.get(get_key(self._caret_node(self.anchor, root)), -1)
        focus_pos = order.get(get_key(self._caret_node(self.focus, root)), -1)
        if anchor_pos == focus_pos:
            return self.focus.offset < self.anchor.offset
        return focus_pos < anchor_pos

    @staticmethod
    def _caret_node(point: Point, root: ET.Element) -> ET.Element:
        node = point.get_node(root)
        if point.type == "element" and is_element_node(node):
            resolved = _descendant_by_index(node, point.offset)
            if resolved is not None:
                return resolved
        return node

    def get_nodes(self, root: ET.Element) -> List[ET.Element]:
        """Return the nodes touched by the selection, in document order."""
        start, end = self.get_start_end_points(root)
        first = start.get_node(root)
        last = end.get_node(root)

        if is_element_node(first):
            resolved = _descendant_by_index(first, start.offset)
            if resolved is not None:
                first = resolved
        if is_element_node(last):
            resolved = _descendant_by_index(last, end.offset)
            # An element point sitting *before* a child does not select that child.
            if resolved is not None and not is_same(resolved, first) and is_same(_child_at(last, end.offset), resolved):
                resolved = resolved.getprevious()
            if resolved is not None:
                last = resolved

        if is_same(first, last):
            if is_element_node(first) and len(first) > 0:
                return []
            return [first]

        ordered = list(iter_document_order(root))
        keys = [get_key(el) for el in ordered]
        try:
            first_index = keys.index(get_key(first))
            last_index = keys.index(get_key(last))
        except ValueError:
            raise SelectionError("Selection spans nodes outside the document root")
        if first_index > last_index:
            first_index, last_index = last_index, first_index
        return ordered[first_index:last_index + 1]

    # ------------------------------------------------------------------
    # Re-pointing helpers
    # ------------------------------------------------------------------
    def select_start(self, node: ET.Element) -> None:
        """Collapse the selection at the start of *node*'s first leaf."""
        leaf = get_first_descendant(node)
        if leaf is not None and is_text(leaf):
            self._collapse(get_key(leaf), 0, "text")
        elif leaf is not None and is_element_node(leaf):
            self._collapse(get_key(leaf), 0, "element")
        elif leaf is not None:
            parent = leaf.getparent()
            self._collapse(get_key(parent), parent.index(leaf), "element")
        else:
            self._collapse(get_key(node), 0, "element")

    def select_end(self, node: ET.Element) -> None:
        """Collapse the selection at the end of *node*."""
        leaf = get_last_descendant(node)
        if leaf is not None and is_text(leaf):
            self._collapse(get_key(leaf), len(leaf.text or ""), "text")
        else:
            self._collapse(get_key(node), len(node), "element")

    def _collapse(self, key: str, offset: int, type: PointType) -> None:
        self.anchor.set(key, offset, type)
        self.focus.set(key, offset, type)
