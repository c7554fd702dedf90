from __future__ import annotations

"""Shared data structures used across the outline toolkit core.

This module is intentionally free of UI / I/O code so that the contained
objects can be reused in any context (unit-tests, CLI, editors, etc.).
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from lxml import etree as ET  # type: ignore

from outline_toolkit.core.nodes import TEXT_TAG, create_root, ensure_keys, find_by_key, get_key
from outline_toolkit.core.selection import RangeSelection

__all__ = ["OutlineDocument"]


@dataclass
class OutlineDocument:
    """In-memory representation of an editable outline.

    Attributes
    ----------
    root
        Root element of the document tree (lxml Element, tag ``root``).
    selection
        Current range selection, or None when nothing is selected.
    metadata
        Arbitrary key/value pairs owned by the caller (title, origin…).
    """

    root: ET.Element = field(default_factory=create_root)
    selection: Optional[RangeSelection] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        ensure_keys(self.root)

    def get_node_by_key(self, key: str) -> Optional[ET.Element]:
        return find_by_key(self.root, key)

    def select_collapsed(self, node: ET.Element, offset: int = 0) -> RangeSelection:
        """Place a collapsed caret on *node* and return the new selection.

        Text runs get a text point, containers an element point.
        """
        point_type = "text" if node.tag == TEXT_TAG else "element"
        self.selection = RangeSelection.collapsed(get_key(node), offset, point_type)
        return self.selection

    def select_range(
        self,
        anchor: ET.Element,
        anchor_offset: int,
        focus: ET.Element,
        focus_offset: int,
    ) -> RangeSelection:
        """Select from *anchor* to *focus*, typing each point by node kind."""
        anchor_sel = RangeSelection.collapsed(
            get_key(anchor), anchor_offset, "text" if anchor.tag == TEXT_TAG else "element"
        )
        focus_sel = RangeSelection.collapsed(
            get_key(focus), focus_offset, "text" if focus.tag == TEXT_TAG else "element"
        )
        self.selection = RangeSelection(anchor_sel.anchor, focus_sel.focus)
        return self.selection
