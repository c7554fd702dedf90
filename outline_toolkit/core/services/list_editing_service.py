from __future__ import annotations

"""Service layer for list commands on an in-memory outline document.

This module wraps the list restructuring engine in UI-agnostic commands
(toggle list, indent, outdent, paragraph break, checkbox toggle). Each
command runs inside a :class:`DocumentTransaction`:

1. the engine mutates the tree and re-points the selection;
2. every list in the document is renumbered;
3. structural invariants are checked.

Any :class:`~outline_toolkit.core.exceptions.OutlineError` raised along the
way restores the document and turns into ``OperationResult(success=False)``.
Expected no-op situations never raise. A command that leaves the tree and
the selection unchanged skips steps 2 and 3 and reports ``success=False``
with ``details["noop"]`` set.

Examples
--------
Basic usage:

    service = ListEditingService()
    result = service.toggle_list(document, "number")
    if not result.success:
        print(result.message)
"""

from dataclasses import dataclass
import logging
from typing import Any, Callable, Dict, List, Optional

from lxml import etree as ET  # type: ignore

from outline_toolkit.config import ConfigManager
from outline_toolkit.core.exceptions import OutlineError
from outline_toolkit.core.lists import format_list
from outline_toolkit.core.lists.utils import (
    get_nearest_list_item,
    get_owning_list,
    toggle_checked as toggle_item_checked,
)
from outline_toolkit.core.lists.validation import check_invariants
from outline_toolkit.core.models import OutlineDocument
from outline_toolkit.core.nodes import LIST_KINDS, LIST_TAG, get_key, get_list_type
from outline_toolkit.core.services.transaction import DocumentTransaction

__all__ = ["OperationResult", "ListEditingService"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OperationResult:
    """Result of a list editing command.

    Attributes
    ----------
    success
        Whether the command changed the document.
    message
        Human-readable summary suitable for logs or UI display.
    details
        Optional structured details for diagnostics or caller logic.
    """
    success: bool
    message: str
    details: Optional[Dict[str, Any]] = None


class ListEditingService:
    """Encapsulates list commands on an :class:`OutlineDocument`.

    Parameters
    ----------
    config : ConfigManager, optional
        Source of the ``list_rules`` section. Defaults to the shared
        :class:`ConfigManager` instance.
    match_start, renumber, validate : bool, optional
        Explicit values for ``merge_requires_matching_start``,
        ``renumber_after_edit`` and ``validate_after_edit``; ``None`` keeps
        the configured value.
    """

    def __init__(
        self,
        config: Optional[ConfigManager] = None,
        *,
        match_start: Optional[bool] = None,
        renumber: Optional[bool] = None,
        validate: Optional[bool] = None,
    ) -> None:
        rules = (config if config is not None else ConfigManager()).get_list_rules()
        aliases = rules.get("kind_aliases") or {}
        self._aliases: Dict[str, str] = {str(k).lower(): str(v).lower() for k, v in aliases.items()}
        self._match_start = bool(rules.get("merge_requires_matching_start", False)) if match_start is None else match_start
        self._renumber = bool(rules.get("renumber_after_edit", True)) if renumber is None else renumber
        self._validate = bool(rules.get("validate_after_edit", True)) if validate is None else validate

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def resolve_kind(self, kind: str) -> Optional[str]:
        """Map *kind* (or one of its configured aliases) to a list kind."""
        normalized = str(kind).strip().lower()
        normalized = self._aliases.get(normalized, normalized)
        return normalized if normalized in LIST_KINDS else None

    def toggle_list(self, document: OutlineDocument, kind: str) -> OperationResult:
        """Remove the list around the selection if it has *kind*, else create one."""
        resolved = self.resolve_kind(kind)
        if resolved is None:
            return self._unknown_kind("toggle_list", kind)
        current = self._selection_list_kind(document)
        if current == resolved:
            return self.remove_list(document)
        return self.insert_list(document, resolved)

    def insert_list(self, document: OutlineDocument, kind: str) -> OperationResult:
        resolved = self.resolve_kind(kind)
        if resolved is None:
            return self._unknown_kind("insert_list", kind)
        return self._run(
            document,
            "insert_list",
            lambda: format_list.insert_list(document, resolved, match_start=self._match_start),
            {"kind": resolved},
        )

    def remove_list(self, document: OutlineDocument) -> OperationResult:
        return self._run(document, "remove_list", lambda: format_list.remove_list(document), {})

    def indent(self, document: OutlineDocument) -> OperationResult:
        items = self._selected_items(document)
        if not items:
            logger.info("Edit noop: indent no_list_item")
            return OperationResult(False, "No list item in selection.", {"op": "indent"})

        def action() -> None:
            handled: set = set()
            for item in items:
                format_list.handle_indent(item, handled)

        return self._run(document, "indent", action, {"items": [get_key(i) for i in items]})

    def outdent(self, document: OutlineDocument) -> OperationResult:
        items = self._selected_items(document)
        if not items:
            logger.info("Edit noop: outdent no_list_item")
            return OperationResult(False, "No list item in selection.", {"op": "outdent"})

        def action() -> None:
            for item in items:
                format_list.handle_outdent(item)

        return self._run(document, "outdent", action, {"items": [get_key(i) for i in items]})

    def insert_paragraph(self, document: OutlineDocument) -> OperationResult:
        """Run the paragraph-break handler; ``details["handled"]`` tells the caller
        whether its default paragraph insertion should be skipped."""
        outcome: Dict[str, bool] = {}

        def action() -> None:
            outcome["handled"] = format_list.handle_list_insert_paragraph(document)

        result = self._run(document, "insert_paragraph", action, {})
        handled = outcome.get("handled", False)
        if result.success:
            return OperationResult(True, "Paragraph break handled in list.", {**(result.details or {}), "handled": True})
        if (result.details or {}).get("noop"):
            return OperationResult(False, "Paragraph break left to default handling.", {**result.details, "handled": handled})
        return result

    def toggle_checked(self, document: OutlineDocument) -> OperationResult:
        items = self._selected_items(document)
        if not items:
            logger.info("Edit noop: toggle_checked no_list_item")
            return OperationResult(False, "No list item in selection.", {"op": "toggle_checked"})
        outcome: Dict[str, List[str]] = {"toggled": []}

        def action() -> None:
            for item in items:
                if toggle_item_checked(item):
                    outcome["toggled"].append(get_key(item))

        result = self._run(document, "toggle_checked", action, {})
        if not outcome["toggled"] and "error" not in (result.details or {}):
            return OperationResult(False, "No checklist item in selection.", {"op": "toggle_checked", "noop": True})
        if result.success:
            return OperationResult(True, result.message, {**(result.details or {}), **outcome})
        return result

    # -------------------------------------------------------------------------
    # Internal helpers
    # -------------------------------------------------------------------------

    def _run(
        self,
        document: OutlineDocument,
        op: str,
        action: Callable[[], None],
        details: Dict[str, Any],
    ) -> OperationResult:
        logger.info("Edit: %s %s", op, details or "")
        details = {"op": op, **details}
        if document.selection is None:
            logger.info("Edit noop: %s no_selection", op)
            return OperationResult(False, "No selection.", details)

        changed = False
        try:
            with DocumentTransaction(document, op) as tx:
                action()
                changed = tx.has_changes()
                if changed:
                    self._finalize(document)
        except OutlineError as exc:
            logger.warning("Edit FAIL: %s %s", op, exc)
            return OperationResult(False, str(exc), {**details, "error": type(exc).__name__})

        if not changed:
            logger.info("Edit noop: %s unchanged", op)
            return OperationResult(False, f"{op} changed nothing.", {**details, "noop": True})

        logger.info("Edit OK: %s", op)
        return OperationResult(True, f"{op} applied.", details)

    def _finalize(self, document: OutlineDocument) -> None:
        if self._renumber:
            for list_node in document.root.iter(LIST_TAG):
                format_list.update_children_list_item_value(list_node)
        if self._validate:
            check_invariants(document.root, document.selection, strict_checked=self._renumber)

    def _selected_items(self, document: OutlineDocument) -> List[ET.Element]:
        """Distinct nearest items of the selected nodes, in document order."""
        selection = document.selection
        if selection is None:
            return []
        try:
            nodes = selection.get_nodes(document.root)
            if not nodes:
                nodes = [selection.anchor.get_node(document.root)]
        except OutlineError as exc:
            logger.warning("Could not collect selected items: %s", exc)
            return []

        items: List[ET.Element] = []
        seen = set()
        for node in nodes:
            item = get_nearest_list_item(node)
            if item is None:
                continue
            key = get_key(item)
            if key not in seen:
                seen.add(key)
                items.append(item)
        return items

    def _selection_list_kind(self, document: OutlineDocument) -> Optional[str]:
        selection = document.selection
        if selection is None:
            return None
        try:
            anchor = selection.anchor.get_node(document.root)
            item = get_nearest_list_item(anchor)
            if item is None:
                return None
            return get_list_type(get_owning_list(item))
        except OutlineError:
            return None

    @staticmethod
    def _unknown_kind(op: str, kind: str) -> OperationResult:
        logger.warning("Edit FAIL: %s unknown_kind=%s", op, kind)
        return OperationResult(False, f"Unknown list kind '{kind}'.", {"op": op, "kind": kind})
