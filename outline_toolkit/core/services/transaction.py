from __future__ import annotations

"""Snapshot-based rollback for a single list edit.

A :class:`DocumentTransaction` captures the whole :class:`OutlineDocument`
(tree, selection, metadata) before an edit and can put it back in place if
the edit raises. The tree is serialized with ``lxml.etree.tostring`` so the
snapshot is an immutable blob that later mutations cannot reach.

Design principles
-----------------
- No UI imports and no I/O.
- Restoration is build-then-swap: the snapshot is parsed first and the live
  tree is only touched once parsing succeeded.
- The root element object is kept; its attributes and children are replaced,
  so callers holding ``document.root`` keep a valid reference.
"""

from dataclasses import dataclass
import copy
import logging
from typing import Any, Dict, Optional

from lxml import etree as ET  # type: ignore

from outline_toolkit.core.exceptions import OutlineError
from outline_toolkit.core.models import OutlineDocument
from outline_toolkit.core.selection import RangeSelection

__all__ = ["DocumentTransaction"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Snapshot:
    """Immutable in-memory snapshot of an OutlineDocument.

    Attributes
    ----------
    root_xml :
        Serialized document root as bytes.
    selection :
        Deep copy of the selection, or None.
    metadata :
        Shallow-copied metadata dictionary.
    """

    root_xml: bytes
    selection: Optional[RangeSelection]
    metadata: Dict[str, Any]


class DocumentTransaction:
    """Rollback boundary around one structural edit.

    Parameters
    ----------
    document : OutlineDocument
        The document the edit will mutate.
    label : str, default="edit"
        Name used in log messages.

    Examples
    --------
    >>> with DocumentTransaction(doc, "indent"):
    ...     handle_indent(item)

    If the block raises an :class:`OutlineError` the document is restored
    and the exception propagates. Other exceptions propagate untouched
    after the same restore.
    """

    def __init__(self, document: OutlineDocument, label: str = "edit") -> None:
        self._document = document
        self._label = label
        self._snapshot: Optional[_Snapshot] = None
        self.rolled_back = False

    def __enter__(self) -> "DocumentTransaction":
        self.begin()
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if exc_type is None:
            return False
        if issubclass(exc_type, OutlineError):
            logger.warning("Transaction %s rolled back: %s", self._label, exc)
        else:
            logger.error("Transaction %s rolled back on unexpected %s: %s", self._label, exc_type.__name__, exc)
        self.rollback()
        return False

    # --------------------------------------------------------------------- API

    def begin(self) -> None:
        """Capture the current document state."""
        self._snapshot = self._create_snapshot(self._document)
        self.rolled_back = False

    def has_changes(self) -> bool:
        """Return True if the tree or selection differs from the snapshot."""
        if self._snapshot is None:
            return False
        if ET.tostring(self._document.root, encoding="utf-8") != self._snapshot.root_xml:
            return True
        return self._document.selection != self._snapshot.selection

    def rollback(self) -> bool:
        """Restore the state captured by :meth:`begin` into the document.

        Returns
        -------
        bool
            True if the document was restored, False when there was no
            snapshot or it could not be parsed back.
        """
        if self._snapshot is None:
            return False
        if not self._restore_snapshot_into_document(self._document, self._snapshot):
            logger.error("Transaction %s: snapshot could not be restored", self._label)
            return False
        self.rolled_back = True
        return True

    # --------------------------------------------------------------- Internals

    @staticmethod
    def _create_snapshot(document: OutlineDocument) -> _Snapshot:
        return _Snapshot(
            root_xml=ET.tostring(document.root, encoding="utf-8"),
            selection=copy.deepcopy(document.selection),
            metadata=dict(document.metadata),
        )

    @staticmethod
    def _restore_snapshot_into_document(document: OutlineDocument, snap: _Snapshot) -> bool:
        try:
            restored_root = ET.fromstring(snap.root_xml)
        except ET.XMLSyntaxError:
            return False

        root = document.root
        root.clear()
        for name, value in restored_root.attrib.items():
            root.set(name, value)
        root.extend(list(restored_root))

        document.selection = copy.deepcopy(snap.selection)
        document.metadata = dict(snap.metadata)
        return True
