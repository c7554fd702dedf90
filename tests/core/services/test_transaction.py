import pytest

lxml = pytest.importorskip("lxml")

from outline_toolkit.core.exceptions import ListInvariantError
from outline_toolkit.core.lists.format_list import handle_indent
from outline_toolkit.core.services.transaction import DocumentTransaction


def test_rollback_restores_tree_selection_and_metadata(flat_bullets, canonical_xml):
    doc = flat_bullets
    doc.metadata["title"] = "Before"
    doc.select_collapsed(doc.get_node_by_key("tb"), 1)
    root = doc.root
    before = canonical_xml(root)

    tx = DocumentTransaction(doc, "indent")
    tx.begin()
    handle_indent(doc.get_node_by_key("b"))
    doc.metadata["title"] = "After"
    doc.selection.anchor.set("ta", 0, "text")

    assert tx.rollback() is True
    assert tx.rolled_back
    assert doc.root is root
    assert canonical_xml(doc.root) == before
    assert doc.metadata == {"title": "Before"}
    assert (doc.selection.anchor.key, doc.selection.anchor.offset) == ("tb", 1)


def test_rollback_keeps_node_keys(flat_bullets):
    doc = flat_bullets
    tx = DocumentTransaction(doc)
    tx.begin()
    handle_indent(doc.get_node_by_key("b"))
    tx.rollback()
    assert [el.get("key") for el in doc.get_node_by_key("L")] == ["a", "b", "c"]


def test_context_manager_rolls_back_and_reraises(flat_bullets, canonical_xml):
    doc = flat_bullets
    before = canonical_xml(doc.root)
    with pytest.raises(ListInvariantError):
        with DocumentTransaction(doc, "broken") as tx:
            handle_indent(doc.get_node_by_key("b"))
            raise ListInvariantError("simulated", "b")
    assert tx.rolled_back
    assert canonical_xml(doc.root) == before


def test_context_manager_commits_without_error(flat_bullets, outline_shape):
    doc = flat_bullets
    with DocumentTransaction(doc) as tx:
        handle_indent(doc.get_node_by_key("b"))
    assert not tx.rolled_back
    assert outline_shape(doc.root) == [("bullet", [("A", ("bullet", ["B"])), "C"])]


def test_rollback_without_snapshot(flat_bullets):
    assert DocumentTransaction(flat_bullets).rollback() is False


def test_has_changes_tracks_tree_and_selection(flat_bullets):
    doc = flat_bullets
    doc.select_collapsed(doc.get_node_by_key("tb"), 0)
    tx = DocumentTransaction(doc)
    assert tx.has_changes() is False

    tx.begin()
    assert tx.has_changes() is False
    doc.selection.anchor.set("tb", 1, "text")
    assert tx.has_changes() is True

    tx.begin()
    handle_indent(doc.get_node_by_key("b"))
    assert tx.has_changes() is True
