from __future__ import annotations

"""Container model primitives for the outline document tree.

The document is an ordinary ``lxml.etree`` element tree. Block and inline
nodes are distinguished by tag, and every node carries a stable ``key``
attribute used to re-anchor the selection after structural edits:

    <root key="...">
      <paragraph key="..."><text key="...">Intro</text></paragraph>
      <list key="..." kind="number" start="1">
        <listitem key="..." value="1"><text key="...">First</text></listitem>
      </list>
    </root>

The helpers below are side-effect-free apart from the tree mutation they
name. They never keep references to nodes between calls; everything is
rediscovered from the tree.
"""

import uuid
from typing import Iterable, Iterator, List, Literal, Optional

from lxml import etree as ET  # type: ignore

from outline_toolkit.core.exceptions import ListInvariantError

__all__ = [
    "ROOT_TAG",
    "PARAGRAPH_TAG",
    "LIST_TAG",
    "LIST_ITEM_TAG",
    "TEXT_TAG",
    "LINEBREAK_TAG",
    "LIST_KINDS",
    "ListKind",
    "generate_node_key",
    "ensure_keys",
    "create_root",
    "create_paragraph",
    "create_text",
    "create_linebreak",
    "create_list",
    "create_list_item",
    "is_root_or_shadow_root",
    "is_list",
    "is_list_item",
    "is_text",
    "is_leaf",
    "is_element_node",
    "is_same",
    "get_key",
    "find_by_key",
    "get_parent",
    "get_next_sibling",
    "get_previous_sibling",
    "get_next_siblings",
    "get_previous_siblings",
    "get_children",
    "get_first_child",
    "get_last_child",
    "get_first_descendant",
    "get_last_descendant",
    "is_empty",
    "get_text_content",
    "iter_document_order",
    "append",
    "append_children",
    "insert_before",
    "insert_after",
    "replace",
    "remove",
    "splice",
    "get_format_type",
    "set_format_type",
    "get_block_indent",
    "copy_text_formatting",
    "get_list_type",
    "get_start",
    "get_value",
    "set_value",
    "get_checked",
    "set_checked",
    "mark_dirty",
    "get_revision",
]

ROOT_TAG = "root"
PARAGRAPH_TAG = "paragraph"
LIST_TAG = "list"
LIST_ITEM_TAG = "listitem"
TEXT_TAG = "text"
LINEBREAK_TAG = "linebreak"

LEAF_TAGS = (TEXT_TAG, LINEBREAK_TAG)

ListKind = Literal["bullet", "number", "check"]
LIST_KINDS = ("bullet", "number", "check")


# ---------------------------------------------------------------------------
# Keys and node creation
# ---------------------------------------------------------------------------

def generate_node_key() -> str:
    """Generate a unique, stable key for a new node."""
    return f"n-{uuid.uuid4().hex[:12]}"


def ensure_keys(root: ET.Element) -> int:
    """Assign a key to every element of *root* that lacks one.

    Returns the number of keys assigned. Trees parsed from XML fixtures go
    through this once so that selection points can name any node.
    """
    assigned = 0
    for el in root.iter(ET.Element):
        if el.get("key") is None:
            el.set("key", generate_node_key())
            assigned += 1
    return assigned


def _element(tag: str, **attrs: str) -> ET.Element:
    el = ET.Element(tag)
    el.set("key", generate_node_key())
    for name, value in attrs.items():
        if value is not None:
            el.set(name.replace("_", "-"), value)
    return el


def create_root() -> ET.Element:
    return _element(ROOT_TAG)


def create_paragraph(*children: ET.Element) -> ET.Element:
    """Return a new ``<paragraph>`` holding *children* (moved, not copied)."""
    paragraph = _element(PARAGRAPH_TAG)
    append(paragraph, *children)
    return paragraph


def create_text(text: str = "", format_bits: int = 0) -> ET.Element:
    run = _element(TEXT_TAG)
    run.text = text
    if format_bits:
        run.set("format", str(format_bits))
    return run


def create_linebreak() -> ET.Element:
    return _element(LINEBREAK_TAG)


def create_list(kind: ListKind, start: int = 1) -> ET.Element:
    """Return a new, still empty ``<list>`` of *kind*.

    The caller must give it at least one item before the edit completes.
    """
    if kind not in LIST_KINDS:
        raise ValueError(f"Unsupported list kind '{kind}'")
    return _element(LIST_TAG, kind=kind, start=str(int(start)))


def create_list_item(checked: Optional[bool] = None) -> ET.Element:
    item = _element(LIST_ITEM_TAG)
    set_checked(item, checked)
    return item


# ---------------------------------------------------------------------------
# Predicates
# ---------------------------------------------------------------------------

def is_root_or_shadow_root(node: Optional[ET.Element]) -> bool:
    """Return True for the document root or an element flagged ``shadow="true"``."""
    if node is None:
        return False
    return node.tag == ROOT_TAG or node.get("shadow") == "true"


def is_list(node: Optional[ET.Element]) -> bool:
    return node is not None and node.tag == LIST_TAG


def is_list_item(node: Optional[ET.Element]) -> bool:
    return node is not None and node.tag == LIST_ITEM_TAG


def is_text(node: Optional[ET.Element]) -> bool:
    return node is not None and node.tag == TEXT_TAG


def is_leaf(node: Optional[ET.Element]) -> bool:
    return node is not None and node.tag in LEAF_TAGS


def is_element_node(node: Optional[ET.Element]) -> bool:
    """Return True for container nodes (anything that is not an inline leaf)."""
    return node is not None and node.tag not in LEAF_TAGS


def is_same(a: Optional[ET.Element], b: Optional[ET.Element]) -> bool:
    """Identity comparison through keys; lxml proxies may differ for one node."""
    if a is None or b is None:
        return False
    return a is b or (a.get("key") is not None and a.get("key") == b.get("key"))


# ---------------------------------------------------------------------------
# Tree queries
# ---------------------------------------------------------------------------

def get_key(node: ET.Element) -> str:
    key = node.get("key")
    if key is None:
        key = generate_node_key()
        node.set("key", key)
    return key


def find_by_key(root: ET.Element, key: str) -> Optional[ET.Element]:
    """Locate the element whose ``key`` attribute equals *key* under *root*."""
    if root.get("key") == key:
        return root
    found = root.xpath(".//*[@key=$key]", key=key)
    return found[0] if found else None


def get_parent(node: ET.Element) -> Optional[ET.Element]:
    return node.getparent()


def get_next_sibling(node: ET.Element) -> Optional[ET.Element]:
    return node.getnext()


def get_previous_sibling(node: ET.Element) -> Optional[ET.Element]:
    return node.getprevious()


def get_next_siblings(node: ET.Element) -> List[ET.Element]:
    return list(node.itersiblings())


def get_previous_siblings(node: ET.Element) -> List[ET.Element]:
    """Return preceding siblings in document order (nearest last)."""
    return list(node.itersiblings(preceding=True))[::-1]


def get_children(node: ET.Element) -> List[ET.Element]:
    return list(node)


def get_first_child(node: ET.Element) -> Optional[ET.Element]:
    return node[0] if len(node) else None


def get_last_child(node: ET.Element) -> Optional[ET.Element]:
    return node[-1] if len(node) else None


def get_first_descendant(node: ET.Element) -> Optional[ET.Element]:
    current = get_first_child(node)
    while current is not None and len(current):
        current = current[0]
    return current


def get_last_descendant(node: ET.Element) -> Optional[ET.Element]:
    current = get_last_child(node)
    while current is not None and len(current):
        current = current[-1]
    return current


def is_empty(node: ET.Element) -> bool:
    return len(node) == 0


def get_text_content(node: ET.Element) -> str:
    """Concatenate the text of all inline runs under *node* (inclusive)."""
    parts = []
    for el in node.iter(ET.Element):
        if el.tag == TEXT_TAG:
            parts.append(el.text or "")
        elif el.tag == LINEBREAK_TAG:
            parts.append("\n")
    return "".join(parts)


def iter_document_order(root: ET.Element) -> Iterator[ET.Element]:
    """Yield the descendants of *root* in pre-order, excluding *root* itself."""
    it = root.iter(ET.Element)
    next(it, None)
    return it


# ---------------------------------------------------------------------------
# Tree mutation
# ---------------------------------------------------------------------------

def append(parent: ET.Element, *nodes: ET.Element) -> ET.Element:
    """Move *nodes* to the end of *parent*'s children, in order."""
    for node in nodes:
        parent.append(node)
    return parent


def append_children(parent: ET.Element, nodes: Iterable[ET.Element]) -> ET.Element:
    """Append a batch of nodes (typically another node's children)."""
    return splice(parent, len(parent), 0, list(nodes))


def insert_before(node: ET.Element, new_node: ET.Element) -> ET.Element:
    if node.getparent() is None:
        raise ListInvariantError("Cannot insert before a detached node", get_key(node))
    node.addprevious(new_node)
    return new_node


def insert_after(node: ET.Element, new_node: ET.Element) -> ET.Element:
    if node.getparent() is None:
        raise ListInvariantError("Cannot insert after a detached node", get_key(node))
    node.addnext(new_node)
    return new_node


def replace(node: ET.Element, replacement: ET.Element) -> ET.Element:
    """Put *replacement* where *node* is and detach *node*."""
    parent = node.getparent()
    if parent is None:
        raise ListInvariantError("Cannot replace a detached node", get_key(node))
    node.addprevious(replacement)
    parent.remove(node)
    return replacement


def remove(node: ET.Element) -> None:
    parent = node.getparent()
    if parent is not None:
        parent.remove(node)


def splice(parent: ET.Element, start: int, delete_count: int, nodes: List[ET.Element]) -> ET.Element:
    """Remove *delete_count* children at *start* and insert *nodes* there."""
    for child in list(parent)[start:start + delete_count]:
        parent.remove(child)
    # Detach first so that indices below stay valid when nodes come from parent.
    for node in nodes:
        remove(node)
    start = min(start, len(parent))
    for offset, node in enumerate(nodes):
        parent.insert(start + offset, node)
    return parent


# ---------------------------------------------------------------------------
# Attributes
# ---------------------------------------------------------------------------

def get_format_type(node: ET.Element) -> str:
    return node.get("format", "")


def set_format_type(node: ET.Element, format_type: str) -> None:
    if format_type:
        node.set("format", format_type)
    elif "format" in node.attrib:
        del node.attrib["format"]


def get_block_indent(node: ET.Element) -> int:
    try:
        return max(0, int(node.get("indent", "0")))
    except (TypeError, ValueError):
        return 0


def copy_text_formatting(source: ET.Element, target: ET.Element) -> None:
    """Copy ``text-format``/``text-style`` from *source* onto *target*."""
    for name in ("text-format", "text-style"):
        value = source.get(name)
        if value:
            target.set(name, value)


def get_list_type(list_node: ET.Element) -> str:
    return list_node.get("kind", "bullet")


def get_start(list_node: ET.Element) -> int:
    try:
        return int(list_node.get("start", "1"))
    except (TypeError, ValueError):
        return 1


def get_value(item: ET.Element) -> Optional[int]:
    raw = item.get("value")
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError:
        return None


def set_value(item: ET.Element, value: int) -> None:
    item.set("value", str(int(value)))


def get_checked(item: ET.Element) -> Optional[bool]:
    raw = item.get("checked")
    if raw is None:
        return None
    return raw == "true"


def set_checked(item: ET.Element, checked: Optional[bool]) -> None:
    if checked is None:
        if "checked" in item.attrib:
            del item.attrib["checked"]
    else:
        item.set("checked", "true" if checked else "false")


def mark_dirty(node: ET.Element) -> None:
    """Bump the node's revision so renderers and observers refresh it."""
    node.set("revision", str(get_revision(node) + 1))


def get_revision(node: ET.Element) -> int:
    try:
        return int(node.get("revision", "0"))
    except (TypeError, ValueError):
        return 0
