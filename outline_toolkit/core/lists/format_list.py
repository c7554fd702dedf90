from __future__ import annotations

"""Structural list editing: create, convert, remove, merge, indent, outdent.

Every function here mutates the document tree in place and, where a node
named by the selection is replaced or removed, re-points the selection onto
the surviving node before returning. Nothing is cached between calls; all
state is rediscovered from the tree.

Conditions where there is nothing to do return silently. Invariant
violations raise :class:`~outline_toolkit.core.exceptions.ListInvariantError`
and leave rollback to the caller owning the transaction.
"""

import logging
from typing import Dict, Iterable, List, Optional, Set

from lxml import etree as ET  # type: ignore

from outline_toolkit.core.lists.utils import (
    NestingShape,
    get_all_list_items,
    get_indent,
    get_nearest_list_item,
    get_nested_list,
    get_nesting_shape,
    get_owning_list,
    get_top_list_node,
    is_nested_list_node,
    is_selecting_empty_list_item,
    remove_highest_empty_list_parent,
)
from outline_toolkit.core.models import OutlineDocument
from outline_toolkit.core.nodes import (
    LIST_ITEM_TAG,
    LIST_TAG,
    ListKind,
    append,
    append_children,
    copy_text_formatting,
    create_list,
    create_list_item,
    create_paragraph,
    get_block_indent,
    get_checked,
    get_children,
    get_first_child,
    get_format_type,
    get_key,
    get_last_child,
    get_list_type,
    get_next_sibling,
    get_next_siblings,
    get_previous_sibling,
    get_previous_siblings,
    get_start,
    get_value,
    insert_after,
    insert_before,
    is_element_node,
    is_empty,
    is_leaf,
    is_list,
    is_list_item,
    is_root_or_shadow_root,
    is_same,
    is_text,
    mark_dirty,
    remove,
    replace,
    set_checked,
    set_format_type,
    set_value,
)
from outline_toolkit.core.selection import RangeSelection

__all__ = [
    "insert_list",
    "remove_list",
    "merge_lists",
    "merge_next_sibling_list_if_same_type",
    "update_children_list_item_value",
    "handle_indent",
    "handle_outdent",
    "handle_list_insert_paragraph",
    "set_indent",
]

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Selection re-pointing
# ---------------------------------------------------------------------------

def _rebase_points_to_item(selection: Optional[RangeSelection], keys: Set[str], item: ET.Element) -> None:
    """Move points naming any of *keys* onto *item* as element points."""
    if selection is None:
        return
    for point in (selection.anchor, selection.focus):
        if point.key in keys:
            point.set(get_key(item), min(point.offset, len(item)), "element")


def _rebase_points_to_block_start(selection: Optional[RangeSelection], keys: Set[str], block: ET.Element) -> None:
    """Move points naming any of *keys* to the first child slot of *block*."""
    if selection is None:
        return
    first = get_first_child(block)
    for point in (selection.anchor, selection.focus):
        if point.key not in keys:
            continue
        if is_text(first):
            point.set(get_key(first), 0, "text")
        else:
            point.set(get_key(block), 0, "element")


# ---------------------------------------------------------------------------
# List construction
# ---------------------------------------------------------------------------

def insert_list(document: OutlineDocument, kind: ListKind, *, match_start: bool = False) -> None:
    """Turn the blocks touched by the selection into items of a *kind* list.

    Blocks already inside a list of another kind convert that list; blocks
    next to a list of the same kind join it. Calling this twice with the
    same kind leaves the tree unchanged the second time.
    """
    selection = document.selection
    if selection is None:
        return
    root = document.root

    nodes = selection.get_nodes(root)
    start, _ = selection.get_start_end_points(root)
    anchor_node = start.get_node(root)
    anchor_parent = anchor_node.getparent()

    if is_root_or_shadow_root(anchor_node):
        first_child = get_first_child(anchor_node)
        if first_child is not None:
            selection.select_start(first_child)
        else:
            paragraph = create_paragraph()
            append(anchor_node, paragraph)
            selection.select_start(paragraph)
        nodes = selection.get_nodes(root)
    elif is_selecting_empty_list_item(anchor_node, nodes):
        if is_root_or_shadow_root(anchor_parent):
            new_list = create_list(kind)
            replace(anchor_node, new_list)
            item = create_list_item()
            set_format_type(item, get_format_type(anchor_node))
            append(new_list, item)
            _rebase_points_to_item(selection, {get_key(anchor_node)}, item)
        else:
            parent = get_owning_list(anchor_node)
            if get_list_type(parent) == kind:
                return
            new_list = create_list(kind)
            append_children(new_list, get_children(parent))
            replace(parent, new_list)
        update_children_list_item_value(new_list)
        logger.debug("insert_list: empty item converted into %s list", kind)
        return

    handled: Set[str] = set()
    for node in nodes:
        node_key = get_key(node)
        if (
            is_element_node(node)
            and is_empty(node)
            and not is_list_item(node)
            and not is_root_or_shadow_root(node)
            and node_key not in handled
        ):
            handled.add(node_key)
            _create_list_or_merge(node, kind, selection, match_start)
            continue

        if is_leaf(node):
            parent = node.getparent()
        elif is_list_item(node) and is_empty(node):
            parent = node
        else:
            parent = None

        while parent is not None:
            parent_key = get_key(parent)
            if is_list(parent):
                if parent_key not in handled:
                    handled.add(parent_key)
                    if get_list_type(parent) != kind:
                        _convert_list(parent, kind, selection)
                break
            next_parent = parent.getparent()
            if is_root_or_shadow_root(next_parent) and parent_key not in handled:
                handled.add(parent_key)
                _create_list_or_merge(parent, kind, selection, match_start)
                break
            parent = next_parent


def _convert_list(list_node: ET.Element, kind: ListKind, selection: Optional[RangeSelection]) -> ET.Element:
    """Replace *list_node* with a *kind* list holding the same items."""
    old_key = get_key(list_node)
    new_list = create_list(kind)
    copy_text_formatting(list_node, new_list)
    append_children(new_list, get_children(list_node))
    replace(list_node, new_list)
    if selection is not None:
        for point in (selection.anchor, selection.focus):
            if point.key == old_key:
                point.set(get_key(new_list), point.offset, "element")
    update_children_list_item_value(new_list)
    logger.debug("Converted list %s into %s list %s", old_key, kind, get_key(new_list))
    return new_list


def _create_list_or_merge(
    node: ET.Element,
    kind: ListKind,
    selection: Optional[RangeSelection],
    match_start: bool,
) -> ET.Element:
    """Wrap block *node* in an item and place it in a new or adjacent list."""
    if is_list(node):
        return node

    previous = get_previous_sibling(node)
    following = get_next_sibling(node)
    item = create_list_item()
    append_children(item, get_children(node))

    if is_list(previous) and get_list_type(previous) == kind:
        append(previous, item)
        if _can_absorb(previous, following, kind, match_start):
            append_children(previous, get_children(following))
            remove(following)
        target = previous
    elif is_list(following) and get_list_type(following) == kind:
        insert_before(get_first_child(following), item)
        target = following
    else:
        target = create_list(kind)
        append(target, item)
        replace(node, target)

    set_format_type(item, get_format_type(node))
    _rebase_points_to_item(selection, {get_key(target), get_key(node)}, item)
    remove(node)

    block_indent = get_block_indent(node)
    if block_indent:
        set_indent(item, block_indent)
    update_children_list_item_value(target)
    return target


def _can_absorb(target: ET.Element, candidate: Optional[ET.Element], kind: ListKind, match_start: bool) -> bool:
    """Return True when *candidate* may be merged wholesale into *target*."""
    if not is_list(candidate) or get_list_type(candidate) != kind:
        return False
    if match_start and kind == "number" and get_start(candidate) != get_start(target):
        return False
    return True


# ---------------------------------------------------------------------------
# List removal
# ---------------------------------------------------------------------------

def remove_list(document: OutlineDocument) -> None:
    """Unwrap every top list touched by the selection into paragraphs."""
    selection = document.selection
    if selection is None:
        return
    root = document.root

    nodes = selection.get_nodes(root)
    anchor_node = selection.anchor.get_node(root)
    list_nodes: Dict[str, ET.Element] = {}

    if is_selecting_empty_list_item(anchor_node, nodes):
        top = get_top_list_node(anchor_node)
        list_nodes[get_key(top)] = top
    else:
        for node in nodes:
            if not is_leaf(node):
                continue
            item = get_nearest_list_item(node)
            if item is not None:
                top = get_top_list_node(item)
                list_nodes.setdefault(get_key(top), top)

    for list_key, list_node in list_nodes.items():
        structural_keys = {get_key(el) for el in list_node.iter(LIST_TAG, LIST_ITEM_TAG)}
        insertion_point = list_node
        first_paragraph = None

        for item in get_all_list_items(list_node):
            paragraph = create_paragraph()
            if selection.format:
                paragraph.set("text-format", str(selection.format))
            if selection.style:
                paragraph.set("text-style", selection.style)
            set_format_type(paragraph, get_format_type(item))
            append_children(paragraph, [child for child in item if not is_list(child)])

            insert_after(insertion_point, paragraph)
            insertion_point = paragraph
            if first_paragraph is None:
                first_paragraph = paragraph

            item_key = get_key(item)
            _rebase_points_to_block_start(selection, {item_key}, paragraph)
            structural_keys.discard(item_key)

        if first_paragraph is not None:
            # Points left on wrapper items or nested lists fall back to the first block.
            _rebase_points_to_block_start(selection, structural_keys, first_paragraph)
        remove(list_node)
        logger.debug("remove_list: unwrapped list %s", list_key)


# ---------------------------------------------------------------------------
# Merging and numbering
# ---------------------------------------------------------------------------

def merge_lists(list1: ET.Element, list2: ET.Element) -> None:
    """Append *list2*'s items to *list1* and remove *list2*.

    When *list1* ends with a nested list and *list2* starts with a wrapper
    item, the two nested lists are merged first (recursively) so the seam
    does not produce two adjacent nested lists.
    """
    if is_same(list1, list2):
        return
    item1 = get_last_child(list1)
    item2 = get_first_child(list2)

    if item1 is not None and item2 is not None and is_nested_list_node(item2):
        nested1 = get_nested_list(item1)
        if nested1 is not None:
            merge_lists(nested1, get_first_child(item2))
            if is_empty(item2):
                remove(item2)

    to_merge = get_children(list2)
    if to_merge:
        append_children(list1, to_merge)
    remove(list2)


def merge_next_sibling_list_if_same_type(list_node: ET.Element) -> None:
    """Merge the following sibling list into *list_node* when kinds match."""
    following = get_next_sibling(list_node)
    if is_list(following) and get_list_type(list_node) == get_list_type(following):
        merge_lists(list_node, following)


def update_children_list_item_value(list_node: ET.Element) -> None:
    """Renumber the direct items of *list_node* and clear stale checked state.

    Items consisting only of a nested list do not consume an ordinal. Every
    item is marked dirty, even when nothing changed, because position-in-set
    attributes depend on the list's membership as a whole.
    """
    is_not_checklist = get_list_type(list_node) != "check"
    value = get_start(list_node)
    for child in list_node:
        if not is_list_item(child):
            continue
        if get_value(child) != value:
            set_value(child, value)
        if is_not_checklist and get_checked(child) is not None:
            set_checked(child, None)
        if not is_list(get_first_child(child)):
            value += 1
        mark_dirty(child)


# ---------------------------------------------------------------------------
# Indent / outdent
# ---------------------------------------------------------------------------

def handle_indent(item: ET.Element, handled: Optional[Set[str]] = None) -> None:
    """Nest *item* one level deeper, joining neighbouring nested lists.

    *handled* collects the keys of items already processed or merged away
    during a batch; pass the same set for every item of one batch.
    """
    if handled is None:
        handled = set()
    if is_nested_list_node(item) or get_key(item) in handled:
        return

    parent = get_owning_list(item)
    following = get_next_sibling(item)
    previous = get_previous_sibling(item)
    previous_nested = get_nested_list(previous)
    following_nested = get_first_child(following) if is_nested_list_node(following) else None

    if previous_nested is not None and following_nested is not None:
        append(previous_nested, item)
        append_children(previous_nested, get_children(following_nested))
        handled.add(get_key(following))
        remove(following)
    elif following_nested is not None:
        first = get_first_child(following_nested)
        if first is not None:
            insert_before(first, item)
        else:
            append(following_nested, item)
    elif previous_nested is not None:
        append(previous_nested, item)
    elif is_list_item(previous):
        new_list = create_list(get_list_type(parent))
        copy_text_formatting(parent, new_list)
        append(previous, new_list)
        append(new_list, item)
    else:
        wrapper = create_list_item()
        copy_text_formatting(item, wrapper)
        new_list = create_list(get_list_type(parent))
        copy_text_formatting(parent, new_list)
        if following is not None:
            insert_before(following, wrapper)
        else:
            append(parent, wrapper)
        append(wrapper, new_list)
        append(new_list, item)

    handled.add(get_key(item))


def handle_outdent(item: ET.Element) -> None:
    """Move *item* one level shallower; a no-op when it is not nested.

    Under an empty wrapper the parent list is split around *item*. Under a
    content-bearing parent, *item* moves right after that parent and the
    siblings that followed it become *item*'s children. This holds for the
    first child too, so later siblings are not left in the parent's list
    where they would read before *item*.
    """
    if is_nested_list_node(item):
        return
    parent_list = item.getparent()
    grandparent = parent_list.getparent() if parent_list is not None else None
    great_grandparent = grandparent.getparent() if grandparent is not None else None
    if not (is_list(great_grandparent) and is_list_item(grandparent) and is_list(parent_list)):
        return

    shape = get_nesting_shape(grandparent)
    first = get_first_child(parent_list)
    last = get_last_child(parent_list)

    if is_same(item, first):
        if shape is NestingShape.CONTENT_BEARING:
            followers = get_next_siblings(item)
            insert_after(grandparent, item)
            if followers:
                _adopt_followers(item, followers, parent_list)
            if is_empty(parent_list):
                remove(parent_list)
        else:
            insert_before(grandparent, item)
            if is_empty(parent_list):
                remove(grandparent)
    elif is_same(item, last):
        insert_after(grandparent, item)
    elif shape is NestingShape.CONTENT_BEARING:
        followers = get_next_siblings(item)
        insert_after(grandparent, item)
        _adopt_followers(item, followers, parent_list)
    else:
        kind = get_list_type(parent_list)
        before_wrapper = _create_wrapper(kind, parent_list, get_previous_siblings(item))
        after_wrapper = _create_wrapper(kind, parent_list, get_next_siblings(item))
        insert_before(grandparent, before_wrapper)
        insert_after(grandparent, after_wrapper)
        replace(grandparent, item)


def _adopt_followers(item: ET.Element, followers: List[ET.Element], source_list: ET.Element) -> None:
    """Re-parent *followers* under *item*, reusing its trailing nested list.

    The nested list is reused only when it has the kind of *source_list*.
    Otherwise the followers keep their kind in a wrapper item placed right
    after *item*, at the same depth they had before.
    """
    kind = get_list_type(source_list)
    nested = get_nested_list(item)
    if nested is not None and get_list_type(nested) != kind:
        insert_after(item, _create_wrapper(kind, source_list, followers))
        return
    if nested is None:
        nested = create_list(get_list_type(source_list))
        copy_text_formatting(source_list, nested)
        append(item, nested)
    append_children(nested, followers)


def _create_wrapper(kind: ListKind, source_list: ET.Element, items: Iterable[ET.Element]) -> ET.Element:
    wrapper = create_list_item()
    nested = create_list(kind)
    copy_text_formatting(source_list, nested)
    append(wrapper, nested)
    append_children(nested, items)
    return wrapper


def set_indent(item: ET.Element, indent: int) -> None:
    """Indent or outdent *item* until it sits at nesting level *indent*."""
    target = max(0, int(indent))
    current = get_indent(item)
    while current != target:
        if current < target:
            handle_indent(item)
        else:
            handle_outdent(item)
        reached = get_indent(item)
        if reached == current:
            logger.debug("set_indent: item %s stuck at level %d (target %d)", get_key(item), current, target)
            break
        current = reached


# ---------------------------------------------------------------------------
# Paragraph break in an empty item
# ---------------------------------------------------------------------------

def handle_list_insert_paragraph(document: OutlineDocument) -> bool:
    """Handle a paragraph break typed inside an empty list item.

    Returns True when the break was consumed here: a nested empty item is
    outdented in place, a top-level one is turned into a paragraph after
    the list. Returns False when default paragraph insertion should run.
    """
    selection = document.selection
    if selection is None or not selection.is_collapsed():
        return False
    root = document.root
    anchor = selection.anchor.get_node(root)

    list_item = None
    if is_list_item(anchor) and is_empty(anchor):
        list_item = anchor
    elif is_text(anchor):
        parent_item = anchor.getparent()
        if is_list_item(parent_item) and all(
            is_text(child) and (child.text or "").strip() == "" for child in parent_item
        ):
            list_item = parent_item

    if list_item is None:
        return False

    top_list = get_top_list_node(list_item)
    parent = get_owning_list(list_item)
    grandparent = parent.getparent()

    if is_list_item(grandparent):
        # Outdent in place so observers see a move, not a delete + create.
        handle_outdent(list_item)
        return True
    if not is_root_or_shadow_root(grandparent):
        return False

    paragraph = create_paragraph()
    if selection.format:
        paragraph.set("text-format", str(selection.format))
    if selection.style:
        paragraph.set("text-style", selection.style)
    insert_after(top_list, paragraph)

    followers = get_next_siblings(list_item)
    if followers:
        new_list = create_list(get_list_type(parent))
        copy_text_formatting(parent, new_list)
        insert_after(paragraph, new_list)
        append_children(new_list, followers)

    selection.select_start(paragraph)
    remove_highest_empty_list_parent(list_item)
    return True
