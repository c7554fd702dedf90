import pytest

lxml = pytest.importorskip("lxml")

from outline_toolkit.core.exceptions import ListInvariantError
from outline_toolkit.core.lists.format_list import set_indent
from outline_toolkit.core.lists.utils import (
    NestingShape,
    get_all_list_items,
    get_indent,
    get_list_depth,
    get_nesting_shape,
    get_owning_list,
    get_top_list_node,
    is_nested_list_node,
    is_selecting_empty_list_item,
    remove_highest_empty_list_parent,
    toggle_checked,
)

NESTED = """
<root>
  <list key="L" kind="bullet">
    <listitem key="a"><text>A</text>
      <list key="LA" kind="bullet">
        <listitem key="x"><text>X</text></listitem>
      </list>
    </listitem>
    <listitem key="w">
      <list key="LW" kind="bullet">
        <listitem key="y"><text>Y</text>
          <list key="LY" kind="number">
            <listitem key="z"><text>Z</text></listitem>
          </list>
        </listitem>
      </list>
    </listitem>
    <listitem key="b"><text>B</text></listitem>
  </list>
</root>
"""


@pytest.fixture
def nested(make_document):
    return make_document(NESTED)


def test_nesting_shapes(nested):
    assert get_nesting_shape(nested.get_node_by_key("a")) is NestingShape.CONTENT_BEARING
    assert get_nesting_shape(nested.get_node_by_key("w")) is NestingShape.EMPTY_WRAPPER
    assert is_nested_list_node(nested.get_node_by_key("w"))
    assert not is_nested_list_node(nested.get_node_by_key("a"))


def test_empty_item_counts_as_wrapper_shape(make_document):
    doc = make_document('<root><list kind="bullet"><listitem key="e"/></list></root>')
    item = doc.get_node_by_key("e")
    assert get_nesting_shape(item) is NestingShape.EMPTY_WRAPPER
    assert not is_nested_list_node(item)
    assert get_owning_list(item).tag == "list"


def test_depth_and_indent(nested):
    assert get_list_depth(nested.get_node_by_key("LY")) == 3
    assert get_indent(nested.get_node_by_key("b")) == 0
    assert get_indent(nested.get_node_by_key("x")) == 1
    assert get_indent(nested.get_node_by_key("z")) == 2


def test_top_list_node(nested):
    assert get_top_list_node(nested.get_node_by_key("z")).get("key") == "L"


def test_owning_list_requires_list_parent(make_document):
    doc = make_document('<root><paragraph><listitem key="stray"/></paragraph></root>')
    with pytest.raises(ListInvariantError) as excinfo:
        get_owning_list(doc.get_node_by_key("stray"))
    assert excinfo.value.node_key == "stray"
    assert "stray" in str(excinfo.value)


def test_all_list_items_skip_wrappers(nested):
    items = get_all_list_items(nested.get_node_by_key("L"))
    assert [i.get("key") for i in items] == ["a", "x", "y", "z", "b"]


def test_remove_highest_empty_list_parent_climbs_sole_children(make_document):
    doc = make_document("""
        <root>
          <paragraph key="p"/>
          <list key="L" kind="bullet">
            <listitem key="w"><list kind="bullet"><listitem key="e"/></list></listitem>
          </list>
        </root>
    """)
    remove_highest_empty_list_parent(doc.get_node_by_key("e"))
    assert [el.get("key") for el in doc.root] == ["p"]


def test_remove_highest_empty_list_parent_stops_at_siblings(flat_bullets):
    remove_highest_empty_list_parent(flat_bullets.get_node_by_key("b"))
    assert [el.get("key") for el in flat_bullets.get_node_by_key("L")] == ["a", "c"]


def test_is_selecting_empty_list_item(make_document):
    doc = make_document('<root><list kind="bullet"><listitem key="e"/><listitem key="f"><text>F</text></listitem></list></root>')
    empty = doc.get_node_by_key("e")
    full = doc.get_node_by_key("f")
    assert is_selecting_empty_list_item(empty, [])
    assert is_selecting_empty_list_item(empty, [empty])
    assert not is_selecting_empty_list_item(full, [full])


def test_toggle_checked_only_in_checklists(make_document):
    doc = make_document("""
        <root>
          <list kind="check"><listitem key="c"><text>todo</text></listitem></list>
          <list kind="bullet"><listitem key="b"><text>note</text></listitem></list>
        </root>
    """)
    item = doc.get_node_by_key("c")
    assert toggle_checked(item) is True
    assert item.get("checked") == "true"
    assert toggle_checked(item) is True
    assert item.get("checked") == "false"
    assert toggle_checked(doc.get_node_by_key("b")) is False
    assert "checked" not in doc.get_node_by_key("b").attrib


def test_set_indent_moves_both_ways(flat_bullets):
    b = flat_bullets.get_node_by_key("b")
    set_indent(b, 2)
    assert get_indent(b) == 2
    set_indent(b, 0)
    assert get_indent(b) == 0
    assert [el.get("key") for el in flat_bullets.get_node_by_key("L")] == ["a", "b", "c"]
