import pytest

lxml = pytest.importorskip("lxml")

from outline_toolkit.core.lists.format_list import remove_list
from outline_toolkit.core.lists.validation import find_violations


def test_nested_items_are_flattened_in_reading_order(make_document, outline_shape):
    doc = make_document("""
        <root>
          <list kind="bullet">
            <listitem><text>A</text>
              <list kind="number">
                <listitem><text>X</text></listitem>
                <listitem><text>Y</text></listitem>
              </list>
            </listitem>
            <listitem><text key="tb">B</text></listitem>
          </list>
        </root>
    """)
    doc.select_collapsed(doc.get_node_by_key("tb"), 0)
    remove_list(doc)
    assert outline_shape(doc.root) == [("p", "A"), ("p", "X"), ("p", "Y"), ("p", "B")]
    assert find_violations(doc.root, doc.selection) == []


def test_wrapper_items_produce_no_paragraph(make_document, outline_shape):
    doc = make_document("""
        <root>
          <list kind="bullet">
            <listitem key="w"><list kind="bullet"><listitem><text key="tx">X</text></listitem></list></listitem>
            <listitem><text>B</text></listitem>
          </list>
        </root>
    """)
    doc.select_collapsed(doc.get_node_by_key("tx"), 0)
    remove_list(doc)
    assert outline_shape(doc.root) == [("p", "X"), ("p", "B")]


def test_surrounding_blocks_stay_in_place(make_document, outline_shape):
    doc = make_document("""
        <root>
          <paragraph><text>Before</text></paragraph>
          <list kind="number"><listitem><text key="t">Item</text></listitem></list>
          <paragraph><text>After</text></paragraph>
        </root>
    """)
    doc.select_collapsed(doc.get_node_by_key("t"), 2)
    remove_list(doc)
    assert outline_shape(doc.root) == [("p", "Before"), ("p", "Item"), ("p", "After")]
    assert (doc.selection.anchor.key, doc.selection.anchor.offset) == ("t", 2)


def test_empty_item_selection_moves_to_its_paragraph(make_document, outline_shape):
    doc = make_document("""
        <root>
          <list kind="bullet">
            <listitem><text>A</text></listitem>
            <listitem key="e"/>
          </list>
        </root>
    """)
    doc.select_collapsed(doc.get_node_by_key("e"), 0)
    remove_list(doc)
    assert outline_shape(doc.root) == [("p", "A"), ("p", "")]
    anchor = doc.selection.anchor
    assert (anchor.key, anchor.offset, anchor.type) == (doc.root[1].get("key"), 0, "element")


def test_selection_on_list_element_falls_back_to_first_paragraph(make_document):
    doc = make_document("""
        <root>
          <list key="L" kind="bullet">
            <listitem><text key="ta">A</text></listitem>
            <listitem><text key="tb">B</text></listitem>
          </list>
        </root>
    """)
    doc.select_range(doc.get_node_by_key("L"), 0, doc.get_node_by_key("tb"), 1)
    remove_list(doc)
    assert (doc.selection.anchor.key, doc.selection.anchor.offset) == ("ta", 0)
    assert doc.selection.focus.key == "tb"
    assert doc.selection.resolves(doc.root)


def test_paragraphs_carry_item_and_selection_formatting(make_document):
    doc = make_document("""
        <root>
          <list kind="bullet"><listitem format="right"><text key="t">A</text></listitem></list>
        </root>
    """)
    doc.select_collapsed(doc.get_node_by_key("t"), 0)
    doc.selection.format = 1
    doc.selection.style = "color: red"
    remove_list(doc)
    paragraph = doc.root[0]
    assert paragraph.tag == "paragraph"
    assert paragraph.get("format") == "right"
    assert paragraph.get("text-format") == "1"
    assert paragraph.get("text-style") == "color: red"


def test_only_selected_top_lists_are_removed(make_document, outline_shape):
    doc = make_document("""
        <root>
          <list kind="bullet"><listitem><text key="t1">One</text></listitem></list>
          <paragraph><text>Gap</text></paragraph>
          <list kind="bullet"><listitem><text>Two</text></listitem></list>
        </root>
    """)
    doc.select_collapsed(doc.get_node_by_key("t1"), 0)
    remove_list(doc)
    assert outline_shape(doc.root) == [("p", "One"), ("p", "Gap"), ("bullet", ["Two"])]


def test_plain_paragraphs_are_left_alone(three_paragraphs, canonical_xml):
    doc = three_paragraphs
    before = canonical_xml(doc.root)
    doc.select_range(doc.get_node_by_key("t1"), 0, doc.get_node_by_key("t3"), 1)
    remove_list(doc)
    assert canonical_xml(doc.root) == before
