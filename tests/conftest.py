"""Shared fixtures and helpers for the outline toolkit test-suite.

Documents are written as XML strings; nodes a test needs to address carry
an explicit ``key`` attribute, every other node gets a generated one.
"""

import os
import sys
import logging

import pytest

# Ensure project root is importable when running pytest from repository root
_REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if _REPO_ROOT not in sys.path:
    sys.path.insert(0, _REPO_ROOT)

lxml = pytest.importorskip("lxml")
from lxml import etree as ET

from outline_toolkit.config import ConfigManager
from outline_toolkit.core.models import OutlineDocument
from outline_toolkit.core.nodes import get_text_content, is_list, is_list_item

# Configure test logging
logging.basicConfig(
    level=logging.DEBUG,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

_PARSER = ET.XMLParser(remove_blank_text=True, remove_comments=True)


def build_document(xml: str) -> OutlineDocument:
    """Parse *xml* (a ``<root>`` element) into an OutlineDocument."""
    return OutlineDocument(root=ET.fromstring(xml.strip(), _PARSER))


def shape(node):
    """Summarise a subtree for compact structural assertions.

    - root: list of child shapes
    - paragraph: ``("p", text)``
    - list: ``(kind, [item shapes])``
    - item without nested list: its text
    - item with nested list: ``(text, list shape)``, text is None for a wrapper
    """
    if node.tag == "root":
        return [shape(child) for child in node]
    if is_list(node):
        return (node.get("kind"), [shape(child) for child in node])
    if is_list_item(node):
        content = [child for child in node if not is_list(child)]
        nested = [child for child in node if is_list(child)]
        text = "".join(get_text_content(child) for child in content) if content else None
        if not nested:
            return text if text is not None else ""
        if len(nested) == 1:
            return (text, shape(nested[0]))
        return (text, [shape(n) for n in nested])
    if node.tag == "paragraph":
        return ("p", get_text_content(node))
    return (node.tag, get_text_content(node))


def values(list_node):
    """Return ``value`` attributes of the direct items of *list_node*."""
    return [child.get("value") for child in list_node]


def canonical(root) -> bytes:
    """Serialize *root* without volatile attributes (keys, revisions)."""
    clone = ET.fromstring(ET.tostring(root))
    for el in clone.iter(ET.Element):
        for name in ("key", "revision"):
            if name in el.attrib:
                del el.attrib[name]
    return ET.tostring(clone)


@pytest.fixture
def make_document():
    return build_document


@pytest.fixture
def outline_shape():
    return shape


@pytest.fixture
def canonical_xml():
    return canonical


@pytest.fixture
def item_values():
    return values


@pytest.fixture
def flat_bullets():
    """Three top-level bullet items A, B, C."""
    return build_document("""
        <root>
          <list key="L" kind="bullet">
            <listitem key="a"><text key="ta">A</text></listitem>
            <listitem key="b"><text key="tb">B</text></listitem>
            <listitem key="c"><text key="tc">C</text></listitem>
          </list>
        </root>
    """)


@pytest.fixture
def three_paragraphs():
    return build_document("""
        <root>
          <paragraph key="p1"><text key="t1">One</text></paragraph>
          <paragraph key="p2"><text key="t2">Two</text></paragraph>
          <paragraph key="p3"><text key="t3">Three</text></paragraph>
        </root>
    """)


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Point user overrides at an empty directory and reload config per test."""
    monkeypatch.setenv("OUTLINE_CONFIG_DIR", str(tmp_path / "config"))
    ConfigManager.reset()
    yield
    ConfigManager.reset()
