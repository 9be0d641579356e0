"""DOM capabilities used by the compiler and the runtime.

Everything that touches BeautifulSoup goes through here, so the rest of the
package only deals with "elements", "text nodes" and "fragments".
A ``<template>`` element's children are its content.
"""

import copy
from typing import Iterator, List, Mapping, Optional, Union

import soupsieve
from bs4 import BeautifulSoup, NavigableString, PageElement, Tag
from bs4.element import PreformattedString

PARSER = "html.parser"

Node = PageElement
# A detached container for infused nodes (a BeautifulSoup object with no
# markup of its own).
Fragment = BeautifulSoup


def parse_html(markup: str) -> BeautifulSoup:
    # Attributes such as class stay plain strings.
    return BeautifulSoup(markup, PARSER, multi_valued_attributes=None)


def new_fragment() -> Fragment:
    return parse_html("")


def is_element(node: object) -> bool:
    return isinstance(node, Tag) and not isinstance(node, BeautifulSoup)


def is_text(node: object) -> bool:
    # Comments, CDATA and doctypes are strings too, but not text.
    return isinstance(node, NavigableString) and not isinstance(
        node, PreformattedString
    )


def is_template(node: object) -> bool:
    return is_element(node) and node.name == "template"


def child_nodes(element: Tag) -> Iterator[Node]:
    """Iterate the children of ``element`` by following sibling links."""
    node = element.contents[0] if element.contents else None
    while node is not None:
        yield node
        node = node.next_sibling


def child_elements(element: Tag) -> Iterator[Tag]:
    return (node for node in child_nodes(element) if is_element(node))


def get_attribute(element: Tag, name: str) -> Optional[str]:
    value = element.attrs.get(name)
    if value is None:
        return None
    if isinstance(value, list):
        return " ".join(value)
    return str(value)


def set_attribute(element: Tag, name: str, value: str) -> None:
    element.attrs[name] = value


def remove_attribute(element: Tag, name: str) -> None:
    element.attrs.pop(name, None)


def set_text(node: NavigableString, text: str) -> NavigableString:
    """Replace the data of a text node; returns the node now in its place."""
    replacement = NavigableString(text)
    node.replace_with(replacement)
    return replacement


def text_content(node: Node) -> str:
    if is_text(node):
        return str(node)
    if isinstance(node, Tag):
        return "".join(text_content(child) for child in node.contents)
    return ""


def clone_content(template: Tag) -> Fragment:
    """Deep-copy the content of ``template`` into a new fragment."""
    fragment = new_fragment()
    for child in template.contents:
        fragment.append(copy.copy(child))
    return fragment


def query_all(root: Node, selector: str) -> List[Tag]:
    if not isinstance(root, Tag):
        return []
    return root.select(selector)


def matches(node: object, selector: str) -> bool:
    return is_element(node) and soupsieve.match(selector, node)


def owner_document(node: Node) -> Optional[BeautifulSoup]:
    for parent in node.parents:
        if isinstance(parent, BeautifulSoup):
            return parent
    return None


def create_element(
    name: str,
    near: Optional[Node] = None,
    attrs: Optional[Mapping[str, str]] = None,
) -> Tag:
    """Create an element, owned by the same document as ``near`` if it has one."""
    soup = owner_document(near) if near is not None else None
    if soup is not None:
        return soup.new_tag(name, attrs=dict(attrs or {}))
    return Tag(name=name, attrs=dict(attrs or {}))


def insert_before(reference: Node, node: Node) -> None:
    reference.insert_before(node)


def insert_after(reference: Node, node: Node) -> None:
    reference.insert_after(node)


def append_fragment(parent: Tag, fragment: Union[Fragment, Tag]) -> None:
    """Move every child of ``fragment`` to the end of ``parent``."""
    for child in list(fragment.contents):
        parent.append(child.extract())


def replace_with_fragment(node: Node, fragment: Fragment) -> None:
    """Replace ``node`` with the children of ``fragment``."""
    reference = node
    for child in list(fragment.contents):
        reference.insert_after(child.extract())
        reference = child
    node.extract()


def remove(node: Node) -> Node:
    return node.extract()


def serialize(node: Node) -> str:
    return str(node)
