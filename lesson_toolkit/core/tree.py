from __future__ import annotations

"""Pure traversal algorithms over section trees.

All functions are side-effect free. Trees are treated as immutable: a
replacement rebuilds the path from the root down to the changed node and
returns new ancestors, while untouched leaves are returned as-is.

Text children (plain strings) are never addressable and never receive
injected props.
"""

from typing import Any, Iterator, Mapping, Optional, Sequence, Union

from lesson_toolkit.core.models import Child, Node, is_composite

__all__ = [
    "contains_id",
    "extract_id",
    "find_owner_index",
    "inject_props",
    "iter_ids",
    "replace_content_by_id",
]

Content = Union[Child, Sequence[Child], None]


def contains_id(node: Child, target_id: str) -> bool:
    """Return True if *node* or any of its descendants has id *target_id*."""
    if not isinstance(node, Node):
        return False
    if node.id == target_id:
        return True
    return any(contains_id(child, target_id) for child in node.children)


def _as_children(content: Content) -> tuple:
    if content is None:
        return ()
    if isinstance(content, (Node, str)):
        return (content,)
    return tuple(content)


def replace_content_by_id(node: Child, target_id: str, new_content: Content) -> Child:
    """Return *node* with the children of node *target_id* replaced.

    The matching node keeps its type, key and props; only its children are
    swapped for *new_content*. Nodes on the path are rebuilt, nodes without
    children that do not match are returned unchanged. When the id is absent
    the result is structurally equal to the input.
    """
    if not isinstance(node, Node):
        return node
    if node.id == target_id:
        return node.with_children(_as_children(new_content))
    if node.children:
        return node.with_children(
            replace_content_by_id(child, target_id, new_content) for child in node.children
        )
    return node


def extract_id(node: Child) -> Optional[str]:
    """Return the node's own id or the first descendant id in pre-order."""
    if not isinstance(node, Node):
        return None
    if node.id:
        return node.id
    for child in node.children:
        found = extract_id(child)
        if found:
            return found
    return None


def inject_props(node: Child, capabilities: Mapping[str, Any]) -> Child:
    """Clone *node* recursively, merging *capabilities* into composite nodes.

    Opaque nodes (host targets, fragments) are cloned without the injected
    keys, but their children are still processed so that composite
    descendants nested in structural wrappers receive the capabilities.
    """
    if not isinstance(node, Node):
        return node
    props = dict(node.props)
    if is_composite(node):
        props.update(capabilities)
    children = tuple(inject_props(child, capabilities) for child in node.children)
    return Node(node.type, props, children, node.key)


def find_owner_index(sections: Sequence[Child], target_id: str) -> int:
    """Return the index of the first top-level node containing *target_id*, or -1."""
    for index, section in enumerate(sections):
        if contains_id(section, target_id):
            return index
    return -1


def iter_ids(node: Child) -> Iterator[str]:
    """Yield every id in *node* in pre-order."""
    if not isinstance(node, Node):
        return
    if node.id:
        yield node.id
    for child in node.children:
        yield from iter_ids(child)
