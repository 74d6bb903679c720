from __future__ import annotations

"""Shared data structures used across the Lesson Toolkit core.

This package exposes the immutable section-tree value objects used by the
traversal engine, the store and the renderer. It is intentionally free of UI
and I/O code so that the contained objects can be reused in any context
(unit-tests, CLI, embedding hosts).

A tree is made of :class:`Node` values. Each node carries a :class:`NodeType`
descriptor whose :class:`NodeKind` is fixed when the descriptor is created:

- ``COMPOSITE``: user-defined constructs (``Section``, layout components,
  editable widgets). They accept injected editing capabilities.
- ``OPAQUE``: host render targets (``p``, ``div``...) and transparent
  grouping nodes (``Fragment``). They never receive injected capabilities,
  although their children are still traversed.
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple, Union

__all__ = [
    "Child",
    "DEFAULT_REGISTRY",
    "FRAGMENT",
    "Node",
    "NodeKind",
    "NodeType",
    "NodeTypeRegistry",
    "SECTION",
    "SECTION_INPUT",
    "component",
    "h",
    "host",
    "is_composite",
]


class NodeKind(str, Enum):
    """Capability class of a node type."""

    COMPOSITE = "composite"
    OPAQUE = "opaque"


@dataclass(frozen=True)
class NodeType:
    """Descriptor used to build nodes.

    Attributes
    ----------
    name
        Tag or component name (``"p"``, ``"Section"``, ``"Fragment"``).
    kind
        Whether nodes built from this descriptor accept injected props.
    """

    name: str
    kind: NodeKind

    @property
    def is_composite(self) -> bool:
        return self.kind is NodeKind.COMPOSITE

    def __str__(self) -> str:
        return self.name


def host(tag: str) -> NodeType:
    """Return the opaque descriptor of a primitive render target."""
    return NodeType(tag, NodeKind.OPAQUE)


def component(name: str) -> NodeType:
    """Return the composite descriptor of a user-defined construct."""
    return NodeType(name, NodeKind.COMPOSITE)


FRAGMENT = NodeType("Fragment", NodeKind.OPAQUE)
SECTION = component("Section")
SECTION_INPUT = component("SectionInput")


Child = Union["Node", str]


def _freeze_props(props: Optional[Mapping[str, Any]]) -> Mapping[str, Any]:
    return MappingProxyType(dict(props or {}))


@dataclass(frozen=True)
class Node:
    """Immutable node of a section tree.

    Attributes
    ----------
    type
        Descriptor the node was built from; decides its kind.
    props
        Read-only bag of node data. ``id`` is the only key the tree
        algorithms interpret.
    children
        Ordered child nodes or text strings.
    key
        Optional reconciliation key of top-level elements.

    Nodes compare by value but are unhashable: ``props`` is a mutable-backed
    mapping proxy.
    """

    type: NodeType
    props: Mapping[str, Any] = field(default_factory=dict)
    children: Tuple[Child, ...] = ()
    key: Optional[str] = None

    __hash__ = None  # type: ignore[assignment]

    def __post_init__(self) -> None:
        object.__setattr__(self, "props", _freeze_props(self.props))
        object.__setattr__(self, "children", tuple(self.children))

    @property
    def id(self) -> Optional[str]:
        value = self.props.get("id")
        return value if isinstance(value, str) and value else None

    @property
    def kind(self) -> NodeKind:
        return self.type.kind

    def has_children(self) -> bool:
        """Return True if this node has at least one child."""
        return len(self.children) > 0

    def with_props(self, **extra: Any) -> "Node":
        """Return a copy whose props are updated with *extra*."""
        merged: Dict[str, Any] = dict(self.props)
        merged.update(extra)
        return Node(self.type, merged, self.children, self.key)

    def with_children(self, children: Iterable[Child]) -> "Node":
        """Return a copy holding *children* instead of the current ones."""
        return Node(self.type, self.props, tuple(children), self.key)

    def __repr__(self) -> str:
        parts = [self.type.name]
        if self.key:
            parts.append(f"key={self.key!r}")
        if self.id:
            parts.append(f"id={self.id!r}")
        if self.children:
            parts.append(f"children={len(self.children)}")
        return f"Node({', '.join(parts)})"


def is_composite(node: Any) -> bool:
    """Return True when *node* is a node built from a composite descriptor.

    Text children and any non-node value are never composite.
    """
    return isinstance(node, Node) and node.type.kind is NodeKind.COMPOSITE


class NodeTypeRegistry:
    """Maps tag names to descriptors.

    Resolution order: registered names, ``Fragment``, lower-case tags as host
    targets, anything else as a user-defined composite.
    """

    def __init__(self, types: Iterable[NodeType] = ()) -> None:
        self._types: Dict[str, NodeType] = {}
        for node_type in types:
            self.register(node_type)

    def register(self, node_type: NodeType) -> NodeType:
        self._types[node_type.name] = node_type
        return node_type

    def resolve(self, tag: str) -> NodeType:
        registered = self._types.get(tag)
        if registered is not None:
            return registered
        if tag == FRAGMENT.name:
            return FRAGMENT
        if tag[:1].islower():
            return host(tag)
        return component(tag)

    def __contains__(self, tag: str) -> bool:
        return tag in self._types


DEFAULT_REGISTRY = NodeTypeRegistry(
    [
        SECTION,
        SECTION_INPUT,
        FRAGMENT,
        component("FullWidthLayout"),
        component("SplitLayout"),
        component("GridLayout"),
        component("SidebarLayout"),
        component("Sidebar"),
        component("Main"),
        component("EditableText"),
        component("InteractiveEquation"),
    ]
)


def _flatten(children: Iterable[Any]) -> Iterable[Child]:
    for child in children:
        if child is None or child is False or child is True:
            continue
        if isinstance(child, (list, tuple)):
            yield from _flatten(child)
        elif isinstance(child, (Node, str)):
            yield child
        else:
            yield str(child)


def h(
    type_: Union[NodeType, str],
    props: Optional[Mapping[str, Any]] = None,
    *children: Any,
    key: Optional[str] = None,
) -> Node:
    """Build a node; string types are resolved through ``DEFAULT_REGISTRY``.

    Nested lists of children are flattened and ``None``/booleans dropped.
    """
    node_type = DEFAULT_REGISTRY.resolve(type_) if isinstance(type_, str) else type_
    return Node(node_type, props or {}, tuple(_flatten(children)), key)
