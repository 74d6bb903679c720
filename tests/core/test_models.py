import dataclasses

import pytest

from lesson_toolkit.core.models import (
    DEFAULT_REGISTRY,
    FRAGMENT,
    Node,
    NodeKind,
    NodeTypeRegistry,
    SECTION,
    component,
    h,
    host,
    is_composite,
)


class TestNodeKindResolution:
    """Kinds are decided by the descriptor, never by content."""

    def test_host_tags_are_opaque(self):
        assert DEFAULT_REGISTRY.resolve("p").kind is NodeKind.OPAQUE
        assert DEFAULT_REGISTRY.resolve("div").kind is NodeKind.OPAQUE
        assert DEFAULT_REGISTRY.resolve("h2").kind is NodeKind.OPAQUE

    def test_fragment_is_opaque(self):
        assert DEFAULT_REGISTRY.resolve("Fragment") is FRAGMENT
        assert FRAGMENT.kind is NodeKind.OPAQUE

    def test_registered_components_are_composite(self):
        assert DEFAULT_REGISTRY.resolve("Section") is SECTION
        assert DEFAULT_REGISTRY.resolve("FullWidthLayout").is_composite

    def test_unknown_capitalized_tag_is_composite(self):
        node_type = DEFAULT_REGISTRY.resolve("CustomWidget")
        assert node_type.kind is NodeKind.COMPOSITE
        assert "CustomWidget" not in DEFAULT_REGISTRY

    def test_registered_opaque_component_wins(self):
        registry = NodeTypeRegistry([host("Spacer")])
        assert registry.resolve("Spacer").kind is NodeKind.OPAQUE

    def test_is_composite_ignores_content(self):
        with_id = h("p", {"id": "x"}, h("Section", {"id": "y"}))
        assert not is_composite(with_id)
        assert is_composite(h(component("Empty")))

    def test_text_is_never_composite(self):
        assert not is_composite("plain text")
        assert not is_composite(None)


class TestNode:
    def test_id_from_props(self):
        assert h("Section", {"id": "intro"}).id == "intro"
        assert h("Section").id is None
        assert h("Section", {"id": ""}).id is None

    def test_builder_flattens_and_drops_empty_children(self):
        node = h("div", None, ["a", None, ["b", False]], 3, h("span"))
        assert node.children[:3] == ("a", "b", "3")
        assert isinstance(node.children[3], Node)

    def test_nodes_are_immutable(self):
        node = h("Section", {"id": "s1"})
        with pytest.raises(dataclasses.FrozenInstanceError):
            node.key = "other"  # type: ignore[misc]
        with pytest.raises(TypeError):
            node.props["id"] = "changed"  # type: ignore[index]

    def test_nodes_are_unhashable(self):
        node = h("Section", {"id": "s1"})
        assert Node.__hash__ is None
        with pytest.raises(TypeError):
            hash(node)

    def test_props_are_copied_on_construction(self):
        props = {"id": "s1"}
        node = h("Section", props)
        props["id"] = "mutated"
        assert node.id == "s1"

    def test_with_props_and_with_children_return_new_nodes(self):
        node = h("Section", {"id": "s1", "tone": "calm"}, "old", key="k")
        updated = node.with_props(tone="loud")
        replaced = node.with_children(["new"])

        assert node.props["tone"] == "calm"
        assert updated.props["tone"] == "loud"
        assert updated.key == "k"
        assert replaced.children == ("new",)
        assert replaced.props == node.props
        assert node.children == ("old",)

    def test_structural_equality(self):
        assert h("Section", {"id": "a"}, "x") == h("Section", {"id": "a"}, "x")
        assert h("Section", {"id": "a"}, "x") != h("Section", {"id": "a"}, "y")
