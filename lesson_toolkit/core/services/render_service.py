from __future__ import annotations

"""Vertical layout of the top-level section list.

:class:`SectionRenderer` turns the store's read-only section list into an
HTML tree (lxml) laid out as a vertical stack:

- Without reordering, each section is prop-injected and placed in document
  order inside a flow container.
- With reordering, each section is wrapped by the
  :class:`~lesson_toolkit.core.context.ContextInjector` inside a
  drag-reorder region. The order reported back by the region is handed
  verbatim to the reorder callback (normally ``SectionStore.reorder``).

After each render an optional typesetting pass (e.g. a MathJax bridge) runs
over the stack. It is cosmetic: failures are swallowed.
"""

from dataclasses import dataclass, field
import logging
import re
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from lxml import etree as ET

from lesson_toolkit.core.context import (
    IS_PREVIEW,
    ContextInjector,
    DraggableSection,
    use_section_context,
)
from lesson_toolkit.core.models import Child, Node, SECTION, SECTION_INPUT, is_composite
from lesson_toolkit.core.tree import inject_props

logger = logging.getLogger(__name__)

__all__ = ["RenderResult", "RenderedSection", "SectionRenderer", "node_to_html"]

Typesetter = Callable[[Any], Any]
ReorderCallback = Callable[[List[Node]], Any]

_ATTR_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_\-]*$")
# Characters outside the XML 1.0 Char production; lxml rejects them.
_XML_INVALID = re.compile("[^\u0009\u000a\u000d\u0020-\ud7ff\ue000-\ufffd\U00010000-\U0010ffff]")


@dataclass(frozen=True)
class RenderedSection:
    """One section laid out in the non-reorderable flow."""

    key: str
    node: Node
    source: Node


@dataclass
class RenderResult:
    """Outcome of one render pass.

    Attributes
    ----------
    root
        Root HTML element of the rendered surface.
    items
        Per-section records, in display order.
    reorderable
        Whether the sections were placed in a drag-reorder region.
    on_reorder
        Callback receiving the new order reported by the region.
    """

    root: Any
    items: Tuple[Any, ...]
    reorderable: bool
    on_reorder: Optional[ReorderCallback] = None
    typeset: bool = False
    keys: Tuple[str, ...] = field(default_factory=tuple)

    def to_html(self, pretty: bool = True) -> str:
        return ET.tostring(self.root, method="html", pretty_print=pretty, encoding="unicode")

    def handle_reorder(self, new_order: Sequence[Node]) -> Any:
        """Forward the region's reported order verbatim to the reorder callback."""
        if self.on_reorder is None:
            logger.debug("Reorder reported but no reorder handler is attached")
            return None
        return self.on_reorder(list(new_order))

    def reorder_by_keys(self, keys: Sequence[str]) -> Any:
        """Map item keys reported by a host back to section nodes and reorder."""
        by_key: Dict[str, Node] = {item.key: item.source for item in self.items}
        missing = [k for k in keys if k not in by_key]
        if missing:
            logger.warning("Reorder keys not rendered, ignoring: %s", missing)
        return self.handle_reorder([by_key[k] for k in keys if k in by_key])


def _xml_text(text: str) -> str:
    """Drop characters that cannot appear in an XML document."""
    return _XML_INVALID.sub("", text)


def _attr_value(value: Any) -> Optional[str]:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (str, int, float)):
        return _xml_text(str(value))
    return None


def _set_attrs(element: Any, node: Node, *, data_prefixed: bool) -> None:
    for name, value in node.props.items():
        text = _attr_value(value)
        if text is None or not _ATTR_NAME.match(name):
            continue
        if name == "className":
            element.set("class", text)
        elif name == "id" or not data_prefixed:
            element.set(name, text)
        else:
            element.set(f"data-{name.lower()}", text)


def _append_text(parent: Any, text: str) -> None:
    text = _xml_text(text)
    if len(parent):
        last = parent[-1]
        last.tail = (last.tail or "") + text
    else:
        parent.text = (parent.text or "") + text


def _append_children(parent: Any, children: Sequence[Child]) -> None:
    for child in children:
        if isinstance(child, Node):
            _append_node(parent, child)
        else:
            _append_text(parent, child)


def _section_controls(parent: Any, node: Node) -> None:
    context = use_section_context()
    if context is None or node.props.get(IS_PREVIEW):
        return
    controls = ET.SubElement(parent, "div")
    controls.set("class", "section-controls")
    controls.set("data-drag-handle", _xml_text(context.drag_handle.item_key))
    if context.id:
        controls.set("data-delete-section", _xml_text(context.id))


def _append_node(parent: Any, node: Node) -> None:
    if node.type.name == "Fragment":
        _append_children(parent, node.children)
        return
    if not is_composite(node):
        element = ET.SubElement(parent, node.type.name)
        _set_attrs(element, node, data_prefixed=False)
        _append_children(element, node.children)
        return

    element = ET.SubElement(parent, "div")
    element.set("data-component", node.type.name)
    _set_attrs(element, node, data_prefixed=True)
    if node.type == SECTION:
        _section_controls(element, node)
    if node.type == SECTION_INPUT:
        textarea = ET.SubElement(element, "textarea")
        placeholder = _attr_value(node.props.get("placeholder"))
        if placeholder:
            textarea.set("placeholder", placeholder)
        textarea.text = ""
    _append_children(element, node.children)


def node_to_html(node: Node) -> Any:
    """Render a single node into a detached HTML element."""
    holder = ET.Element("div")
    _append_node(holder, node)
    if len(holder) == 1 and not holder.text:
        return holder[0]
    return holder


class SectionRenderer:
    """Lay out top-level sections and run the typesetting pass.

    Parameters
    ----------
    is_preview
        Preview flag injected into composite nodes.
    on_edit_section, on_add_section
        Editor callbacks injected into composite nodes.
    on_reorder
        Receives the new order; enables the drag-reorder region when set.
    on_delete_section
        Delete entry point exposed through the section context.
    typesetter
        Optional callable run on the rendered stack after each render.
    """

    def __init__(
        self,
        *,
        is_preview: bool = False,
        on_edit_section: Optional[Callable[[str], Any]] = None,
        on_add_section: Optional[Callable[[str], Any]] = None,
        on_reorder: Optional[ReorderCallback] = None,
        on_delete_section: Optional[Callable[[str], Any]] = None,
        typesetter: Optional[Typesetter] = None,
    ) -> None:
        self.is_preview = is_preview
        self.on_edit_section = on_edit_section
        self.on_add_section = on_add_section
        self.on_reorder = on_reorder
        self.on_delete_section = on_delete_section
        self.typesetter = typesetter

    @property
    def reorderable(self) -> bool:
        return self.on_reorder is not None

    def _injector(self) -> ContextInjector:
        return ContextInjector(
            is_preview=self.is_preview,
            on_edit_section=self.on_edit_section,
            on_add_section=self.on_add_section,
            on_delete_section=self.on_delete_section,
        )

    @staticmethod
    def section_key(node: Node, index: int, *, use_id: bool) -> str:
        if node.key:
            return node.key
        if use_id and node.id:
            return node.id
        return f"section-{index}"

    def render(self, sections: Sequence[Node]) -> RenderResult:
        container = ET.Element("div")
        container.set("class", "sections-container")
        stack = ET.SubElement(container, "div")
        stack.set("class", "sections-stack")
        stack.set("aria-label", "Sections Stack")
        inner = ET.SubElement(stack, "div")
        inner.set("class", "sections-inner")

        if self.reorderable:
            items: Tuple[Any, ...] = self._render_reorderable(inner, sections)
        else:
            items = self._render_flow(inner, sections)

        typeset = self._typeset(stack)
        logger.debug("Rendered %d sections reorderable=%s", len(items), self.reorderable)
        return RenderResult(
            root=container,
            items=items,
            reorderable=self.reorderable,
            on_reorder=self.on_reorder,
            typeset=typeset,
            keys=tuple(item.key for item in items),
        )

    def _render_flow(self, parent: Any, sections: Sequence[Node]) -> Tuple[RenderedSection, ...]:
        flow = ET.SubElement(parent, "div")
        flow.set("class", "sections-flow")
        capabilities = self._injector().capabilities
        items: List[RenderedSection] = []
        for index, section in enumerate(sections):
            key = self.section_key(section, index, use_id=False)
            injected = inject_props(section, capabilities)
            slot = ET.SubElement(flow, "div")
            slot.set("class", "section-slot")
            slot.set("data-key", _xml_text(key))
            _append_node(slot, injected)
            items.append(RenderedSection(key=key, node=injected, source=section))
        return tuple(items)

    def _render_reorderable(self, parent: Any, sections: Sequence[Node]) -> Tuple[DraggableSection, ...]:
        group = ET.SubElement(parent, "div")
        group.set("class", "reorder-group")
        group.set("data-reorder", "y")
        injector = self._injector()
        items: List[DraggableSection] = []
        for index, section in enumerate(sections):
            key = self.section_key(section, index, use_id=True)
            item = ET.SubElement(group, "div")
            item.set("class", "reorder-item")
            item.set("data-key", _xml_text(key))

            def render_into(injected: Node, item: Any = item) -> Any:
                _append_node(item, injected)
                return item

            wrapped = injector.wrap(section, key, render=render_into)
            if wrapped.section_id:
                item.set("data-section-id", _xml_text(wrapped.section_id))
            items.append(wrapped)
        return tuple(items)

    def _typeset(self, element: Any) -> bool:
        if self.typesetter is None:
            return False
        try:
            self.typesetter(element)
        except Exception as exc:  # cosmetic pass, never surfaced
            logger.debug("Typesetting pass failed: %s", exc)
            return False
        return True
