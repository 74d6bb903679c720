from __future__ import annotations

"""Section context: capability bundle shared with a top-level subtree.

Each top-level section rendered inside a reorder region is wrapped by
:class:`ContextInjector`. The injector resolves the section's addressable id,
builds a :class:`SectionContext` (drag handle, bound delete callback, id) and
publishes it on an ambient channel while the subtree is rendered, so nested
components can read it with :func:`use_section_context` without threading
parameters through every call.

The channel is a :class:`contextvars.ContextVar`, set for the duration of
:func:`section_scope` and reset on exit. Descendants only read the value;
nothing outside the scope sees it.
"""

import logging
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from functools import partial
from typing import Any, Callable, Dict, Iterator, Optional

from lesson_toolkit.core.models import Node
from lesson_toolkit.core.tree import extract_id, inject_props

logger = logging.getLogger(__name__)

__all__ = [
    "ContextInjector",
    "DragHandle",
    "DraggableSection",
    "SectionContext",
    "resolve_section_id",
    "section_scope",
    "use_section_context",
]

# Prop names merged into composite nodes.
IS_PREVIEW = "isPreview"
ON_EDIT_SECTION = "onEditSection"
ON_ADD_SECTION = "onAddSection"


@dataclass(frozen=True)
class DragHandle:
    """Identifies the reorder item a drag gesture should move."""

    item_key: str


@dataclass(frozen=True)
class SectionContext:
    """Capabilities published to every descendant of one top-level section."""

    drag_handle: DragHandle
    on_delete: Callable[[], None]
    id: Optional[str]


_CURRENT_SECTION: ContextVar[Optional[SectionContext]] = ContextVar("section_context", default=None)


@contextmanager
def section_scope(context: SectionContext) -> Iterator[SectionContext]:
    """Publish *context* for the duration of the ``with`` block."""
    token = _CURRENT_SECTION.set(context)
    try:
        yield context
    finally:
        _CURRENT_SECTION.reset(token)


def use_section_context() -> Optional[SectionContext]:
    """Return the innermost published section context, or None outside any scope."""
    return _CURRENT_SECTION.get()


def resolve_section_id(node: Node, fallback: Optional[str] = None) -> Optional[str]:
    """Resolve the addressable id of a top-level node.

    Order: the node's own id, the id of its single direct child node (one
    level of structural wrapping), the first descendant id, then *fallback*.
    """
    if node.id:
        return node.id
    if len(node.children) == 1 and isinstance(node.children[0], Node) and node.children[0].id:
        return node.children[0].id
    return extract_id(node) or fallback


@dataclass(frozen=True)
class DraggableSection:
    """One top-level section prepared for a reorder region."""

    key: str
    section_id: Optional[str]
    context: SectionContext
    node: Node
    source: Node
    rendered: Any = None


class ContextInjector:
    """Wrap top-level nodes with a :class:`SectionContext` and inject editor props.

    Parameters
    ----------
    is_preview
        Preview flag injected into composite nodes.
    on_edit_section, on_add_section
        Editor callbacks injected into composite nodes.
    on_delete_section
        Store delete entry point; called with the resolved id.
    """

    def __init__(
        self,
        *,
        is_preview: bool = False,
        on_edit_section: Optional[Callable[[str], Any]] = None,
        on_add_section: Optional[Callable[[str], Any]] = None,
        on_delete_section: Optional[Callable[[str], Any]] = None,
    ) -> None:
        self.is_preview = is_preview
        self.on_edit_section = on_edit_section
        self.on_add_section = on_add_section
        self.on_delete_section = on_delete_section

    @property
    def capabilities(self) -> Dict[str, Any]:
        return {
            IS_PREVIEW: self.is_preview,
            ON_EDIT_SECTION: self.on_edit_section,
            ON_ADD_SECTION: self.on_add_section,
        }

    def _handle_delete(self, section_id: Optional[str]) -> None:
        if not section_id:
            logger.warning("Delete ignored: no section id could be resolved")
            return
        if self.on_delete_section is None:
            logger.debug("Delete ignored: no delete handler for section=%s", section_id)
            return
        self.on_delete_section(section_id)

    def build_context(self, node: Node, key: str, fallback_id: Optional[str] = None) -> SectionContext:
        section_id = resolve_section_id(node, fallback_id)
        if section_id is None:
            logger.debug("No addressable id for section key=%s", key)
        return SectionContext(
            drag_handle=DragHandle(item_key=key),
            on_delete=partial(self._handle_delete, section_id),
            id=section_id,
        )

    def wrap(
        self,
        node: Node,
        key: str,
        fallback_id: Optional[str] = None,
        render: Optional[Callable[[Node], Any]] = None,
    ) -> DraggableSection:
        """Inject props into *node* and render it inside its section scope.

        *render*, when given, is called with the injected node while the
        section context is published; its return value is kept on the result.
        """
        context = self.build_context(node, key, fallback_id)
        with section_scope(context):
            injected = inject_props(node, self.capabilities)
            rendered = render(injected) if render is not None else None
        return DraggableSection(
            key=key,
            section_id=context.id,
            context=context,
            node=injected,
            source=node,
            rendered=rendered,
        )
