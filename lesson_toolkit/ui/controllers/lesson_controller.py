from __future__ import annotations

"""Controller coordinating the lesson lifecycle with the editing services.

This controller owns the wiring between the loader, the
:class:`SectionStore` and the :class:`SectionRenderer`. It contains no UI
toolkit code: a front-end calls the ``handle_*`` methods from its event
callbacks and displays :attr:`LessonController.last_render`.

Lifecycle
---------
``await start()`` loads the initial sections. If :meth:`close` was called
while the load was in flight the result is discarded and the watcher is
never created. In watch mode every push from the watcher replaces the whole
section list; pushes older than the last applied one are dropped.
"""

import logging
from typing import Any, Awaitable, Callable, List, Optional

from lesson_toolkit.core.exceptions import SectionLoadError
from lesson_toolkit.core.importers.section_loader import (
    LoaderConfig,
    Signature,
    create_sections_watcher,
    file_signature,
    load_sections,
)
from lesson_toolkit.core.models import Node
from lesson_toolkit.core.models.edit_journal import EditJournal
from lesson_toolkit.core.services.host_channel import HostChannel
from lesson_toolkit.core.services.render_service import RenderResult, SectionRenderer, Typesetter
from lesson_toolkit.core.services.section_store import OperationResult, SectionStore

logger = logging.getLogger(__name__)

__all__ = ["LessonController"]

Loader = Callable[[LoaderConfig], Awaitable[List[Node]]]
WatcherFactory = Callable[[Callable[[List[Node], int], None], LoaderConfig, Signature], Callable[[], None]]


class LessonController:
    """Coordinate loading, editing and rendering of one lesson.

    Parameters
    ----------
    loader_config : LoaderConfig
        Lesson source and watch settings.
    host : HostChannel, optional
        Receives reorder/delete notifications.
    journal : EditJournal, optional
        Receives content commits.
    is_preview : bool
        Preview mode flag injected into composite nodes.
    reorderable : bool
        Whether sections are laid out in a drag-reorder region.
    on_edit_section : callable, optional
        Editor callback injected into composite nodes.
    typesetter : callable, optional
        Cosmetic pass run after each render.
    on_render : callable, optional
        Called with every new :class:`RenderResult`.
    """

    def __init__(
        self,
        loader_config: LoaderConfig,
        *,
        host: Optional[HostChannel] = None,
        journal: Optional[EditJournal] = None,
        is_preview: bool = False,
        reorderable: bool = True,
        on_edit_section: Optional[Callable[[str], Any]] = None,
        typesetter: Optional[Typesetter] = None,
        on_render: Optional[Callable[[RenderResult], Any]] = None,
        editor_config: Optional[dict] = None,
        loader: Loader = load_sections,
        watcher_factory: WatcherFactory = create_sections_watcher,
    ) -> None:
        self.loader_config = loader_config
        self.store = SectionStore(host=host, journal=journal, editor_config=editor_config)
        self.renderer = SectionRenderer(
            is_preview=is_preview,
            on_edit_section=on_edit_section,
            on_add_section=self.handle_add_section,
            on_reorder=self.handle_reorder if reorderable else None,
            on_delete_section=self.handle_delete_section,
            typesetter=typesetter,
        )
        self._loader = loader
        self._watcher_factory = watcher_factory
        self._on_render = on_render

        self.loading: bool = True
        self.last_render: Optional[RenderResult] = None
        self._cancelled = False
        self._teardown: Optional[Callable[[], None]] = None
        self._last_sequence = 0

        self.store.subscribe(self._on_sections_changed)

    # ---------------------------------------------------------------------------------
    # Lifecycle
    # ---------------------------------------------------------------------------------

    @property
    def closed(self) -> bool:
        return self._cancelled

    @property
    def watching(self) -> bool:
        return self._teardown is not None

    @property
    def is_empty(self) -> bool:
        """True once loaded with no sections (front-ends show a welcome screen)."""
        return not self.loading and len(self.store) == 0

    async def start(self) -> None:
        """Load the initial sections and start watching when configured."""
        # Stat before loading so an edit saved mid-load still reaches the watcher.
        baseline = file_signature(self.loader_config.path) if self.loader_config.watch else None
        try:
            sections = await self._loader(self.loader_config)
        except SectionLoadError as exc:
            logger.error("Could not load sections: %s", exc)
            sections = []
        if self._cancelled:
            logger.info("Controller closed during load, discarding %d sections", len(sections))
            return

        self.loading = False
        self.store.replace_all(sections if isinstance(sections, (list, tuple)) else [])

        if self.loader_config.watch:
            self._teardown = self._watcher_factory(self._on_watch_push, self.loader_config, baseline)

    def close(self) -> None:
        """Cancel pending work and stop watching."""
        self._cancelled = True
        if self._teardown is not None:
            self._teardown()
            self._teardown = None

    def _on_watch_push(self, sections: List[Node], sequence: int) -> None:
        if self._cancelled:
            return
        if sequence <= self._last_sequence:
            logger.info("Dropping stale section push seq=%d (applied=%d)", sequence, self._last_sequence)
            return
        self._last_sequence = sequence
        self.store.replace_all(sections)

    # ---------------------------------------------------------------------------------
    # Rendering
    # ---------------------------------------------------------------------------------

    def render(self) -> RenderResult:
        result = self.renderer.render(self.store.sections)
        self.last_render = result
        if self._on_render is not None:
            self._on_render(result)
        return result

    def _on_sections_changed(self, sections: Any) -> None:
        if self.loading:
            return
        self.render()

    # ---------------------------------------------------------------------------------
    # Event handlers
    # ---------------------------------------------------------------------------------

    def handle_commit_section(self, section_id: str, content: str) -> OperationResult:
        return self.store.commit_text(section_id, content)

    def handle_add_section(self, section_id: str) -> OperationResult:
        return self.store.add_section_after(section_id)

    def handle_reorder(self, new_sections: List[Node]) -> OperationResult:
        return self.store.reorder(new_sections)

    def handle_delete_section(self, section_id: str) -> OperationResult:
        return self.store.delete_section(section_id)
