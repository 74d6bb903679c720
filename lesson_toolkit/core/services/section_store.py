from __future__ import annotations

"""Service layer owning the top-level section list of a lesson.

This module provides a UI-agnostic, testable store that encapsulates the
editing transitions of the section editor: committing text into a section,
adding a section after another one, reordering top-level sections and
deleting the top-level element that owns a section.

Scope and guarantees:
- Operates purely in-memory on immutable :class:`Node` trees; every
  transition swaps the whole list for a newly computed one.
- Conservative behavior; invalid operations return
  OperationResult(success=False, ...) with clear messaging, never raise.
- Reorder and delete outcomes are posted to the host channel
  (fire-and-forget). Content commits are batched in the edit journal.

Examples
--------
Basic usage:

    store = SectionStore(sections, host=RecordingHostChannel())
    result = store.add_section_after("intro")
    if not result.success:
        print(result.message)
"""

from dataclasses import dataclass
import logging
import time
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from lesson_toolkit.config import ConfigManager
from lesson_toolkit.core.models import Node, SECTION, SECTION_INPUT, h
from lesson_toolkit.core.models.edit_journal import EditJournal
from lesson_toolkit.core.services.host_channel import (
    HostChannel,
    NullHostChannel,
    delete_message,
    reorder_message,
)
from lesson_toolkit.core.tree import (
    contains_id,
    extract_id,
    find_owner_index,
    iter_ids,
    replace_content_by_id,
)

__all__ = ["OperationResult", "SectionStore"]

logger = logging.getLogger(__name__)

SectionsListener = Callable[[Tuple[Node, ...]], None]

_EDITOR_DEFAULTS: Dict[str, Any] = {
    "wrapper_component": "FullWidthLayout",
    "wrapper_props": {"maxWidth": "xl"},
    "wrapper_key_prefix": "layout-",
    "section_id_prefix": "section-",
    "placeholder": "Type '/' for commands",
    "text_tag": "p",
    "text_class": "text-lg text-gray-800 leading-relaxed",
    "unknown_section_id": "unknown",
}


@dataclass(frozen=True)
class OperationResult:
    """Result of a store operation.

    Attributes
    ----------
    success
        Whether the operation completed successfully.
    message
        Human-readable summary suitable for logs or UI display.
    details
        Optional structured details for diagnostics or caller logic.
    """
    success: bool
    message: str
    details: Optional[Dict[str, Any]] = None


class SectionStore:
    """Owns the ordered list of top-level section nodes.

    Parameters
    ----------
    sections
        Initial top-level nodes (usually supplied by the loader).
    host
        Channel receiving reorder/delete notifications.
    journal
        Edit journal receiving content commits. When None, commits are
        applied locally and the journal hand-off is skipped with a warning.
    editor_config
        Editor conventions; defaults to the ``editor`` config section.
    clock
        Returns the current time in seconds; used to mint new section ids.
    """

    def __init__(
        self,
        sections: Sequence[Node] = (),
        *,
        host: Optional[HostChannel] = None,
        journal: Optional[EditJournal] = None,
        editor_config: Optional[Mapping[str, Any]] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._sections: Tuple[Node, ...] = tuple(sections)
        self._host: HostChannel = host if host is not None else NullHostChannel()
        self._journal = journal
        if editor_config is None:
            editor_config = ConfigManager().get_editor_config()
        self._config: Dict[str, Any] = {**_EDITOR_DEFAULTS, **dict(editor_config)}
        self._clock = clock
        self._listeners: List[SectionsListener] = []

    # -------------------------------------------------------------------------
    # State access
    # -------------------------------------------------------------------------

    @property
    def sections(self) -> Tuple[Node, ...]:
        """Read-only view of the current top-level list."""
        return self._sections

    @property
    def journal(self) -> Optional[EditJournal]:
        return self._journal

    def __len__(self) -> int:
        return len(self._sections)

    def section_ids(self) -> List[str]:
        """Return the host-facing id of every top-level element, in order."""
        return [self._host_section_id(section) for section in self._sections]

    def subscribe(self, listener: SectionsListener) -> Callable[[], None]:
        """Register *listener* for list swaps; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def replace_all(self, sections: Sequence[Node]) -> OperationResult:
        """Swap the whole list (initial hydration, hot reload)."""
        new_sections = tuple(sections)
        self._warn_duplicate_ids(new_sections)
        self._set_sections(new_sections)
        logger.info("Sections replaced: count=%d", len(new_sections))
        return OperationResult(True, f"Loaded {len(new_sections)} sections.", {"count": len(new_sections)})

    def commit_text(self, section_id: str, text: str, *, record: bool = True) -> OperationResult:
        """Replace the content of section *section_id* with a text paragraph.

        The edit is handed to the journal as ``{"action": "add", ...}`` unless
        *record* is False (journal replay), even when no section owns the id.
        """
        logger.info("Edit: commit_text section=%s", section_id)
        if not text or not text.strip():
            logger.info("Edit noop: commit_text empty_text section=%s", section_id)
            return OperationResult(False, "Nothing to commit.", {"section_id": section_id})

        if find_owner_index(self._sections, section_id) == -1:
            logger.warning("Edit FAIL: commit_text section_not_found section=%s", section_id)
            if record:
                self._journal_edit({"action": "add", "sectionId": section_id, "content": text})
            return OperationResult(False, f"Section not found for id '{section_id}'.", {"section_id": section_id})

        content = h(self._config["text_tag"], {"className": self._config["text_class"]}, text)
        self._set_sections(
            tuple(replace_content_by_id(section, section_id, content) for section in self._sections)
        )

        if record:
            self._journal_edit({"action": "add", "sectionId": section_id, "content": text})
        logger.info("Edit OK: commit_text section=%s", section_id)
        return OperationResult(True, "Section content updated.", {"section_id": section_id})

    def add_section_after(self, section_id: str) -> OperationResult:
        """Insert a new placeholder section after the top-level owner of *section_id*."""
        logger.info("Edit: add_section_after section=%s", section_id)
        index = find_owner_index(self._sections, section_id)
        if index == -1:
            logger.warning("Could not find section with id: %s", section_id)
            return OperationResult(False, f"Section not found for id '{section_id}'.", {"section_id": section_id})

        new_id = self._mint_section_id()
        new_section = self.build_placeholder(new_id)
        self._set_sections(self._sections[: index + 1] + (new_section,) + self._sections[index + 1:])
        logger.info("Edit OK: add_section_after section=%s new=%s index=%d", section_id, new_id, index + 1)
        return OperationResult(True, "Section added.", {"section_id": section_id, "new_id": new_id, "index": index + 1})

    def reorder(self, new_order: Sequence[Node]) -> OperationResult:
        """Replace the list with *new_order* verbatim and notify the host.

        The input is not validated; a warning is logged when it is not a
        permutation of the current list.
        """
        new_sections = tuple(new_order)
        logger.info("Edit: reorder count=%d", len(new_sections))
        if not _is_permutation(self._sections, new_sections):
            logger.warning(
                "Reorder input is not a permutation of the current sections (current=%d new=%d)",
                len(self._sections),
                len(new_sections),
            )
        self._set_sections(new_sections)

        section_ids = [self._host_section_id(section) for section in new_sections]
        self._post(reorder_message(section_ids))
        logger.info("Edit OK: reorder ids=%s", section_ids)
        return OperationResult(True, "Sections reordered.", {"section_ids": section_ids})

    def delete_section(self, section_id: str) -> OperationResult:
        """Remove every top-level element containing *section_id* and notify the host."""
        logger.info("Edit: delete_section section=%s", section_id)
        kept = tuple(section for section in self._sections if not contains_id(section, section_id))
        removed = len(self._sections) - len(kept)
        if removed == 0:
            logger.warning("Edit noop: delete_section section_not_found section=%s", section_id)
        self._set_sections(kept)

        self._post(delete_message(section_id))
        if removed:
            logger.info("Edit OK: delete_section section=%s removed=%d", section_id, removed)
        return OperationResult(
            removed > 0,
            "Section deleted." if removed else f"Section not found for id '{section_id}'.",
            {"section_id": section_id, "removed": removed},
        )

    # -------------------------------------------------------------------------
    # Node factories
    # -------------------------------------------------------------------------

    def build_placeholder(self, new_id: str) -> Node:
        """Build the wrapped, empty section inserted by :meth:`add_section_after`."""
        cfg = self._config
        return h(
            cfg["wrapper_component"],
            dict(cfg.get("wrapper_props") or {}),
            h(
                SECTION,
                {"id": new_id},
                h(
                    SECTION_INPUT,
                    {
                        "sectionId": new_id,
                        "onCommit": self.commit_text,
                        "placeholder": cfg["placeholder"],
                    },
                ),
            ),
            key=f"{cfg['wrapper_key_prefix']}{new_id}",
        )

    # -------------------------------------------------------------------------
    # Internal helpers
    # -------------------------------------------------------------------------

    def _set_sections(self, sections: Tuple[Node, ...]) -> None:
        self._sections = sections
        for listener in list(self._listeners):
            try:
                listener(sections)
            except Exception:
                logger.exception("Sections listener failed")

    def _mint_section_id(self) -> str:
        prefix = self._config["section_id_prefix"]
        stamp = int(self._clock() * 1000)
        existing = {i for section in self._sections for i in iter_ids(section)}
        candidate = f"{prefix}{stamp}"
        while candidate in existing:
            stamp += 1
            candidate = f"{prefix}{stamp}"
        return candidate

    def _host_section_id(self, section: Node) -> str:
        prefix = self._config["wrapper_key_prefix"]
        if isinstance(section.key, str) and prefix and section.key.startswith(prefix):
            return section.key[len(prefix):]
        return extract_id(section) or self._config["unknown_section_id"]

    def _journal_edit(self, edit: Dict[str, Any]) -> None:
        if self._journal is None:
            logger.warning("Edit journal not available, cannot batch edit for section=%s", edit.get("sectionId"))
            return
        try:
            self._journal.add_structure_edit(edit)
        except Exception:
            logger.exception("Edit journal rejected edit for section=%s", edit.get("sectionId"))

    def _post(self, payload: Dict[str, Any]) -> None:
        try:
            self._host.post_message(payload)
        except Exception:
            logger.exception("Host notification failed type=%s", payload.get("type"))

    @staticmethod
    def _warn_duplicate_ids(sections: Sequence[Node]) -> None:
        seen: set = set()
        for section in sections:
            for section_id in iter_ids(section):
                if section_id in seen:
                    logger.warning("Duplicate section id '%s' in section list", section_id)
                seen.add(section_id)


def _is_permutation(current: Sequence[Node], candidate: Sequence[Node]) -> bool:
    if len(current) != len(candidate):
        return False
    remaining = list(current)
    for node in candidate:
        match = next((i for i, other in enumerate(remaining) if other is node), None)
        if match is None:
            match = next((i for i, other in enumerate(remaining) if other == node), None)
        if match is None:
            return False
        del remaining[match]
    return True
