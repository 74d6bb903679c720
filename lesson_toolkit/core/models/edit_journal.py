from __future__ import annotations

"""Edit journaling model for section content edits.

This module defines a minimal, UI-agnostic, in-memory journal of edits made
in the section editor. Entries are batched here and later handed to
whatever persists them (a host frame, a file, a backend), or replayed
against a freshly loaded :class:`SectionStore` after a hot reload.

Scope:
- Pure core model (no I/O, no UI).
- Conservative and robust: failures during replay are collected, not raised.
- JSON-serializable serialization format for persistence by callers.

Supported operations:
- "add": {"sectionId": str, "content": str}

Dispatch during replay is delegated to SectionStore methods:
- add -> SectionStore.commit_text
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, TypedDict
from typing import TYPE_CHECKING

import logging
import time

if TYPE_CHECKING:
    from lesson_toolkit.core.services.section_store import SectionStore

logger = logging.getLogger(__name__)

__all__ = ["AddEntry", "EditJournal", "JournalEntry"]


class AddEntry(TypedDict):
    action: str
    sectionId: str
    content: str


@dataclass
class JournalEntry:
    """Single journal entry representing one edit.

    Attributes
    ----------
    operation
        Operation kind, currently only "add".
    details
        Operation-specific payload. Must be JSON-serializable.
    timestamp
        Unix epoch seconds when the entry was recorded.
    """
    operation: str
    details: Dict[str, Any]
    timestamp: float


class EditJournal:
    """In-memory journal of section edits with record/replay capabilities."""

    def __init__(self) -> None:
        self._entries: List[JournalEntry] = []

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def entries(self) -> List[JournalEntry]:
        return list(self._entries)

    def add_structure_edit(self, edit: Mapping[str, Any]) -> None:
        """Record an edit shaped like ``{"action": ..., **details}``."""
        details = {k: v for k, v in edit.items() if k != "action"}
        self.record_edit(str(edit.get("action", "")), details)

    def record_edit(self, operation: str, details: Dict[str, Any]) -> None:
        """Record a new edit entry with current timestamp.

        The payload shape is validated during replay, not here.
        """
        entry = JournalEntry(operation=operation, details=dict(details), timestamp=time.time())
        self._entries.append(entry)
        logger.debug("Journal: recorded %s %r", operation, entry.details)

    def replay_edits(self, store: "SectionStore") -> Dict[str, Any]:
        """Replay all recorded edits against *store*.

        Returns
        -------
        dict
            ``{"applied": int, "skipped": int, "errors": List[str]}``.
            An edit counts as applied only if the store reports success.
        """
        applied = 0
        skipped = 0
        errors: List[str] = []

        for idx, entry in enumerate(self._entries):
            op = entry.operation
            details = entry.details
            if op == "add":
                section_id = _safe_str(details.get("sectionId"))
                content = _safe_str(details.get("content"))
                if not section_id or not content:
                    skipped += 1
                    errors.append(f"[{idx}] add: invalid payload {details!r}")
                    continue
                result = store.commit_text(section_id, content, record=False)
                if result.success:
                    applied += 1
                else:
                    skipped += 1
                    errors.append(f"[{idx}] add failed: {result.message}")
            else:
                skipped += 1
                errors.append(f"[{idx}] unsupported operation '{op}'")

        return {"applied": applied, "skipped": skipped, "errors": errors}

    def clear_journal(self) -> None:
        """Remove all entries from the journal."""
        self._entries.clear()

    def serialize(self) -> List[Dict[str, Any]]:
        """Serialize journal entries to a JSON-compatible list of dicts."""
        return [
            {"operation": e.operation, "details": e.details, "timestamp": e.timestamp}
            for e in self._entries
        ]

    @classmethod
    def deserialize(cls, data: Any) -> "EditJournal":
        """Create an EditJournal from serialized data.

        Malformed items are skipped; a non-list input yields an empty journal.
        """
        journal = cls()
        if not isinstance(data, list):
            return journal
        for item in data:
            if not isinstance(item, dict):
                continue
            op = item.get("operation")
            details = item.get("details")
            ts = item.get("timestamp")
            if not isinstance(op, str) or not isinstance(details, dict) or not isinstance(ts, (int, float)):
                continue
            journal._entries.append(JournalEntry(operation=op, details=details, timestamp=float(ts)))
        return journal


def _safe_str(value: Any) -> str:
    """Return the value if it's a string; otherwise empty string."""
    return value if isinstance(value, str) else ""
