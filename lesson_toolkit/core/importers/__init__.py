from __future__ import annotations

"""Lesson source loading.

Key components:
- load_sections: one-shot asynchronous load of the top-level sections
- SectionsWatcher: polls the source and pushes replacement lists
"""

from .section_loader import (
    LoaderConfig,
    SectionsWatcher,
    create_sections_watcher,
    file_signature,
    load_sections,
    parse_sections,
    read_sections,
)

__all__ = [
    "LoaderConfig",
    "SectionsWatcher",
    "create_sections_watcher",
    "file_signature",
    "load_sections",
    "parse_sections",
    "read_sections",
]
