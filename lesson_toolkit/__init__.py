"""Top-level package for the section-tree editor of Lesson Toolkit.

This package hosts the GUI-agnostic implementation. Front-ends (embedding
hosts, CLI) should only depend on the public API exposed here rather than
importing internal modules directly.
"""

from .core.models import Node, NodeKind, NodeType, h, is_composite  # re-export for convenience
from .core.services.section_store import OperationResult, SectionStore

__all__: list[str] = [
    "Node",
    "NodeKind",
    "NodeType",
    "OperationResult",
    "SectionStore",
    "h",
    "is_composite",
]
