from __future__ import annotations

"""Editing services (section store, rendering, host notifications).

Services are instantiated directly; collaborators are passed in.
"""

from .host_channel import NullHostChannel, RecordingHostChannel, StreamHostChannel  # noqa: F401
from .render_service import RenderResult, SectionRenderer  # noqa: F401
from .section_store import OperationResult, SectionStore  # noqa: F401

__all__: list[str] = [
    "NullHostChannel",
    "OperationResult",
    "RecordingHostChannel",
    "RenderResult",
    "SectionRenderer",
    "SectionStore",
    "StreamHostChannel",
]
