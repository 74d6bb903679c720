from __future__ import annotations

"""Outbound notification channel towards the host frame.

The host is told about structural outcomes (reorder, delete) with
fire-and-forget messages. No acknowledgement is awaited and nothing is
retried; channel failures are logged and dropped by the caller.

Payloads:
- ``{"type": "commit-section-reorder", "sectionIds": [str, ...]}``
- ``{"type": "commit-section-delete", "sectionId": str}``
"""

import json
import logging
import sys
from typing import Any, Dict, List, Optional, Protocol, TextIO

__all__ = [
    "DELETE_MESSAGE",
    "HostChannel",
    "NullHostChannel",
    "RecordingHostChannel",
    "REORDER_MESSAGE",
    "StreamHostChannel",
    "delete_message",
    "reorder_message",
]

logger = logging.getLogger(__name__)

REORDER_MESSAGE = "commit-section-reorder"
DELETE_MESSAGE = "commit-section-delete"


def reorder_message(section_ids: List[str]) -> Dict[str, Any]:
    return {"type": REORDER_MESSAGE, "sectionIds": list(section_ids)}


def delete_message(section_id: str) -> Dict[str, Any]:
    return {"type": DELETE_MESSAGE, "sectionId": section_id}


class HostChannel(Protocol):
    """One-way message sink. Implementations must not block."""

    def post_message(self, payload: Dict[str, Any]) -> None:
        ...


class NullHostChannel:
    """Channel used when the editor is not embedded in a host."""

    def post_message(self, payload: Dict[str, Any]) -> None:
        logger.debug("No host attached, dropping message type=%s", payload.get("type"))


class RecordingHostChannel:
    """Keeps posted messages in memory, in order."""

    def __init__(self) -> None:
        self.messages: List[Dict[str, Any]] = []

    def post_message(self, payload: Dict[str, Any]) -> None:
        self.messages.append(dict(payload))

    def clear(self) -> None:
        self.messages.clear()


class StreamHostChannel:
    """Writes one JSON object per line to a text stream (stdout by default).

    Suitable when the host is a parent process reading our standard output.
    """

    def __init__(self, stream: Optional[TextIO] = None) -> None:
        self._stream = stream if stream is not None else sys.stdout

    def post_message(self, payload: Dict[str, Any]) -> None:
        self._stream.write(json.dumps(payload, ensure_ascii=False) + "\n")
        self._stream.flush()
