from __future__ import annotations

"""Lesson source loader and file watcher.

Reads a lesson XML file into a list of top-level :class:`Node` trees and,
in development mode, watches the file so edits made on disk replace the
whole section list while the editor is running.

Source format::

    <lesson>
      <FullWidthLayout key="intro" maxWidth="xl">
        <Section id="intro">
          <EditableText as="h2">Welcome</EditableText>
        </Section>
      </FullWidthLayout>
    </lesson>

Each child of the root element is one top-level section. Tags resolve to
node types through a :class:`NodeTypeRegistry`; attributes become props,
except ``key`` which becomes the node key. Text is whitespace-normalized and
whitespace-only text is dropped.
"""

import asyncio
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, List, Mapping, Optional, Tuple, Union

from lxml import etree as ET

from lesson_toolkit.config import ConfigManager
from lesson_toolkit.core.exceptions import SectionLoadError
from lesson_toolkit.core.models import DEFAULT_REGISTRY, Child, Node, NodeTypeRegistry

logger = logging.getLogger(__name__)

__all__ = [
    "LoaderConfig",
    "SectionsWatcher",
    "create_sections_watcher",
    "file_signature",
    "load_sections",
    "parse_sections",
    "read_sections",
]

SectionsCallback = Callable[[List[Node], int], None]
Signature = Optional[Tuple[int, int]]

# Marker for "stat the file when the watcher is built".
_STAT_NOW: Any = object()


@dataclass(frozen=True)
class LoaderConfig:
    """Where the lesson comes from and how it is watched."""

    path: Path
    watch: bool = False
    poll_interval: float = 0.5

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "LoaderConfig":
        return cls(
            path=Path(str(data.get("path", "lesson.xml"))),
            watch=bool(data.get("watch", False)),
            poll_interval=float(data.get("poll_interval", 0.5)),
        )

    @classmethod
    def from_settings(cls, **overrides: Any) -> "LoaderConfig":
        """Build from the ``loader`` config section, applying non-None overrides."""
        data = dict(ConfigManager().get_loader_config())
        data.update({k: v for k, v in overrides.items() if v is not None})
        return cls.from_mapping(data)


def _normalize_text(text: Optional[str]) -> Optional[str]:
    if not text:
        return None
    collapsed = " ".join(text.split())
    return collapsed or None


def _element_to_node(element: Any, registry: NodeTypeRegistry) -> Node:
    tag = ET.QName(element).localname
    props = {}
    key = None
    for name, value in element.attrib.items():
        local = ET.QName(name).localname
        if local == "key":
            key = value
        else:
            props[local] = value

    children: List[Child] = []
    text = _normalize_text(element.text)
    if text:
        children.append(text)
    for child in element:
        if isinstance(child.tag, str):
            children.append(_element_to_node(child, registry))
        tail = _normalize_text(child.tail)
        if tail:
            children.append(tail)
    return Node(registry.resolve(tag), props, tuple(children), key)


def parse_sections(
    source: Union[str, bytes],
    registry: NodeTypeRegistry = DEFAULT_REGISTRY,
) -> List[Node]:
    """Parse lesson XML into its top-level nodes."""
    if isinstance(source, str):
        source = source.encode("utf-8")
    parser = ET.XMLParser(remove_comments=True, remove_pis=True, resolve_entities=False)
    try:
        root = ET.fromstring(source, parser=parser)
    except ET.XMLSyntaxError as exc:
        raise SectionLoadError(f"Invalid lesson XML: {exc}", cause=exc) from exc
    return [_element_to_node(child, registry) for child in root if isinstance(child.tag, str)]


def read_sections(path: Union[str, Path], registry: NodeTypeRegistry = DEFAULT_REGISTRY) -> List[Node]:
    """Read and parse the lesson file at *path* (blocking)."""
    path = Path(path)
    try:
        data = path.read_bytes()
    except OSError as exc:
        raise SectionLoadError(f"Cannot read lesson file: {exc}", source=path, cause=exc) from exc
    try:
        sections = parse_sections(data, registry)
    except SectionLoadError as exc:
        raise SectionLoadError(str(exc), source=path, cause=exc.cause) from exc
    logger.info("Loaded %d sections from %s", len(sections), path)
    return sections


async def load_sections(config: LoaderConfig, registry: NodeTypeRegistry = DEFAULT_REGISTRY) -> List[Node]:
    """Load the lesson described by *config* without blocking the event loop."""
    return await asyncio.to_thread(read_sections, config.path, registry)


def file_signature(path: Union[str, Path]) -> Signature:
    """Return the (mtime_ns, size) pair of *path*, or None when it cannot be read."""
    try:
        st = os.stat(path)
    except OSError:
        return None
    return st.st_mtime_ns, st.st_size


class SectionsWatcher:
    """Poll the lesson file and push full replacement lists on change.

    Each push carries a sequence number that increases with every reload
    started, so consumers can discard results older than one already applied.
    Reload failures are logged and the previous list stays in place.

    *baseline* is the signature the current section list was loaded from.
    Take it with :func:`file_signature` before the initial load so a change
    saved while loading is still pushed; by default the file is stat-ed
    when the watcher is built.
    """

    def __init__(
        self,
        callback: SectionsCallback,
        config: LoaderConfig,
        registry: NodeTypeRegistry = DEFAULT_REGISTRY,
        baseline: Signature = _STAT_NOW,
    ) -> None:
        self._callback = callback
        self._config = config
        self._registry = registry
        self._sequence = 0
        self._task: Optional[asyncio.Task] = None
        self._signature: Signature = file_signature(config.path) if baseline is _STAT_NOW else baseline

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start polling on the running event loop."""
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())
        logger.info("Watching %s every %.2fs", self._config.path, self._config.poll_interval)

    def close(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None
            logger.info("Stopped watching %s", self._config.path)

    async def check_once(self) -> bool:
        """Reload if the file changed since the last check; return True if pushed."""
        signature = file_signature(self._config.path)
        if signature is None or signature == self._signature:
            return False
        self._signature = signature
        self._sequence += 1
        sequence = self._sequence
        try:
            sections = await load_sections(self._config, self._registry)
        except SectionLoadError as exc:
            logger.warning("Reload skipped: %s", exc)
            return False
        logger.info("Lesson changed on disk, pushing %d sections (seq=%d)", len(sections), sequence)
        self._callback(sections, sequence)
        return True

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._config.poll_interval)
            await self.check_once()


def create_sections_watcher(
    callback: SectionsCallback,
    config: LoaderConfig,
    baseline: Signature = _STAT_NOW,
    registry: NodeTypeRegistry = DEFAULT_REGISTRY,
) -> Callable[[], None]:
    """Start a :class:`SectionsWatcher` and return its teardown callable."""
    watcher = SectionsWatcher(callback, config, registry, baseline=baseline)
    watcher.start()
    return watcher.close
