"""Test configuration and shared fixtures for Lesson Toolkit tests.

Fixtures build small section trees shaped like real lessons: top-level
layout wrappers holding ``Section`` nodes that hold editable content.
"""

import logging
import sys
from pathlib import Path

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from lesson_toolkit.config import ConfigManager
from lesson_toolkit.core.models import h
from lesson_toolkit.core.models.edit_journal import EditJournal
from lesson_toolkit.core.services.host_channel import RecordingHostChannel
from lesson_toolkit.core.services.section_store import SectionStore

# Configure test logging
logging.basicConfig(
    level=logging.DEBUG,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)


EDITOR_CONFIG = {
    "wrapper_component": "FullWidthLayout",
    "wrapper_props": {"maxWidth": "xl"},
    "wrapper_key_prefix": "layout-",
    "section_id_prefix": "section-",
    "placeholder": "Type '/' for commands",
    "text_tag": "p",
    "text_class": "lead",
    "unknown_section_id": "unknown",
}


@pytest.fixture(autouse=True)
def isolated_config(tmp_path):
    """Load packaged configuration only, never the developer's overrides."""
    ConfigManager.reset()
    manager = ConfigManager(user_config_dir=tmp_path / "user-config")
    yield manager
    ConfigManager.reset()


@pytest.fixture
def editor_config():
    return dict(EDITOR_CONFIG)


def make_wrapped_section(section_id, *content, key=None):
    """Build ``FullWidthLayout > Section#id > content`` like the lesson files do."""
    return h(
        "FullWidthLayout",
        {"maxWidth": "xl"},
        h("Section", {"id": section_id}, *content),
        key=key if key is not None else section_id,
    )


@pytest.fixture
def two_sections():
    s1 = make_wrapped_section(
        "s1",
        h("SectionInput", {"sectionId": "s1", "placeholder": "Type here"}),
    )
    s2 = make_wrapped_section(
        "s2",
        h("EditableText", {"as": "p"}, "Second section text"),
    )
    return [s1, s2]


@pytest.fixture
def host():
    return RecordingHostChannel()


@pytest.fixture
def journal():
    return EditJournal()


@pytest.fixture
def clock():
    """Deterministic clock returning 1700000000.5 seconds."""
    return lambda: 1700000000.5


@pytest.fixture
def store(two_sections, host, journal, editor_config, clock):
    return SectionStore(two_sections, host=host, journal=journal, editor_config=editor_config, clock=clock)


@pytest.fixture
def wrapped_section():
    """Factory fixture around :func:`make_wrapped_section`."""
    return make_wrapped_section
