import io
import json

from lesson_toolkit.core.services.host_channel import (
    NullHostChannel,
    RecordingHostChannel,
    StreamHostChannel,
    delete_message,
    reorder_message,
)


def test_message_payloads():
    assert reorder_message(["a", "b"]) == {"type": "commit-section-reorder", "sectionIds": ["a", "b"]}
    assert delete_message("a") == {"type": "commit-section-delete", "sectionId": "a"}


def test_stream_channel_writes_json_lines():
    stream = io.StringIO()
    channel = StreamHostChannel(stream)
    channel.post_message(reorder_message(["s1", "s2"]))
    channel.post_message(delete_message("s1"))

    lines = stream.getvalue().splitlines()
    assert [json.loads(line) for line in lines] == [
        {"type": "commit-section-reorder", "sectionIds": ["s1", "s2"]},
        {"type": "commit-section-delete", "sectionId": "s1"},
    ]


def test_recording_channel_copies_payloads():
    channel = RecordingHostChannel()
    payload = delete_message("s1")
    channel.post_message(payload)
    payload["sectionId"] = "mutated"

    assert channel.messages == [{"type": "commit-section-delete", "sectionId": "s1"}]
    channel.clear()
    assert channel.messages == []


def test_null_channel_accepts_anything():
    NullHostChannel().post_message({"type": "anything"})
