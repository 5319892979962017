from __future__ import annotations

import pytest

from integrations.twilio_streaming import (
    CallSessionStore,
    TwilioEvent,
    build_media_frame,
    fallback_call_id,
    parse_twilio_ws_message,
)


def test_get_or_create_returns_same_session_for_call_id():
    store = CallSessionStore()
    first = store.get_or_create("CA1")
    second = store.get_or_create("CA1")

    assert first is second
    assert first.stream_sid is None
    assert first.transcript_text() == ""
    assert len(store) == 1


def test_delete_removes_session_and_ignores_unknown_ids():
    store = CallSessionStore()
    store.get_or_create("CA1")

    store.delete("CA1")
    store.delete("CA-missing")

    assert "CA1" not in store
    assert store.get("CA1") is None


def test_transcript_keeps_arrival_order_and_labels():
    session = CallSessionStore().get_or_create("CA1")
    session.append("caller", "hello")
    session.append("agent", "hi there")
    session.append("caller", "hello")

    assert session.transcript_text() == "User: hello\nAgent: hi there\nUser: hello\n"


def test_twilio_event_unknown_tags_map_to_unknown():
    assert TwilioEvent.from_message({"event": "media"}) is TwilioEvent.MEDIA
    assert TwilioEvent.from_message({"event": "start"}) is TwilioEvent.START
    assert TwilioEvent.from_message({"event": "something-new"}) is TwilioEvent.UNKNOWN
    assert TwilioEvent.from_message({}) is TwilioEvent.UNKNOWN


def test_parse_rejects_non_object_frames():
    with pytest.raises(ValueError):
        parse_twilio_ws_message("[1, 2, 3]")
    with pytest.raises(ValueError):
        parse_twilio_ws_message("{not json")


def test_build_media_frame_shape():
    assert build_media_frame("MZ1", "AAAA") == {
        "event": "media",
        "streamSid": "MZ1",
        "media": {"payload": "AAAA"},
    }


def test_fallback_call_id_has_session_prefix():
    call_id = fallback_call_id()
    assert call_id.startswith("session_")
    assert call_id.removeprefix("session_").isdigit()
