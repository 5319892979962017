from __future__ import annotations

import json

from fastapi.testclient import TestClient

from conftest import FakeDispatcher


class EchoUpstream:
    """Open upstream that answers each audio chunk with one outbound audio frame."""

    def __init__(self, session, audio_sink) -> None:
        self.session = session
        self.audio_sink = audio_sink
        self.is_open = True

    async def run(self) -> None:
        return None

    async def append_audio(self, payload_b64: str) -> None:
        await self.audio_sink(
            {"event": "media", "streamSid": self.session.stream_sid, "media": {"payload": payload_b64}}
        )

    async def close(self) -> None:
        self.is_open = False


def test_service_status(client):
    resp = client.get("/")
    assert resp.status_code == 200
    assert resp.json() == {"message": "Media Stream Server is running!"}


def test_incoming_call_returns_stream_twiml(client):
    resp = client.post("/incoming-call", headers={"host": "relay.example.com"})

    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("application/xml")
    assert "<Say>Hi, you have called to BoSar Agency." in resp.text
    assert '<Stream url="wss://relay.example.com/media-stream" />' in resp.text


def test_incoming_call_accepts_get(client):
    resp = client.get("/incoming-call")
    assert resp.status_code == 200
    assert "<Connect>" in resp.text


def test_media_stream_relays_audio_with_stream_sid(app):
    import api.dependencies as deps

    created: list[EchoUpstream] = []

    def factory(session, sink):
        upstream = EchoUpstream(session, sink)
        created.append(upstream)
        return upstream

    app.dependency_overrides[deps.get_upstream_factory] = lambda: factory
    app.dependency_overrides[deps.get_dispatcher] = lambda: FakeDispatcher()

    try:
        with TestClient(app) as client:
            with client.websocket_connect("/media-stream", headers={"x-twilio-call-sid": "CA42"}) as ws:
                ws.send_text(json.dumps({"event": "start", "start": {"streamSid": "MZ42"}}))
                ws.send_text(json.dumps({"event": "media", "media": {"payload": "AAAA"}}))
                frame = ws.receive_json()
    finally:
        app.dependency_overrides.clear()

    assert frame == {"event": "media", "streamSid": "MZ42", "media": {"payload": "AAAA"}}
    assert created[0].session.call_id == "CA42"
