from __future__ import annotations

import asyncio
import os
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = REPO_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))


class FakeUpstream:
    """Stands in for the OpenAI Realtime session; records forwarded audio."""

    def __init__(self, session, audio_sink, *, is_open: bool = True) -> None:
        self.session = session
        self.audio_sink = audio_sink
        self.is_open = is_open
        self.appended: list[str] = []
        self.closed = False
        self.ran = False

    async def run(self) -> None:
        self.ran = True
        # Mirror a live socket: stay connected until the relay cancels us.
        await asyncio.Event().wait()

    async def append_audio(self, payload_b64: str) -> None:
        self.appended.append(payload_b64)

    async def close(self) -> None:
        self.closed = True
        self.is_open = False


class FakeDispatcher:
    def __init__(self) -> None:
        self.calls: list[tuple[str, str | None, str | None]] = []

    async def dispatch(self, transcript: str, webhook_url: str | None, call_id: str | None = None):
        self.calls.append((transcript, webhook_url, call_id))
        return None


@pytest.fixture(scope="session")
def app():
    # Must be set before importing modules that read settings.
    os.environ["OPENAI_API_KEY"] = "test-key"
    os.environ["WEBHOOK_URL"] = "https://hooks.example.com/calls"
    os.environ.pop("PUBLIC_BASE_URL", None)

    import importlib

    # Ensure clean import with the test settings.
    for module_name in [
        "config.settings",
        "api.dependencies",
        "api.routes",
        "api.twilio_routes",
        "main",
    ]:
        sys.modules.pop(module_name, None)

    main = importlib.import_module("main")
    return main.app


@pytest.fixture()
def client(app):
    import api.dependencies as deps

    app.dependency_overrides[deps.get_dispatcher] = lambda: FakeDispatcher()

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
