"""Shared FastAPI dependencies.

Separated to avoid circular imports between route modules.
"""

from __future__ import annotations

from functools import lru_cache
from typing import TYPE_CHECKING

from config.settings import get_settings
from integrations.twilio_streaming import CallSessionStore

if TYPE_CHECKING:  # pragma: no cover
    from agents.dispatcher import TranscriptDispatcher
    from telephony.media_relay import UpstreamFactory


@lru_cache(maxsize=1)
def get_session_store() -> CallSessionStore:
    return CallSessionStore()


@lru_cache(maxsize=1)
def _dispatcher_factory() -> TranscriptDispatcher:
    # Lazy import so route tests never construct an OpenAI client.
    from agents.dispatcher import TranscriptDispatcher
    from integrations.webhook import WebhookClient
    from llm.openai_client import OpenAIClient

    return TranscriptDispatcher(OpenAIClient(), WebhookClient())


def get_dispatcher() -> TranscriptDispatcher:
    return _dispatcher_factory()


def get_upstream_factory() -> UpstreamFactory:
    from integrations.openai_realtime import RealtimeSessionClient

    settings = get_settings()

    def factory(session, audio_sink):
        return RealtimeSessionClient(settings, session, audio_sink)

    return factory
