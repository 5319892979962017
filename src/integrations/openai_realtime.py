"""OpenAI Realtime API session for a single phone call.

One websocket per call: Twilio audio goes up as ``input_audio_buffer.append``
messages, generated audio comes back as ``response.audio.delta`` events and is
handed to the telephony side through ``audio_sink``. Recognized caller speech
and completed agent replies are appended to the call transcript.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any
from urllib.parse import urlencode

import websockets
from websockets.exceptions import ConnectionClosed, WebSocketException
from websockets.protocol import State

from config.settings import Settings
from integrations.twilio_streaming import CallSession, build_media_frame
from prompts.loader import load_prompt

LOGGER = logging.getLogger(__name__)

SYSTEM_MESSAGE = load_prompt("system_message.txt")

AGENT_MESSAGE_NOT_FOUND = "Agent message not found"

AudioSink = Callable[[dict[str, Any]], Awaitable[None]]


class RealtimeEventType(str, Enum):
    TRANSCRIPTION_COMPLETED = "conversation.item.input_audio_transcription.completed"
    RESPONSE_DONE = "response.done"
    AUDIO_DELTA = "response.audio.delta"
    SESSION_UPDATED = "session.updated"
    ERROR = "error"
    RESPONSE_CONTENT_DONE = "response.content.done"
    RATE_LIMITS_UPDATED = "rate_limits.updated"
    BUFFER_COMMITTED = "input_audio_buffer.committed"
    SPEECH_STARTED = "input_audio_buffer.speech_started"
    SPEECH_STOPPED = "input_audio_buffer.speech_stopped"
    SESSION_CREATED = "session.created"
    TEXT_DONE = "response.text.done"
    UNKNOWN = "unknown"

    @classmethod
    def from_event(cls, event: dict[str, Any]) -> RealtimeEventType:
        try:
            return cls(str(event.get("type") or ""))
        except ValueError:
            return cls.UNKNOWN


LOG_EVENT_TYPES = frozenset(
    {
        RealtimeEventType.RESPONSE_CONTENT_DONE,
        RealtimeEventType.RATE_LIMITS_UPDATED,
        RealtimeEventType.RESPONSE_DONE,
        RealtimeEventType.BUFFER_COMMITTED,
        RealtimeEventType.SPEECH_STOPPED,
        RealtimeEventType.SPEECH_STARTED,
        RealtimeEventType.SESSION_CREATED,
        RealtimeEventType.TEXT_DONE,
        RealtimeEventType.TRANSCRIPTION_COMPLETED,
    }
)


def extract_agent_message(event: dict[str, Any]) -> str:
    """Return the first transcript in the response output, or a placeholder."""

    output = (event.get("response") or {}).get("output") or []
    if not output:
        return AGENT_MESSAGE_NOT_FOUND
    for content in output[0].get("content") or []:
        transcript = content.get("transcript")
        if transcript:
            return transcript
    return AGENT_MESSAGE_NOT_FOUND


class RealtimeSessionClient:
    """Upstream connection to the OpenAI Realtime API for one call."""

    def __init__(self, settings: Settings, session: CallSession, audio_sink: AudioSink) -> None:
        self._settings = settings
        self._session = session
        self._audio_sink = audio_sink
        self._ws: websockets.ClientConnection | None = None

    @property
    def is_open(self) -> bool:
        return self._ws is not None and self._ws.state is State.OPEN

    def _url(self) -> str:
        return f"{self._settings.realtime_url}?{urlencode({'model': self._settings.realtime_model})}"

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._settings.openai_api_key}",
            "OpenAI-Beta": "realtime=v1",
        }

    def session_update(self) -> dict[str, Any]:
        return {
            "type": "session.update",
            "session": {
                "turn_detection": {"type": "server_vad"},
                "input_audio_format": "g711_ulaw",
                "output_audio_format": "g711_ulaw",
                "voice": self._settings.realtime_voice,
                "instructions": SYSTEM_MESSAGE,
                "modalities": ["text", "audio"],
                "temperature": self._settings.realtime_temperature,
                "input_audio_transcription": {
                    "model": self._settings.realtime_transcription_model,
                },
            },
        }

    async def connect(self) -> None:
        self._ws = await websockets.connect(self._url(), additional_headers=self._headers())
        LOGGER.info("Connected to the OpenAI Realtime API (call=%s)", self._session.call_id)

    async def send_session_update(self) -> None:
        message = json.dumps(self.session_update())
        LOGGER.debug("Sending session update: %s", message)
        await self._send(message)

    async def append_audio(self, payload_b64: str) -> None:
        await self._send(json.dumps({"type": "input_audio_buffer.append", "audio": payload_b64}))

    async def _send(self, message: str) -> None:
        if self._ws is None:
            raise RuntimeError("Realtime session is not connected")
        await self._ws.send(message)

    async def close(self) -> None:
        if self.is_open:
            await self._ws.close()

    async def run(self) -> None:
        """Connect, configure the session and consume events until the socket closes.

        Connection failures and drops are logged; there is no reconnect, the call
        simply continues without AI audio.
        """

        try:
            await self.connect()
            await asyncio.sleep(self._settings.session_update_delay_seconds)
            await self.send_session_update()
            async for message in self._ws:
                await self.handle_message(message)
        except ConnectionClosed as exc:
            LOGGER.warning(
                "Disconnected from the OpenAI Realtime API (call=%s): %s",
                self._session.call_id,
                exc,
            )
        except (OSError, asyncio.TimeoutError, WebSocketException) as exc:
            LOGGER.error(
                "Error in the OpenAI Realtime websocket (call=%s): %s",
                self._session.call_id,
                exc,
            )
        else:
            LOGGER.info("Disconnected from the OpenAI Realtime API (call=%s)", self._session.call_id)

    async def handle_message(self, raw: str | bytes) -> None:
        try:
            event = json.loads(raw)
            if not isinstance(event, dict):
                raise ValueError("Realtime event is not a JSON object")
            await self.handle_event(event)
        except (ValueError, KeyError, TypeError, AttributeError) as exc:
            LOGGER.error("Error processing OpenAI message: %s (raw=%r)", exc, raw)

    async def handle_event(self, event: dict[str, Any]) -> None:
        event_type = RealtimeEventType.from_event(event)
        call_id = self._session.call_id

        if event_type in LOG_EVENT_TYPES:
            LOGGER.debug("Received event %s: %s", event_type.value, event)

        if event_type is RealtimeEventType.TRANSCRIPTION_COMPLETED:
            transcript = event["transcript"]
            if not isinstance(transcript, str):
                raise TypeError(f"Transcription transcript is not a string: {transcript!r}")
            text = transcript.strip()
            self._session.append("caller", text)
            LOGGER.info("User (%s): %s", call_id, text)
        elif event_type is RealtimeEventType.RESPONSE_DONE:
            text = extract_agent_message(event)
            self._session.append("agent", text)
            LOGGER.info("Agent (%s): %s", call_id, text)
        elif event_type is RealtimeEventType.AUDIO_DELTA:
            delta = event.get("delta")
            if delta:
                await self._audio_sink(build_media_frame(self._session.stream_sid, delta))
        elif event_type is RealtimeEventType.SESSION_UPDATED:
            LOGGER.info("Session updated successfully (call=%s)", call_id)
        elif event_type is RealtimeEventType.ERROR:
            LOGGER.error("OpenAI Realtime error (call=%s): %s", call_id, event.get("error"))
        elif event_type is RealtimeEventType.UNKNOWN:
            LOGGER.debug("Ignoring realtime event %r (call=%s)", event.get("type"), call_id)
