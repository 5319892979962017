from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Callable
from typing import Any, Protocol

from fastapi import WebSocket, WebSocketDisconnect

from agents.dispatcher import TranscriptDispatcher
from integrations.openai_realtime import AudioSink
from integrations.twilio_streaming import (
    CallSession,
    CallSessionStore,
    TwilioEvent,
    parse_twilio_ws_message,
)

LOGGER = logging.getLogger(__name__)

# Strong references keep detached dispatch tasks alive until they finish.
_BACKGROUND_TASKS: set[asyncio.Task] = set()


class UpstreamSession(Protocol):
    @property
    def is_open(self) -> bool: ...

    async def run(self) -> None: ...

    async def append_audio(self, payload_b64: str) -> None: ...

    async def close(self) -> None: ...


UpstreamFactory = Callable[[CallSession, AudioSink], UpstreamSession]


class MediaRelay:
    """Binds one Twilio media stream to one upstream realtime session.

    Audio frames flow both ways through the relay; the upstream session writes
    transcript lines into the shared ``CallSession``. When Twilio hangs up, the
    transcript is handed to the dispatcher in the background and the session is
    removed from the store.
    """

    def __init__(
        self,
        websocket: WebSocket,
        call_id: str,
        *,
        store: CallSessionStore,
        upstream_factory: UpstreamFactory,
        dispatcher: TranscriptDispatcher,
        webhook_url: str | None,
    ) -> None:
        self._websocket = websocket
        self._call_id = call_id
        self._store = store
        self._dispatcher = dispatcher
        self._webhook_url = webhook_url
        self.session = store.get_or_create(call_id)
        self.upstream = upstream_factory(self.session, self.send_to_telephony)
        self.dispatch_task: asyncio.Task | None = None

    async def run(self) -> None:
        upstream_task = asyncio.create_task(self.upstream.run())

        try:
            while True:
                message = await self._websocket.receive()
                if message["type"] == "websocket.disconnect":
                    break
                text = message.get("text")
                if text is None:
                    LOGGER.warning("Ignoring binary frame from Twilio (call=%s)", self._call_id)
                    continue
                await self.handle_telephony_message(text)
        except WebSocketDisconnect:
            pass
        finally:
            LOGGER.info("Client disconnected (%s)", self._call_id)
            try:
                await self._close_upstream(upstream_task)
            finally:
                self._finish_call()

    async def handle_telephony_message(self, message: str) -> None:
        try:
            data = parse_twilio_ws_message(message)
            await self._handle_frame(data)
        except (ValueError, KeyError, TypeError, AttributeError) as exc:
            LOGGER.error("Error parsing Twilio message: %s (message=%r)", exc, message)

    async def _handle_frame(self, data: dict[str, Any]) -> None:
        event = TwilioEvent.from_message(data)
        if event is TwilioEvent.MEDIA:
            if self.upstream.is_open:
                await self.upstream.append_audio(data["media"]["payload"])
        elif event is TwilioEvent.START:
            self.session.stream_sid = data["start"]["streamSid"]
            LOGGER.info("Incoming stream has started %s (call=%s)", self.session.stream_sid, self._call_id)
        else:
            LOGGER.info("Received non-media event: %s", data.get("event"))

    async def send_to_telephony(self, frame: dict[str, Any]) -> None:
        try:
            await self._websocket.send_text(json.dumps(frame))
        except (WebSocketDisconnect, RuntimeError, OSError) as exc:
            LOGGER.warning("Dropping outbound audio for call %s: %s", self._call_id, exc)

    async def _close_upstream(self, upstream_task: asyncio.Task) -> None:
        if self.upstream.is_open:
            await self.upstream.close()
        upstream_task.cancel()
        try:
            await upstream_task
        except asyncio.CancelledError:
            pass
        except Exception:
            LOGGER.exception("Upstream session failed (call=%s)", self._call_id)

    def _finish_call(self) -> None:
        transcript = self.session.transcript_text()
        LOGGER.info("Full transcript (%s):\n%s", self._call_id, transcript)

        self.dispatch_task = asyncio.create_task(
            self._dispatcher.dispatch(transcript, self._webhook_url, self._call_id)
        )
        self.dispatch_task.add_done_callback(self._log_dispatch_failure)
        _BACKGROUND_TASKS.add(self.dispatch_task)
        self.dispatch_task.add_done_callback(_BACKGROUND_TASKS.discard)

        self._store.delete(self._call_id)

    def _log_dispatch_failure(self, task: asyncio.Task) -> None:
        if task.cancelled():
            LOGGER.warning("Transcript dispatch cancelled for call %s", self._call_id)
            return
        exc = task.exception()
        if exc is not None:
            LOGGER.error("Transcript dispatch failed for call %s", self._call_id, exc_info=exc)

