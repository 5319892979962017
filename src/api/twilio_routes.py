"""Twilio Voice integration.

This module provides:
- Voice webhook (TwiML) that greets the caller and opens a bidirectional Media Stream.
- The Media Stream websocket, relayed to the OpenAI Realtime API.
"""

from __future__ import annotations

import logging
from xml.sax.saxutils import escape

from fastapi import APIRouter, Depends, Request, Response, WebSocket

from agents.dispatcher import TranscriptDispatcher
from api.dependencies import get_dispatcher, get_session_store, get_upstream_factory
from config.settings import get_settings
from integrations.twilio_streaming import CallSessionStore, fallback_call_id
from telephony.media_relay import MediaRelay, UpstreamFactory

LOGGER = logging.getLogger(__name__)

router = APIRouter(tags=["twilio"])


def _twiml_response(xml: str) -> Response:
    # Twilio expects application/xml
    return Response(content=xml, media_type="application/xml")


def _to_ws_url(http_url: str) -> str:
    if http_url.startswith("https://"):
        return "wss://" + http_url.removeprefix("https://")
    if http_url.startswith("http://"):
        return "ws://" + http_url.removeprefix("http://")
    return http_url


def _stream_url(request: Request) -> str:
    settings = get_settings()
    if settings.public_base_url:
        return _to_ws_url(f"{settings.public_base_url.rstrip('/')}/media-stream")
    # Twilio only connects to secure websockets.
    return f"wss://{request.headers.get('host', request.url.netloc)}/media-stream"


def _twiml_say_and_stream(*, say_text: str, stream_url: str) -> str:
    say = escape(say_text)
    stream = escape(stream_url, {'"': "&quot;"})
    return (
        "<?xml version=\"1.0\" encoding=\"UTF-8\"?>"
        "<Response>"
        f"<Say>{say}</Say>"
        "<Connect>"
        f"<Stream url=\"{stream}\" />"
        "</Connect>"
        "</Response>"
    )


@router.api_route("/incoming-call", methods=["GET", "POST"])
async def incoming_call(request: Request) -> Response:
    LOGGER.info("Incoming call")
    settings = get_settings()
    return _twiml_response(
        _twiml_say_and_stream(say_text=settings.greeting, stream_url=_stream_url(request))
    )


@router.websocket("/media-stream")
async def media_stream(
    websocket: WebSocket,
    store: CallSessionStore = Depends(get_session_store),
    upstream_factory: UpstreamFactory = Depends(get_upstream_factory),
    dispatcher: TranscriptDispatcher = Depends(get_dispatcher),
) -> None:
    await websocket.accept()
    call_id = (
        websocket.headers.get("x-twilio-call-sid")
        or websocket.query_params.get("callSid")
        or fallback_call_id()
    )
    LOGGER.info("Media stream connected (call=%s)", call_id)

    relay = MediaRelay(
        websocket,
        call_id,
        store=store,
        upstream_factory=upstream_factory,
        dispatcher=dispatcher,
        webhook_url=get_settings().webhook_url,
    )
    await relay.run()
