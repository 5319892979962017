from __future__ import annotations

import json
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from agents.schemas import Utterance
from agents.state_utils import format_transcript, normalize_speaker


class TwilioEvent(str, Enum):
    """Event tags sent by Twilio Media Streams."""

    CONNECTED = "connected"
    START = "start"
    MEDIA = "media"
    MARK = "mark"
    STOP = "stop"
    DTMF = "dtmf"
    UNKNOWN = "unknown"

    @classmethod
    def from_message(cls, message: dict[str, Any]) -> TwilioEvent:
        try:
            return cls(str(message.get("event") or ""))
        except ValueError:
            return cls.UNKNOWN


@dataclass
class CallSession:
    call_id: str
    stream_sid: str | None = None
    utterances: list[Utterance] = field(default_factory=list)

    def append(self, speaker: str, text: str) -> Utterance:
        utterance = Utterance(speaker=normalize_speaker(speaker), text=text)
        self.utterances.append(utterance)
        return utterance

    def transcript_text(self) -> str:
        return format_transcript(self.utterances)


class CallSessionStore:
    """In-memory store for live calls, keyed by call id.

    Note: This is a single-process store. Every call id is only touched by the
    connection handler that owns it, so no locking is done. Two connections
    claiming the same call id end up sharing one session.
    """

    def __init__(self) -> None:
        self._sessions: dict[str, CallSession] = {}

    def get_or_create(self, call_id: str) -> CallSession:
        session = self._sessions.get(call_id)
        if session is None:
            session = CallSession(call_id=call_id)
            self._sessions[call_id] = session
        return session

    def get(self, call_id: str) -> CallSession | None:
        return self._sessions.get(call_id)

    def delete(self, call_id: str) -> None:
        self._sessions.pop(call_id, None)

    def __contains__(self, call_id: object) -> bool:
        return call_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)


def fallback_call_id() -> str:
    return f"session_{int(time.time() * 1000)}"


def parse_twilio_ws_message(text: str) -> dict[str, Any]:
    message = json.loads(text)
    if not isinstance(message, dict):
        raise ValueError("Twilio frame is not a JSON object")
    return message


def build_media_frame(stream_sid: str | None, payload_b64: str) -> dict[str, Any]:
    return {
        "event": "media",
        "streamSid": stream_sid,
        "media": {"payload": payload_b64},
    }
