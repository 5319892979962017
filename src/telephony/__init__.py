"""Telephony side of a call.

Each Twilio Media Stream connection gets one ``MediaRelay`` that pairs it with an
OpenAI Realtime session:
PSTN -> Twilio -> Media Stream (WS) -> relay -> OpenAI Realtime (WS).
"""
