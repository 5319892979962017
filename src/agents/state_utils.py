from __future__ import annotations

from collections.abc import Iterable

from agents.schemas import Speaker, Utterance


def canonical_speaker_label(speaker: str) -> str:
    speaker_norm = speaker.strip().lower()
    if speaker_norm in {"agent", "assistant"}:
        return "Agent"
    return "User"


def normalize_speaker(speaker: str) -> Speaker:
    """Map potentially messy speaker inputs to the two call roles."""

    speaker_norm = (speaker or "").strip().lower()
    if speaker_norm in {"agent", "assistant"}:
        return "agent"
    # Default: anything else came from the phone line.
    return "caller"


def format_transcript(utterances: Iterable[Utterance]) -> str:
    return "".join(
        f"{canonical_speaker_label(utt.speaker)}: {utt.text}\n" for utt in utterances
    )
