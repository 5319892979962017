from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from agents.errors import ConfigurationError

PROMPT_DIR = Path(__file__).resolve().parent


@lru_cache(maxsize=None)
def load_prompt(filename: str) -> str:
    """Load a prompt text file shipped with the relay, without trailing whitespace."""

    path = PROMPT_DIR / filename
    if not path.is_file():
        raise ConfigurationError(f"Prompt file not found: {filename}")
    return path.read_text(encoding="utf-8").strip()
