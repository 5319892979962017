"""Post-call summarization of the transcript and webhook delivery."""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from datetime import datetime

from openai import OpenAIError
from pydantic import ValidationError

from agents.errors import SummarizationError, WebhookDeliveryError
from agents.schemas import CUSTOMER_DETAILS_JSON_SCHEMA, CustomerDetails
from integrations.webhook import WebhookClient
from llm.base import BaseLLMClient
from prompts.loader import load_prompt

LOGGER = logging.getLogger(__name__)

EXTRACTION_SYSTEM_PROMPT = load_prompt("extraction_system.txt")

CUSTOMER_DETAILS_RESPONSE_FORMAT = {
    "type": "json_schema",
    "json_schema": {
        "name": "customer_details_extraction",
        "schema": CUSTOMER_DETAILS_JSON_SCHEMA,
    },
}


class TranscriptDispatcher:
    """Extracts customer details from a finished call and forwards them to a webhook.

    Every failure is logged and ends the dispatch for that call; nothing is retried
    and nothing is raised to the caller.
    """

    def __init__(
        self,
        llm_client: BaseLLMClient,
        webhook: WebhookClient,
        *,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._llm = llm_client
        self._webhook = webhook
        self._clock = clock

    async def dispatch(
        self,
        transcript: str,
        webhook_url: str | None,
        call_id: str | None = None,
    ) -> CustomerDetails | None:
        LOGGER.info("Starting transcript processing for call %s", call_id)
        if not webhook_url:
            LOGGER.warning("No webhook URL configured; skipping transcript dispatch for call %s", call_id)
            return None
        if not transcript.strip():
            LOGGER.info("Transcript for call %s is empty; nothing to dispatch", call_id)
            return None

        try:
            raw_content = await self._summarize(transcript)
        except SummarizationError as exc:
            LOGGER.error("Transcript summarization failed for call %s: %s", call_id, exc)
            return None

        details = self._parse_details(raw_content)
        if details is None:
            return None

        payload = details.model_dump()
        LOGGER.info("Sending data to webhook: %s", json.dumps(payload))
        try:
            await self._webhook.send(webhook_url, payload)
        except WebhookDeliveryError as exc:
            LOGGER.error("Webhook delivery failed for call %s: %s", call_id, exc)
            return details

        LOGGER.info("Extracted and sent customer details for call %s", call_id)
        return details

    def _system_prompt(self) -> str:
        today = self._clock().strftime("%A, %d %B %Y, %H:%M")
        return f"{EXTRACTION_SYSTEM_PROMPT} Today's date is {today}."

    async def _summarize(self, transcript: str) -> str:
        messages = [
            {"role": "system", "content": self._system_prompt()},
            {"role": "user", "content": transcript},
        ]
        try:
            content = await self._llm.chat(
                messages,
                temperature=0.0,
                response_format=CUSTOMER_DETAILS_RESPONSE_FORMAT,
            )
        except OpenAIError as exc:
            raise SummarizationError(str(exc)) from exc
        if not content:
            raise SummarizationError("Completion returned no content")
        return content

    def _parse_details(self, raw_content: str) -> CustomerDetails | None:
        try:
            return CustomerDetails.model_validate_json(raw_content)
        except ValidationError as exc:
            LOGGER.error("Unexpected JSON structure in completion response: %s (raw=%s)", exc, raw_content)
            return None
