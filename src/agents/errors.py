"""Domain-specific exceptions for relay and post-call operations.

These exceptions are safe to import from API layers without pulling in network clients.
"""

from __future__ import annotations


class RelayError(Exception):
    default_detail: str = "Relay error"

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(detail or self.default_detail)
        self.detail = detail or self.default_detail


class ConfigurationError(RelayError):
    default_detail = "Required configuration is missing."


class SummarizationError(RelayError):
    default_detail = "Transcript summarization failed."


class WebhookDeliveryError(RelayError):
    default_detail = "Webhook delivery failed."
