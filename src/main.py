"""Entry point for the Twilio to OpenAI Realtime call relay service."""

from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from agents.errors import ConfigurationError
from api.routes import router as api_router
from api.twilio_routes import router as twilio_router
from config.settings import Settings, get_settings

LOGGER = logging.getLogger(__name__)


def require_openai_api_key(settings: Settings) -> None:
    if not settings.openai_api_key:
        raise ConfigurationError("Missing OpenAI API key. Please set OPENAI_API_KEY in the .env file.")


@asynccontextmanager
async def lifespan(app: FastAPI):
    require_openai_api_key(get_settings())
    yield


settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

app = FastAPI(
    title="Realtime Call Relay",
    description="Relays Twilio Media Streams to the OpenAI Realtime API and reports call details.",
    lifespan=lifespan,
)
app.include_router(api_router)
app.include_router(twilio_router)


def main() -> None:
    try:
        require_openai_api_key(settings)
    except ConfigurationError as exc:
        LOGGER.error("%s", exc.detail)
        sys.exit(1)

    LOGGER.info("Server is listening on port %s", settings.port)
    uvicorn.run(app, host="0.0.0.0", port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
