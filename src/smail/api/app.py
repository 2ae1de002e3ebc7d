"""FastAPI application factory."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from smail import __version__
from smail.api.routes import router
from smail.api.services import Services
from smail.core.agent import AgentError
from smail.core.config import Config
from smail.llm.openai_compat import LLMError
from smail.logging_config import get_logger
from smail.voice.base import VoiceError
from smail.workflows.pipeline import WorkflowError

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = get_logger(__name__)


def _validation_message(exc: RequestValidationError) -> str:
    parts = []
    for error in exc.errors():
        loc = ".".join(str(p) for p in error.get("loc", ()) if p != "body")
        parts.append(f"{loc}: {error.get('msg')}" if loc else str(error.get("msg")))
    return "; ".join(parts) or "Invalid request"


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    message = _validation_message(exc)
    logger.info("request_validation_failed", path=request.url.path, error=message)
    return JSONResponse(status_code=400, content={"error": message})


async def _service_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "request_failed",
        path=request.url.path,
        error_type=type(exc).__name__,
        error=str(exc),
        exc_info=exc,
    )
    return JSONResponse(status_code=500, content={"error": str(exc) or "Internal error"})


def create_app(config: Config | None = None, services: Services | None = None) -> FastAPI:
    """Build the API app.

    Without ``services`` everything is wired from ``config`` (loaded from
    files and environment when not given).
    """
    if services is None:
        services = Services.from_config(config or Config.load())

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info("smail_api_started", model=services.config.model, version=__version__)
        yield
        await services.close()

    app = FastAPI(title="smail email assistant", version=__version__, lifespan=lifespan)
    app.state.services = services

    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    for error_type in (WorkflowError, AgentError, LLMError, VoiceError):
        app.add_exception_handler(error_type, _service_error_handler)

    app.include_router(router)
    return app
