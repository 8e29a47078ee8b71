"""
FastAPI application entry point for the inquiry relay runtime.

Responsibilities:
- configure logging
- construct the shared objects (SessionRegistry, InquiryClient, PollOrchestrator)
  and attach them to the app state
- include the SSE routes under /sse
- cancel running poll chains and close the HTTP client on shutdown

Run with:

    uvicorn runtime.api.server:app --reload
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from configs.settings import Settings, settings as default_settings
from core.api.inquiry_client import InquiryBackend, InquiryClient
from core.polling.delay_schedule import DelaySchedule
from runtime.agents.poll_orchestrator import PollOrchestrator, Sleep
from runtime.store.session_registry import SessionRegistry
from . import sse_routes


logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    # Missing or blank body fields are client errors, reported as 400.
    logger.warning("[SSE] HTTP 400 for %s %s: %s", request.method, request.url.path, exc.errors())
    return JSONResponse(status_code=400, content={"detail": _validation_errors(exc)})


def _validation_errors(exc: RequestValidationError) -> list:
    return [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", "")}
        for err in exc.errors()
    ]


def create_app(
    settings: Optional[Settings] = None,
    *,
    backend: Optional[InquiryBackend] = None,
    schedule: Optional[DelaySchedule] = None,
    sleep: Optional[Sleep] = None,
) -> FastAPI:
    """Build the FastAPI app with its own registry and orchestrator.

    `backend`, `schedule` and `sleep` override the settings-derived
    defaults (tests use them to avoid real HTTP calls and real waits).
    """
    settings = settings or default_settings

    owned_client: Optional[InquiryClient] = None
    if backend is None:
        owned_client = InquiryClient.from_settings(settings)
        backend = owned_client

    registry = SessionRegistry()
    orchestrator_kwargs = {"sleep": sleep} if sleep is not None else {}
    orchestrator = PollOrchestrator(
        registry,
        backend,
        schedule or settings.delay_schedule,
        **orchestrator_kwargs,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            "[SSE] Relay started: inquiry API %s, polling intervals %s",
            settings.inquiry_api_base_url,
            list(orchestrator.schedule),
        )
        yield
        logger.info("[SSE] Shutting down: cancelling %d running chain(s)", len(orchestrator.active_chains()))
        await orchestrator.shutdown()
        if owned_client is not None:
            await owned_client.aclose()

    app = FastAPI(title="Inquiry Relay", lifespan=lifespan)
    app.state.registry = registry
    app.state.orchestrator = orchestrator

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.include_router(sse_routes.router, prefix="/sse")
    return app


configure_logging(default_settings.log_level)

app = create_app()
