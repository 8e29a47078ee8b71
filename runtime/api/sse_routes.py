"""HTTP routes for the inquiry relay.

Exposes, under the /sse prefix:

- GET    /sse/connect/{session_id}    -> text/event-stream of DomainEvent frames
- POST   /sse/start/{session_id}      -> starts the external process + polling
- DELETE /sse/disconnect/{session_id} -> completes and removes the session
- GET    /sse/healthz                 -> liveness + session / chain counts
"""

import json
import logging
from typing import AsyncIterator

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from fastapi.responses import StreamingResponse

from core.polling.models import DomainEvent
from exceptions.exceptions import ChainAlreadyActiveException, SessionNotFoundException
from ..agents.poll_orchestrator import PollOrchestrator
from ..models.api_models import HealthResponse, InquiryRequest, StartResponse
from ..store.event_channel import EventChannel


logger = logging.getLogger(__name__)

router = APIRouter()


def _require_orchestrator(request: Request) -> PollOrchestrator:
    orchestrator = getattr(request.app.state, "orchestrator", None)
    if orchestrator is None:
        raise HTTPException(
            status_code=500,
            detail="PollOrchestrator is not configured on the server.",
        )
    return orchestrator


def format_sse(event: DomainEvent) -> str:
    """Format one event as an SSE frame: ``data: {json}\\n\\n``."""
    return f"data: {json.dumps(event.to_wire())}\n\n"


async def _event_stream(channel: EventChannel) -> AsyncIterator[str]:
    async for event in channel.stream():
        yield format_sse(event)


@router.get("/connect/{session_id}")
async def connect(
    session_id: str,
    orchestrator: PollOrchestrator = Depends(_require_orchestrator),
) -> StreamingResponse:
    """Open the event stream for `session_id`.

    The stream stays open until the session is disconnected. If the client
    drops the connection, the session is removed and its chain cancelled.
    """
    channel = orchestrator.connect(session_id)
    logger.info("[SSE] Connected session_id=%s", session_id)
    return StreamingResponse(
        _event_stream(channel),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )


@router.post("/start/{session_id}", response_model=StartResponse, response_model_by_alias=True)
async def start_external_process(
    session_id: str,
    request: InquiryRequest,
    orchestrator: PollOrchestrator = Depends(_require_orchestrator),
) -> StartResponse:
    """Kick off the external process for a connected session.

    Returns as soon as the chain is scheduled; progress is delivered on the
    session's event stream.
    """
    try:
        orchestrator.start_external_process(session_id, request)
    except SessionNotFoundException as e:
        logger.warning("[SSE] HTTP 400 for session_id=%s reason=%r", session_id, str(e))
        raise HTTPException(status_code=400, detail=str(e))
    except ChainAlreadyActiveException as e:
        logger.warning("[SSE] HTTP 409 for session_id=%s reason=%r", session_id, str(e))
        raise HTTPException(status_code=409, detail=str(e))

    return StartResponse(session_id=session_id, tracking_id=request.tracking_id)


@router.delete("/disconnect/{session_id}")
async def disconnect(
    session_id: str,
    orchestrator: PollOrchestrator = Depends(_require_orchestrator),
) -> Response:
    """Complete and remove the session's channel. Unknown ids are not an error."""
    orchestrator.disconnect(session_id)
    return Response(status_code=200)


# --------------------------------------------------------
# Endpoint: GET /healthz
# --------------------------------------------------------
@router.get("/healthz", response_model=HealthResponse, response_model_by_alias=True)
async def health_check(orchestrator: PollOrchestrator = Depends(_require_orchestrator)) -> HealthResponse:
    """
    Simple health check endpoint for uptime monitoring.
    """
    return HealthResponse(
        sessions=len(orchestrator.registry),
        active_chains=len(orchestrator.active_chains()),
    )
