import json
import logging
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import BaseModel, ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.errors import ConfigurationError
from app.services.ingestion import TrackRequest, VisitRecorder

logger = logging.getLogger(__name__)

router = APIRouter(tags=["track"])


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------

class TrackResponse(BaseModel):
    status: Literal["ok", "ignored"]


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------

def get_visit_recorder(request: Request) -> VisitRecorder:
    recorder = getattr(request.app.state, "visit_recorder", None)
    if recorder is None:
        raise ConfigurationError("visit recorder is not configured")
    return recorder


async def parse_track_request(request: Request) -> TrackRequest:
    """Parse the raw body regardless of Content-Type.

    ``navigator.sendBeacon`` posts JSON as text/plain, so FastAPI's body
    binding would reject it.
    """
    try:
        data = json.loads(await request.body())
        return TrackRequest.model_validate(data)
    except (ValueError, ValidationError):
        logger.warning("Rejected malformed track payload")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Malformed request body",
        )


# ---------------------------------------------------------------------------
# Endpoint
# ---------------------------------------------------------------------------

@router.post("/track", response_model=TrackResponse)
async def track_visit(
    request: Request,
    report: TrackRequest = Depends(parse_track_request),
    recorder: VisitRecorder = Depends(get_visit_recorder),
    db: AsyncSession = Depends(get_db),
) -> TrackResponse:
    """Record one page view.

    Client address and country come from the edge headers, never from the
    body. Blocked sites get the same 200 response with ``status="ignored"``.
    """
    settings = request.app.state.settings
    result = await recorder.record(
        db,
        report,
        ip=request.headers.get(settings.CLIENT_IP_HEADER),
        country=request.headers.get(settings.COUNTRY_HEADER),
    )
    return TrackResponse(status=result)
