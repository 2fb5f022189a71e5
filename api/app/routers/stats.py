"""Stats router: serves the dashboard snapshot.

Requires the dashboard secret in the ``Authorization`` header. The
``site_id`` query parameter narrows the totals, unique visitors, country
ranking and recent feed; the site list and site ranking always cover every
site.
"""

from datetime import datetime

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from app.core.security import require_dashboard_access
from app.stats.engine import StatsEngine, get_stats_engine

router = APIRouter(tags=["stats"])


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------


class CountryCount(BaseModel):
    country: str
    count: int


class SiteCount(BaseModel):
    site_id: str
    count: int


class VisitOut(BaseModel):
    id: int
    site_id: str
    ip: str
    country: str
    path: str
    timestamp: datetime


class StatsResponse(BaseModel):
    total: int = 0
    unique: int = 0
    countries: list[CountryCount] = []
    recent: list[VisitOut] = []
    sites: list[str] = []
    top_sites: list[SiteCount] = Field(default_factory=list, alias="topSites")

    model_config = {"populate_by_name": True}


# ---------------------------------------------------------------------------
# Endpoint
# ---------------------------------------------------------------------------


@router.get(
    "/stats",
    response_model=StatsResponse,
    dependencies=[Depends(require_dashboard_access)],
)
async def get_stats(
    site_id: str | None = Query(None, description='Site to focus on, or "all"'),
    engine: StatsEngine = Depends(get_stats_engine),
) -> StatsResponse:
    """Return total and unique counts, country ranking, recent visits,
    known sites and the site ranking in one payload.
    """
    snapshot = await engine.snapshot(site_id)
    return StatsResponse(**snapshot)
