"""StatsEngine: builds the dashboard snapshot from the visit log.

A snapshot is six independent read views. Four of them (totals, unique
visitors, countries, recent feed) honour the site filter; the site list and
the site ranking always cover the whole log so the dashboard can still offer
every site while one is selected.

The views are fanned out with ``asyncio.gather``. Each runs in its own
session because an ``AsyncSession`` cannot serve concurrent queries. There is
no shared transaction, so a write landing between two views may make them
disagree slightly.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Any

from fastapi import Depends
from sqlalchemy import Select, distinct, func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.database import get_session_factory
from app.models.visit import Visit

ALL_SITES = "all"
TOP_COUNTRIES_LIMIT = 50
RECENT_LIMIT = 100
TOP_SITES_LIMIT = 100


def parse_site_filter(raw: str | None) -> str | None:
    """Map the ``site_id`` query value to a filter; ``None`` means every site."""
    if raw is None or raw == "" or raw == ALL_SITES:
        return None
    return raw


def _as_utc(value: datetime) -> datetime:
    """SQLite returns naive values for CURRENT_TIMESTAMP, which is UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _filtered(stmt: Select, site_id: str | None) -> Select:
    if site_id is None:
        return stmt
    return stmt.where(Visit.site_id == site_id)


class StatsEngine:
    """Runs the snapshot views against the visit log.

    Parameters
    ----------
    session_factory : async_sessionmaker
        Factory used to open one short-lived session per view.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self.session_factory = session_factory

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def snapshot(self, site_filter: str | None = None) -> dict[str, Any]:
        """Compute every view for ``site_filter`` (``None``/``"all"`` for no filter).

        Every view is awaited to completion; if any of them failed, the first
        failure is raised and no partial result is returned.
        """
        site_id = parse_site_filter(site_filter)
        results = await asyncio.gather(
            self.count_total(site_id),
            self.count_unique(site_id),
            self.top_countries(site_id),
            self.recent(site_id),
            self.known_sites(),
            self.top_sites(),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, BaseException):
                raise result
        total, unique, countries, recent, sites, top_sites = results
        return {
            "total": total,
            "unique": unique,
            "countries": countries,
            "recent": recent,
            "sites": sites,
            "top_sites": top_sites,
        }

    async def count_total(self, site_id: str | None = None) -> int:
        stmt = _filtered(select(func.count()).select_from(Visit), site_id)
        return await self._scalar(stmt) or 0

    async def count_unique(self, site_id: str | None = None) -> int:
        stmt = _filtered(select(func.count(distinct(Visit.ip))), site_id)
        return await self._scalar(stmt) or 0

    async def top_countries(self, site_id: str | None = None) -> list[dict[str, Any]]:
        count = func.count().label("count")
        stmt = _filtered(select(Visit.country, count), site_id)
        stmt = stmt.group_by(Visit.country).order_by(count.desc()).limit(TOP_COUNTRIES_LIMIT)
        rows = await self._rows(stmt)
        return [{"country": country, "count": n} for country, n in rows]

    async def recent(self, site_id: str | None = None) -> list[dict[str, Any]]:
        stmt = _filtered(select(Visit), site_id).order_by(Visit.id.desc()).limit(RECENT_LIMIT)
        async with self.session_factory() as session:
            result = await session.execute(stmt)
            visits = result.scalars().all()
        return [
            {
                "id": v.id,
                "site_id": v.site_id,
                "ip": v.ip,
                "country": v.country,
                "path": v.path,
                "timestamp": _as_utc(v.timestamp),
            }
            for v in visits
        ]

    async def known_sites(self) -> list[str]:
        stmt = select(Visit.site_id).distinct().order_by(Visit.site_id.asc())
        rows = await self._rows(stmt)
        return [site_id for (site_id,) in rows]

    async def top_sites(self) -> list[dict[str, Any]]:
        count = func.count().label("count")
        stmt = (
            select(Visit.site_id, count)
            .group_by(Visit.site_id)
            .order_by(count.desc())
            .limit(TOP_SITES_LIMIT)
        )
        rows = await self._rows(stmt)
        return [{"site_id": site_id, "count": n} for site_id, n in rows]

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _scalar(self, stmt: Select) -> Any:
        async with self.session_factory() as session:
            result = await session.execute(stmt)
            return result.scalar_one_or_none()

    async def _rows(self, stmt: Select) -> list[tuple]:
        async with self.session_factory() as session:
            result = await session.execute(stmt)
            return [tuple(row) for row in result.all()]


def get_stats_engine(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> StatsEngine:
    return StatsEngine(session_factory)
