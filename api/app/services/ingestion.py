"""Visit ingestion: normalize one page-view report and append it to the log.

Client address and region are taken from edge headers only. A blocklisted
site is acknowledged exactly like a recorded one, so callers cannot probe
the blocklist.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Literal

from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.visit import DEFAULT_PATH, DEFAULT_SITE_ID, UNKNOWN_COUNTRY, UNKNOWN_IP, Visit

logger = logging.getLogger(__name__)

RecordStatus = Literal["ok", "ignored"]


class TrackRequest(BaseModel):
    site_id: str | None = None
    path: str | None = None


def normalize_site_id(raw: str | None) -> str:
    if raw is None:
        return DEFAULT_SITE_ID
    site_id = raw.strip()
    return site_id or DEFAULT_SITE_ID


def normalize_path(raw: str | None) -> str:
    return raw or DEFAULT_PATH


def normalize_ip(raw: str | None) -> str:
    if raw is None:
        return UNKNOWN_IP
    return raw.strip() or UNKNOWN_IP


def normalize_country(raw: str | None) -> str:
    """Return an upper-cased two-letter region code, or ``"Unknown"``.

    Edge pseudo-codes with digits, such as Cloudflare's ``T1`` for Tor exits,
    are not regions and are stored as ``"Unknown"``.
    """
    if raw is None:
        return UNKNOWN_COUNTRY
    code = raw.strip()
    if len(code) == 2 and code.isascii() and code.isalpha():
        return code.upper()
    return UNKNOWN_COUNTRY


class VisitRecorder:
    """Applies the site blocklist and writes accepted visits.

    Parameters
    ----------
    blocked_site_ids : Iterable[str]
        Site identifiers whose visits are acknowledged but never stored.
    """

    def __init__(self, blocked_site_ids: Iterable[str] = ()) -> None:
        self.blocked_site_ids = frozenset(blocked_site_ids)

    def is_blocked(self, site_id: str) -> bool:
        return site_id in self.blocked_site_ids

    async def record(
        self,
        db: AsyncSession,
        report: TrackRequest,
        ip: str | None,
        country: str | None,
    ) -> RecordStatus:
        site_id = normalize_site_id(report.site_id)
        if self.is_blocked(site_id):
            logger.info("Dropped visit for blocked site %r", site_id)
            return "ignored"

        visit = Visit(
            site_id=site_id,
            ip=normalize_ip(ip),
            country=normalize_country(country),
            path=normalize_path(report.path),
        )
        db.add(visit)
        await db.flush()
        await db.commit()
        logger.debug("Recorded visit %s for site %r", visit.id, site_id)
        return "ok"
