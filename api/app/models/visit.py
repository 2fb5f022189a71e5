from datetime import datetime

from sqlalchemy import DateTime, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base

DEFAULT_SITE_ID = "default"
DEFAULT_PATH = "/"
UNKNOWN_IP = "0.0.0.0"
UNKNOWN_COUNTRY = "Unknown"


class Visit(Base):
    """One recorded page view. Rows are append-only."""

    __tablename__ = "visits"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    site_id: Mapped[str] = mapped_column(String(255), nullable=False, default=DEFAULT_SITE_ID, index=True)
    ip: Mapped[str] = mapped_column(String(64), nullable=False, default=UNKNOWN_IP)
    country: Mapped[str] = mapped_column(String(16), nullable=False, default=UNKNOWN_COUNTRY, index=True)
    path: Mapped[str] = mapped_column(Text, nullable=False, default=DEFAULT_PATH)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False, index=True
    )
