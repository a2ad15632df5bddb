"""Repeater sighting model."""

from datetime import datetime

from sqlalchemy import Float, String
from sqlalchemy.orm import Mapped, mapped_column

from meshmap.database import Base, UTCDateTime, utc_now


class Repeater(Base):
    """Most recent sighting of a repeater at a node-level cell."""

    __tablename__ = "repeaters"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    hash: Mapped[str] = mapped_column(String(12), primary_key=True)
    time: Mapped[datetime] = mapped_column(
        UTCDateTime, nullable=False, default=utc_now, index=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    # Metres; looked up once per (id, hash) and then reused
    elevation: Mapped[float | None] = mapped_column(Float)
