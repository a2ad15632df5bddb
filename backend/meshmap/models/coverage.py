"""Coverage tile model written by the coverage-ingest path."""

from datetime import datetime

from sqlalchemy import JSON, Float, Integer, String, text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from meshmap.database import Base, UTCDateTime, utc_now


class CoverageTile(Base):
    """Running statistics for one coarse geocell."""

    __tablename__ = "coverage"

    hash: Mapped[str] = mapped_column(String(12), primary_key=True)
    time: Mapped[datetime] = mapped_column(
        UTCDateTime, nullable=False, default=utc_now, index=True
    )
    last_observed: Mapped[datetime | None] = mapped_column(UTCDateTime)
    last_heard: Mapped[datetime | None] = mapped_column(UTCDateTime)

    # Counters are maintained by the ingest path and only read here
    observed: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default=text("0")
    )
    heard: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default=text("0")
    )
    lost: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default=text("0")
    )

    rssi: Mapped[float | None] = mapped_column(Float)
    snr: Mapped[float | None] = mapped_column(Float)
    repeaters: Mapped[list[str]] = mapped_column(
        JSON().with_variant(JSONB, "postgresql"),
        nullable=False,
        default=list,
        server_default=text("'[]'"),
    )
    entries: Mapped[list] = mapped_column(
        JSON().with_variant(JSONB, "postgresql"),
        nullable=False,
        default=list,
        server_default=text("'[]'"),
    )
