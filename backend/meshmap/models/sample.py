"""Sample model: the latest merged observation per node-level cell."""

from datetime import datetime

from sqlalchemy import JSON, Boolean, Float, String, false, text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from meshmap.database import Base, UTCDateTime, utc_now


class Sample(Base):
    """One row per fine geocell, merged on every write."""

    __tablename__ = "samples"

    hash: Mapped[str] = mapped_column(String(12), primary_key=True)
    time: Mapped[datetime] = mapped_column(
        UTCDateTime, nullable=False, default=utc_now, index=True
    )

    # Best signal seen (dBm / dB)
    rssi: Mapped[float | None] = mapped_column(Float)
    snr: Mapped[float | None] = mapped_column(Float)

    observed: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=false()
    )
    # Lowercase repeater-path ids, kept sorted
    repeaters: Mapped[list[str]] = mapped_column(
        JSON().with_variant(JSONB, "postgresql"),
        nullable=False,
        default=list,
        server_default=text("'[]'"),
    )
