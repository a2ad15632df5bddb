"""Raw per-packet receive samples grouped by node-level cell."""

from datetime import datetime

from sqlalchemy import JSON, String, text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from meshmap.database import Base, UTCDateTime, utc_now


class RxSampleSet(Base):
    """Append-only list of {rssi, snr, repeater} tuples for one cell."""

    __tablename__ = "rx_samples"

    hash: Mapped[str] = mapped_column(String(12), primary_key=True)
    time: Mapped[datetime] = mapped_column(
        UTCDateTime, nullable=False, default=utc_now, index=True
    )
    samples: Mapped[list[dict]] = mapped_column(
        JSON().with_variant(JSONB, "postgresql"),
        nullable=False,
        default=list,
        server_default=text("'[]'"),
    )
