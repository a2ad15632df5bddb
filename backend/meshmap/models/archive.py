"""Archive of samples removed from the live tables."""

from datetime import datetime

from sqlalchemy import JSON, Integer, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from meshmap.database import Base, UTCDateTime, utc_now


class SampleArchive(Base):
    """A JSON snapshot of an archived sample or rx sample set."""

    __tablename__ = "sample_archive"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    # Time the row was archived
    time: Mapped[datetime] = mapped_column(
        UTCDateTime, nullable=False, default=utc_now, index=True
    )
    kind: Mapped[str] = mapped_column(String(20), nullable=False)  # sample, rx_sample
    data: Mapped[dict] = mapped_column(JSON().with_variant(JSONB, "postgresql"), nullable=False)
