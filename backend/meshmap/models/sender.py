"""Sender roster model."""

from datetime import datetime

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from meshmap.database import Base, UTCDateTime


class Sender(Base):
    """A named sender seen in a coverage tile on a given day."""

    __tablename__ = "senders"

    hash: Mapped[str] = mapped_column(String(12), primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(64), primary_key=True, index=True)
    # Start of the UTC day
    time: Mapped[datetime] = mapped_column(UTCDateTime, primary_key=True, index=True)
