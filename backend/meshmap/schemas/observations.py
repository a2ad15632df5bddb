"""Schemas for observations submitted by field devices."""

from pydantic import BaseModel, Field, field_validator


class LocatedObservation(BaseModel):
    """Base schema for anything reported at a location."""

    lat: float
    lon: float


class SampleSubmission(LocatedObservation):
    """A signal sample from a wardriving device."""

    rssi: float | None = None
    snr: float | None = None
    path: list[str] = Field(default_factory=list, description="Repeater ids that relayed the probe")
    observed: bool = False
    sender: str | None = Field(default=None, description="Name of the device that sent the probe")

    @field_validator("path", mode="before")
    @classmethod
    def parse_path(cls, v: list[str] | None) -> list[str]:
        """Treat a null path as empty."""
        return [] if v is None else v


class RepeaterSubmission(LocatedObservation):
    """A sighting of a named repeater."""

    id: str = Field(..., min_length=1, max_length=64)
    name: str = Field(..., max_length=255)
    elevation: float | None = None

    @field_validator("id")
    @classmethod
    def normalize_id(cls, v: str) -> str:
        """Repeater ids are stored lowercase."""
        v = v.strip().lower()
        if not v:
            raise ValueError("id must not be blank")
        return v


class RxSampleSubmission(LocatedObservation):
    """One received packet as heard at a location."""

    rssi: float | None = None
    snr: float | None = None
    repeater: str | None = None
