"""SQLAlchemy ORM models."""

from meshmap.models.archive import SampleArchive
from meshmap.models.coverage import CoverageTile
from meshmap.models.repeater import Repeater
from meshmap.models.rx_sample import RxSampleSet
from meshmap.models.sample import Sample
from meshmap.models.sender import Sender

__all__ = [
    "CoverageTile",
    "Repeater",
    "RxSampleSet",
    "Sample",
    "SampleArchive",
    "Sender",
]
