"""Resolve the song currently playing on an internet radio stream."""

from .models import NowPlayingResult, QualityInfo
from .router import select_adapter
from .stations import StreamTarget
from .titles import clean_title, is_likely_station_name

__version__ = "1.0.0"

__all__ = [
    "NowPlayingResult",
    "QualityInfo",
    "StreamTarget",
    "clean_title",
    "is_likely_station_name",
    "select_adapter",
]
