import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Sequence

import aiohttp

from ..config import Settings
from ..models import NowPlayingResult
from ..stations import STATIONS, StationTables, StreamTarget
from ..titles import is_likely_station_name
from .stream import probe_stream

logger = logging.getLogger(__name__)

Strategy = tuple[str, Callable[[], Awaitable[str | None]]]


def join_artist_title(artist: object, title: object) -> str | None:
    """Format "Artist - Title" from loosely typed API fields."""
    artist = artist.strip() if isinstance(artist, str) else ""
    title = title.strip() if isinstance(title, str) else ""
    if artist and title:
        return f"{artist} - {title}"
    return title or None


class ProviderAdapter(ABC):
    """Resolves the current song for the stations of one broadcaster."""

    name: str = ""
    label: str = ""
    brand_keywords: tuple[str, ...] = ()

    def __init__(self, session: aiohttp.ClientSession, settings: Settings,
                 stations: StationTables = STATIONS) -> None:
        self.session = session
        self.settings = settings
        self.stations = stations

    @abstractmethod
    async def resolve(self, target: StreamTarget) -> NowPlayingResult:
        ...

    def classify(self, title: str | None) -> bool:
        return is_likely_station_name(title, self.brand_keywords)

    @property
    def api_timeout(self) -> aiohttp.ClientTimeout:
        return aiohttp.ClientTimeout(total=self.settings.api_timeout)

    async def run_strategies(self, strategies: Sequence[Strategy]) -> tuple[str | None, str | None]:
        """Try strategies in order; return (title, strategy name) of the first hit.

        A strategy signals a miss by returning None. Transport and decode
        failures are contained here so the next strategy still runs.
        """
        for label, strategy in strategies:
            try:
                title = await strategy()
            except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
                logger.warning(f"{self.label}: {label} lookup failed: {e!r}")
                continue
            if title:
                logger.debug(f"{self.label}: {label} lookup found {title!r}")
                return title, label
            logger.debug(f"{self.label}: {label} lookup found nothing")
        return None, None

    async def stream_title(self, target: StreamTarget) -> str | None:
        """In-band ICY metadata of the stream itself, as a last resort."""
        probe = await probe_stream(self.session, self.settings, target.raw, self.brand_keywords)
        return probe.title
