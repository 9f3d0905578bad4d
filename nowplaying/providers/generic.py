import asyncio
import logging
import time

import aiohttp

from ..models import NowPlayingResult, QualityInfo
from ..stations import StreamTarget
from .base import ProviderAdapter
from .stream import probe_stream

logger = logging.getLogger(__name__)


class GenericIcyAdapter(ProviderAdapter):
    """Any Icecast/SHOUTcast stream: title comes from the stream's own metadata."""

    name = "generic"
    label = "Stream"

    async def resolve(self, target: StreamTarget) -> NowPlayingResult:
        start = time.monotonic()
        try:
            probe = await probe_stream(self.session, self.settings, target.raw, self.brand_keywords)
        except asyncio.TimeoutError:
            # aiohttp.ServerTimeoutError is also a ClientError; keep this first
            logger.warning(f"Timed out connecting to {target.raw}")
            return NowPlayingResult.failure("Request timeout", 500, self._elapsed(start))
        except aiohttp.ClientError as e:
            logger.warning(f"Could not reach {target.raw}: {e!r}")
            message = str(e) or type(e).__name__
            return NowPlayingResult.failure(f"Stream connection failed: {message}", 500, self._elapsed(start))

        if probe.status >= 400:
            return NowPlayingResult.failure(
                f"Stream unavailable (HTTP {probe.status})", 503, probe.quality
            )

        if probe.title:
            logger.info(f"{target.netloc}: {probe.title} (via {probe.quality.source})")
        else:
            logger.info(f"{target.netloc}: no metadata in stream")
        return NowPlayingResult.found(probe.title, self.classify(probe.title), probe.quality)

    @staticmethod
    def _elapsed(start: float) -> QualityInfo:
        return QualityInfo(response_time=int((time.monotonic() - start) * 1000))
