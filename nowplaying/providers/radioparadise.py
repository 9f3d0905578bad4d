import asyncio
import logging
import time
from typing import Any, NamedTuple

import aiohttp

from ..config import USER_AGENT
from ..models import NowPlayingResult, QualityInfo
from ..stations import StreamTarget
from .base import ProviderAdapter, join_artist_title

logger = logging.getLogger(__name__)


class ApiReply(NamedTuple):
    status: int | None
    data: dict[str, Any] | None
    reason: str


def stream_quality(target: StreamTarget) -> QualityInfo:
    """Bitrate and codec from Radio Paradise mount names (aac-320, mp3-192, flac)."""
    segment = target.first_segment
    parts = segment.split("-")
    bitrate = parts[-1] if len(parts) > 1 and parts[-1].isdigit() else None
    if "flac" in segment:
        fmt = "FLAC"
    elif "mp3" in segment:
        fmt = "MP3"
    else:
        fmt = "AAC"
    return QualityInfo(bitrate=bitrate, format=fmt, source="radioparadise-api")


class RadioParadiseAdapter(ProviderAdapter):
    """Radio Paradise channels, via the public now_playing JSON API."""

    name = "radioparadise"
    label = "Radio Paradise"

    def channel_for(self, target: StreamTarget) -> str | None:
        slug = target.first_segment.split("-")[0].split(".")[0]
        return self.stations.radioparadise_channels.get(slug)

    async def resolve(self, target: StreamTarget) -> NowPlayingResult:
        quality = stream_quality(target)
        channel = self.channel_for(target)
        if channel is None:
            logger.warning(f"Radio Paradise station not recognized: {target.netloc}{target.path}")
            return NowPlayingResult.failure("Radio Paradise: Unknown Radio Paradise station", 400, quality)

        start = time.monotonic()
        reply = await self.now_playing(channel)
        default = self.stations.radioparadise_default
        if reply.status == 404 and channel != default:
            logger.info(f"Radio Paradise channel {channel} not found, falling back to channel {default}")
            reply = await self.now_playing(default)
        quality.response_time = int((time.monotonic() - start) * 1000)

        if reply.data is None:
            return NowPlayingResult.failure(f"Radio Paradise: API request failed: {reply.reason}", 503, quality)

        title = join_artist_title(reply.data.get("artist"), reply.data.get("title"))
        if not title:
            return NowPlayingResult.failure("Radio Paradise: No metadata found", 404, quality)
        logger.info(f"Radio Paradise channel {channel}: {title}")
        return NowPlayingResult.found(title, self.classify(title), quality)

    async def now_playing(self, channel: str) -> ApiReply:
        try:
            async with self.session.get(
                self.settings.radioparadise_api_url,
                params={"chan": channel},
                headers={"User-Agent": USER_AGENT, "Accept": "application/json"},
                timeout=self.api_timeout,
            ) as response:
                if response.status != 200:
                    logger.warning(f"Radio Paradise API answered HTTP {response.status} for channel {channel}")
                    return ApiReply(response.status, None, str(response.status))
                data = await response.json(content_type=None)
        except asyncio.TimeoutError:
            logger.warning(f"Radio Paradise API timed out for channel {channel}")
            return ApiReply(None, None, "timeout")
        except (aiohttp.ClientError, ValueError) as e:
            logger.warning(f"Radio Paradise API request failed: {e!r}")
            return ApiReply(None, None, str(e) or type(e).__name__)

        if not isinstance(data, dict):
            return ApiReply(200, None, "unexpected response")
        return ApiReply(200, data, "ok")
