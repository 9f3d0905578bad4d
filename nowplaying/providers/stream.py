"""Connecting to a stream and collecting its ICY headers and in-band title."""

import asyncio
import logging
import time
from collections.abc import Iterable
from dataclasses import dataclass

import aiohttp

from ..config import USER_AGENT, Settings
from ..icy import SHOUTCAST_SCAN_BYTES, read_stream_title, scan_stream_title
from ..models import QualityInfo
from ..titles import is_likely_station_name

logger = logging.getLogger(__name__)

ICY_REQUEST_HEADERS = {
    "Icy-MetaData": "1",
    "User-Agent": USER_AGENT,
    "Accept-Charset": "utf-8",
}


@dataclass
class StreamProbe:
    title: str | None
    quality: QualityInfo
    status: int = 200


def _parse_metaint(value: str | None) -> int | None:
    if not value:
        return None
    try:
        metaint = int(value.strip())
    except ValueError:
        logger.debug(f"Ignoring malformed icy-metaint header: {value!r}")
        return None
    return metaint if metaint > 0 else None


def stream_client_timeout(settings: Settings) -> aiohttp.ClientTimeout:
    """No total bound; DNS, pool wait, connect and each read get stream_timeout."""
    return aiohttp.ClientTimeout(
        total=None,
        connect=settings.stream_timeout,
        sock_connect=settings.stream_timeout,
        sock_read=settings.stream_timeout,
    )


async def probe_stream(session: aiohttp.ClientSession, settings: Settings, url: str,
                       brands: Iterable[str] = ()) -> StreamProbe:
    """Open url requesting ICY metadata and look for the current title.

    Checks the icy-title header, then the in-band metadata blocks, then (for
    servers announcing no icy-metaint) the first chunk of the body.

    Raises asyncio.TimeoutError / aiohttp.ClientError when the stream cannot
    be reached within settings.stream_timeout.
    """
    brands = tuple(brands)
    start = time.monotonic()
    # The body is open-ended; only the way up to the response headers is
    # bounded as a whole, later reads are bounded per read.
    response = await asyncio.wait_for(
        session.get(url, headers=ICY_REQUEST_HEADERS, timeout=stream_client_timeout(settings)),
        settings.stream_timeout,
    )
    async with response:
        headers = response.headers
        metaint = _parse_metaint(headers.get("icy-metaint"))
        quality = QualityInfo(
            bitrate=headers.get("icy-br") or None,
            content_type=headers.get("content-type"),
            meta_interval=metaint,
            response_time=int((time.monotonic() - start) * 1000),
            server=headers.get("server"),
            icy_headers_present=headers.get("icy-metaint") is not None,
            source="icy",
        )
        if response.status >= 400:
            logger.warning(f"Stream {url} answered HTTP {response.status}")
            return StreamProbe(None, quality, response.status)

        icy_title = headers.get("icy-title")
        if icy_title and not is_likely_station_name(icy_title, brands):
            quality.source = "icy-header"
            return StreamProbe(icy_title.strip(), quality, response.status)

        title = None
        if metaint:
            try:
                title = await asyncio.wait_for(
                    read_stream_title(response.content, metaint, brands, settings.max_meta_intervals),
                    settings.metadata_timeout,
                )
            except asyncio.TimeoutError:
                logger.info(f"Timed out reading ICY metadata from {url}")
        else:
            try:
                chunk = await asyncio.wait_for(
                    response.content.read(SHOUTCAST_SCAN_BYTES), settings.metadata_timeout
                )
            except (asyncio.TimeoutError, aiohttp.ClientPayloadError) as e:
                logger.debug(f"No SHOUTcast v1 data from {url}: {e!r}")
                chunk = b""
            title = scan_stream_title(chunk)
            if title and is_likely_station_name(title, brands):
                title = None
            if title:
                quality.source = "shoutcast-v1"

        return StreamProbe(title, quality, response.status)
