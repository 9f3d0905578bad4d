"""
Radio S (radios.rs) network.

The site's player fetches now-playing data with an AJAX form POST. Depending
on the channel the reply carries either an artist/title pair or the HTML of
the "last five played" widget, whose first entry is the current song.
"""

import html
import logging
import re
import time
from typing import Any

from ..config import BROWSER_USER_AGENT
from ..models import NowPlayingResult, QualityInfo
from ..stations import StreamTarget
from ..titles import clean_title
from .base import ProviderAdapter, join_artist_title

logger = logging.getLogger(__name__)

FORM_ACTION = "radios_now_playing"

_LAST_FIVE_RE = re.compile(
    r'<(ul|ol)[^>]*class="[^"]*last-?five[^"]*"[^>]*>(.*?)</\1>', re.IGNORECASE | re.DOTALL
)
_ITEM_RE = re.compile(r"<li[^>]*>(.*?)</li>", re.IGNORECASE | re.DOTALL)
_SPAN_RE = r'<[a-z]+[^>]*class="[^"]*\b{cls}\b[^"]*"[^>]*>(.*?)</[a-z]+>'


def first_played(fragment: str) -> str | None:
    """Current song from a "last five played" HTML fragment."""
    m = _LAST_FIVE_RE.search(fragment)
    listing = m.group(2) if m else fragment
    item = _ITEM_RE.search(listing)
    if not item:
        return None
    entry = item.group(1)

    artist = re.search(_SPAN_RE.format(cls="artist"), entry, re.IGNORECASE | re.DOTALL)
    song = re.search(_SPAN_RE.format(cls="(?:song|title)"), entry, re.IGNORECASE | re.DOTALL)
    if artist and song:
        return join_artist_title(clean_title(artist.group(1)), clean_title(song.group(1)))
    return clean_title(entry)


def parse_reply(data: Any) -> str | None:
    """Title from the AJAX reply: artist/title fields or an HTML fragment."""
    if not isinstance(data, dict):
        return None
    payload = data.get("data") if isinstance(data.get("data"), dict) else data

    # WordPress escapes quotes and diacritics in these fields
    artist, title = (html.unescape(v) if isinstance(v, str) else v
                     for v in (payload.get("artist"), payload.get("title")))
    if isinstance(artist, str) and artist.strip() and isinstance(title, str) and title.strip():
        return join_artist_title(artist, title)

    for key in ("html", "lastfive", "last_five"):
        fragment = payload.get(key)
        if isinstance(fragment, str) and fragment.strip():
            return first_played(fragment)
    return join_artist_title(None, title)


class RadioSAdapter(ProviderAdapter):
    name = "radios"
    label = "Radio S"
    brand_keywords = ("radio s", "radios")

    def station_for(self, target: StreamTarget) -> str | None:
        if target.port is None:
            return None
        return self.stations.radios_ports.get(str(target.port))

    async def resolve(self, target: StreamTarget) -> NowPlayingResult:
        quality = QualityInfo(bitrate="128", format="MP3")
        station = self.station_for(target)
        if station is None:
            logger.warning(f"Radio S station not recognized: {target.netloc}")
            return NowPlayingResult.failure("Radio S: Unknown Radio S station", 400, quality)

        start = time.monotonic()
        title, source = await self.run_strategies([
            ("api", lambda: self.api_title(station)),
            ("stream", lambda: self.stream_title(target)),
        ])
        quality.response_time = int((time.monotonic() - start) * 1000)
        quality.source = f"radios-{source}" if source else None

        if not title:
            return NowPlayingResult.failure("Radio S: No metadata found", 404, quality)
        logger.info(f"Radio S {station}: {title}")
        return NowPlayingResult.found(title, self.classify(title), quality)

    async def api_title(self, station: str) -> str | None:
        # Mirrors the player's own request; nonce and page are sent empty
        form = {
            "action": FORM_ACTION,
            "station": station,
            "nonce": "",
            "page": "",
        }
        async with self.session.post(
            self.settings.radios_api_url,
            data=form,
            headers={
                "User-Agent": BROWSER_USER_AGENT,
                "X-Requested-With": "XMLHttpRequest",
                "Accept": "application/json, text/javascript, */*; q=0.01",
            },
            timeout=self.api_timeout,
        ) as response:
            if response.status != 200:
                logger.warning(f"Radio S API answered HTTP {response.status}")
                return None
            data = await response.json(content_type=None)
        return parse_reply(data)
