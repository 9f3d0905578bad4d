"""
Title heuristics shared by every provider.

- is_likely_station_name() rejects station idents and marketing strings
- clean_title() turns raw metadata into presentable text
"""

import html
import re
from collections.abc import Iterable

MAX_TITLE_LENGTH = 50
MAX_HYPHEN_SEGMENTS = 4
MAX_WORDS = 10
STATION_KEYWORDS = ("radio", "fm", "station", "stream", "broadcast")

NOW_PLAYING_PREFIXES = (
    "Trenutno:", "Now Playing:", "Current:",
    "Playing:", "On Air:", "NP:", "Now:", "♪",
)

# A tag name starts with a letter, so text like "<3" survives
_TAG_RE = re.compile(r"</?[a-zA-Z][^>]*(>|$)")
_URL_RE = re.compile(r"https?://\S+")
_SPACE_RE = re.compile(r"\s+")


def is_likely_station_name(text: str | None, brands: Iterable[str] = ()) -> bool:
    """Guess whether text is a station ident rather than an "Artist - Title".

    Station idents tend to be long, keyword-laden marketing strings; real
    titles are short with a single hyphen. False positives are accepted.
    """
    if not text or not text.strip():
        return True
    t = text.lower()
    if len(t) > MAX_TITLE_LENGTH:
        return True
    if len(t.split("-")) > MAX_HYPHEN_SEGMENTS:
        return True
    if len(t.split(" ")) > MAX_WORDS:
        return True
    keywords = (*STATION_KEYWORDS, *(b.lower() for b in brands if b))
    return any(k in t for k in keywords)


def _clean_once(text: str) -> str:
    cleaned = _TAG_RE.sub("", text)
    cleaned = _URL_RE.sub("", cleaned)
    cleaned = cleaned.replace("\x00", "").strip()

    for prefix in NOW_PLAYING_PREFIXES:
        if cleaned.startswith(prefix):
            cleaned = cleaned[len(prefix):].strip()

    cleaned = _SPACE_RE.sub(" ", cleaned)
    cleaned = html.unescape(cleaned)
    return cleaned.strip()


def clean_title(raw: str | None) -> str | None:
    """Strip markup, URLs and "now playing" labels; None if nothing remains."""
    if not raw:
        return None
    cleaned = raw
    # Each pass only shortens the text (or normalizes whitespace), so
    # iterating to a fixed point terminates and makes the result idempotent.
    while True:
        nxt = _clean_once(cleaned)
        if nxt == cleaned:
            break
        cleaned = nxt
    return cleaned or None


def format_from_content_type(content_type: str | None) -> str | None:
    """Map a Content-Type header to a short audio format label."""
    if not content_type:
        return None
    ct = content_type.lower()
    for needle, label in (("ogg", "OGG"), ("mpeg", "MP3"), ("aac", "AAC"),
                          ("wav", "WAV"), ("flac", "FLAC")):
        if needle in ct:
            return label
    mime = ct.split(";")[0]
    if "/" in mime and mime.split("/", 1)[1].strip():
        return mime.split("/", 1)[1].strip().upper()
    return "Unknown"
