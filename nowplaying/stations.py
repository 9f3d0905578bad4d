"""
Stream URL normalization and the per-provider station tables.

The tables live in data/stations.json so they can be updated (or replaced
with NOWPLAYING_STATIONS_FILE) without touching code. They are loaded once
at import and exposed as read-only mappings.
"""

import json
import logging
import os
import re
from dataclasses import dataclass
from importlib import resources
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping

logger = logging.getLogger(__name__)

STREAM_SUFFIXES = (";stream.nsv", ";stream.mp3", ";*.mp3", ";*.nsv")

_SCHEME_RE = re.compile(r"^([a-z][a-z0-9+.-]*)://", re.IGNORECASE)
_PATH_START_RE = re.compile(r"[/?#;]")


@dataclass(frozen=True)
class StreamTarget:
    """A stream URL broken down for routing. Never raised from bad input."""

    raw: str
    scheme: str
    netloc: str
    hostname: str
    port: int | None
    path: str

    @classmethod
    def from_url(cls, url: str | None) -> "StreamTarget":
        raw = (url or "").strip()
        rest = raw
        for suffix in STREAM_SUFFIXES:
            rest = rest.replace(suffix, "")

        scheme = ""
        m = _SCHEME_RE.match(rest)
        if m:
            scheme = m.group(1).lower()
            rest = rest[m.end():]

        m = _PATH_START_RE.search(rest)
        netloc, remainder = (rest[:m.start()], rest[m.start():]) if m else (rest, "")
        netloc = netloc.rsplit("@", 1)[-1].lower()

        path = remainder.split("?", 1)[0].split("#", 1)[0]
        if not path.startswith("/"):
            path = ""

        hostname, port = netloc, None
        head, sep, tail = netloc.rpartition(":")
        if sep and tail.isdigit():
            hostname, port = head, int(tail)
        elif sep and not tail:
            hostname = head

        return cls(raw=raw, scheme=scheme, netloc=netloc, hostname=hostname, port=port, path=path)

    @property
    def is_valid(self) -> bool:
        return self.scheme in ("http", "https") and bool(self.hostname)

    @property
    def first_segment(self) -> str:
        """First non-empty path segment, e.g. "aac-320" for /aac-320?x=1."""
        for part in self.path.split("/"):
            if part:
                return part.lower()
        return ""


@dataclass(frozen=True)
class StationTables:
    naxi: Mapping[str, str]
    radios_hosts: frozenset[str]
    radios_ports: Mapping[str, str]
    radioparadise_hosts: frozenset[str]
    radioparadise_channels: Mapping[str, str]
    radioparadise_default: str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "StationTables":
        naxi = data.get("naxi", {})
        radios = data.get("radios", {})
        rp = data.get("radioparadise", {})
        return cls(
            naxi=MappingProxyType({k.lower(): str(v) for k, v in naxi.get("stations", {}).items()}),
            radios_hosts=frozenset(h.lower() for h in radios.get("hosts", [])),
            radios_ports=MappingProxyType({str(k): str(v) for k, v in radios.get("ports", {}).items()}),
            radioparadise_hosts=frozenset(h.lower() for h in rp.get("hosts", [])),
            radioparadise_channels=MappingProxyType(
                {k.lower(): str(v) for k, v in rp.get("channels", {}).items()}
            ),
            radioparadise_default=str(rp.get("default_channel", "0")),
        )


def load_station_tables(path: str | Path | None = None) -> StationTables:
    """Load station tables from path, or the packaged stations.json."""
    if path:
        text = Path(path).read_text(encoding="utf-8")
        logger.info(f"Loaded station tables from {path}")
    else:
        text = resources.files("nowplaying").joinpath("data").joinpath("stations.json").read_text(encoding="utf-8")
    return StationTables.from_dict(json.loads(text))


STATIONS = load_station_tables(os.environ.get("NOWPLAYING_STATIONS_FILE"))
