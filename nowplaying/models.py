from dataclasses import dataclass
from typing import Any

from .titles import format_from_content_type


@dataclass
class QualityInfo:
    """Diagnostic details about the origin. Never affects title resolution."""

    bitrate: str | None = None
    content_type: str | None = None
    format: str | None = None
    meta_interval: int | None = None
    response_time: int | None = None  # ms
    server: str | None = None
    icy_headers_present: bool = False
    source: str | None = None

    def public(self) -> dict[str, Any]:
        """Fields exposed in success envelopes, empty ones dropped."""
        out: dict[str, Any] = {}
        if self.bitrate:
            out["bitrate"] = self.bitrate
        fmt = self.format or format_from_content_type(self.content_type)
        if fmt:
            out["format"] = fmt
        if self.meta_interval:
            out["metaInt"] = self.meta_interval
        if self.response_time is not None:
            out["responseTime"] = self.response_time
        return out

    def diagnostic(self) -> dict[str, Any]:
        """Subset allowed in error envelopes."""
        out: dict[str, Any] = {}
        if self.response_time is not None:
            out["responseTime"] = self.response_time
        if self.server:
            out["server"] = self.server
        return out


@dataclass
class NowPlayingResult:
    raw_title: str | None = None
    is_station_name: bool = True
    quality: QualityInfo | None = None
    error: str | None = None
    status: int = 200

    def __post_init__(self) -> None:
        # Missing data is never reported as a real title
        if self.raw_title is None:
            self.is_station_name = True

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def found(cls, raw_title: str | None, is_station_name: bool,
              quality: QualityInfo | None = None) -> "NowPlayingResult":
        return cls(raw_title=raw_title or None, is_station_name=is_station_name, quality=quality)

    @classmethod
    def failure(cls, message: str, status: int = 500,
                quality: QualityInfo | None = None) -> "NowPlayingResult":
        return cls(error=message, status=status, quality=quality)
