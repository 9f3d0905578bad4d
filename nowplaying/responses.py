"""JSON envelopes returned by the service."""

from typing import Any

from aiohttp import web

from .models import NowPlayingResult, QualityInfo
from .titles import clean_title

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
}

PREFLIGHT_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
    "Access-Control-Max-Age": "86400",
}

NO_CACHE_HEADERS = {
    **CORS_HEADERS,
    "Cache-Control": "no-store, max-age=0",
}


def success_payload(result: NowPlayingResult) -> dict[str, Any]:
    raw = result.raw_title or None
    quality = result.quality.public() if result.quality else {}
    return {
        "success": True,
        "title": clean_title(raw),
        "rawTitle": raw,
        "isStationName": result.is_station_name if raw else True,
        "hasMetadata": raw is not None,
        "quality": quality or None,
    }


def error_payload(message: str, quality: QualityInfo | None = None) -> dict[str, Any]:
    # Only timing/server are reported on failure; partial data would mislead
    diagnostic = quality.diagnostic() if quality else {}
    return {
        "success": False,
        "error": message,
        "quality": diagnostic or None,
    }


def error_response(message: str, status: int = 500,
                   quality: QualityInfo | None = None) -> web.Response:
    return web.json_response(error_payload(message, quality), status=status, headers=CORS_HEADERS)


def json_response(result: NowPlayingResult) -> web.Response:
    if not result.ok:
        return error_response(result.error or "Unknown error", result.status, result.quality)
    return web.json_response(success_payload(result), headers=NO_CACHE_HEADERS)


def preflight_response() -> web.Response:
    return web.Response(headers=PREFLIGHT_HEADERS)
