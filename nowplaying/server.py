#!/usr/bin/env python3
"""
Now-playing metadata service.

Answers GET /?url=<stream URL> with the song currently playing on that
station:
- Routes the URL to a provider adapter (station-specific API, page scrape,
  or the stream's own ICY metadata)
- Normalizes the title and flags station idents
- Returns a JSON envelope with permissive CORS headers
"""

import asyncio
import logging
from collections.abc import AsyncIterator

import aiohttp
from aiohttp import web

from .config import Settings, configure_logging
from .models import NowPlayingResult
from .responses import error_response, json_response, preflight_response
from .router import select_adapter
from .stations import STATIONS, StreamTarget

logger = logging.getLogger(__name__)

SETTINGS_KEY = web.AppKey("settings", Settings)
SESSION_KEY = web.AppKey("session", aiohttp.ClientSession)


async def resolve_now_playing(stream_url: str, session: aiohttp.ClientSession,
                              settings: Settings) -> NowPlayingResult:
    """Run the resolution pipeline for one stream URL."""
    target = StreamTarget.from_url(stream_url)
    if not target.is_valid:
        return NowPlayingResult.failure("Invalid station URL", 400)
    adapter = select_adapter(stream_url)(session, settings)
    logger.info(f"Resolving {target.netloc}{target.path} with {adapter.name}")
    return await adapter.resolve(target)


# ──────────────────────────────────────────────
# HTTP handlers
# ──────────────────────────────────────────────

async def handle_now_playing(request: web.Request) -> web.Response:
    stream_url = request.query.get("url", "").strip()
    if not stream_url:
        return error_response("Missing station URL parameter", 400)

    try:
        result = await resolve_now_playing(
            stream_url, request.app[SESSION_KEY], request.app[SETTINGS_KEY]
        )
    except Exception:
        logger.exception(f"Metadata fetch error for {stream_url}")
        return error_response("Internal server error", 500)

    if not result.ok:
        logger.info(f"{stream_url}: {result.status} {result.error}")
    return json_response(result)


async def handle_options(request: web.Request) -> web.Response:
    return preflight_response()


async def handle_health(request: web.Request) -> web.Response:
    """Health check endpoint."""
    return web.Response(text="OK")


# ──────────────────────────────────────────────
# Application
# ──────────────────────────────────────────────

async def _client_session(app: web.Application) -> AsyncIterator[None]:
    session = aiohttp.ClientSession()
    app[SESSION_KEY] = session
    yield
    await session.close()


def create_app(settings: Settings | None = None) -> web.Application:
    app = web.Application()
    app[SETTINGS_KEY] = settings or Settings.from_env()
    app.cleanup_ctx.append(_client_session)
    app.router.add_get("/", handle_now_playing)
    app.router.add_route("OPTIONS", "/", handle_options)
    app.router.add_get("/health", handle_health)
    return app


async def serve(settings: Settings) -> None:
    logger.info("Starting now-playing metadata service")
    logger.info(f"  Listen: {settings.host}:{settings.port}")
    logger.info(f"  Timeouts: stream {settings.stream_timeout}s, "
                f"metadata {settings.metadata_timeout}s, api {settings.api_timeout}s")
    logger.info(f"  Stations: {len(STATIONS.naxi)} Naxi, {len(STATIONS.radios_ports)} Radio S, "
                f"{len(STATIONS.radioparadise_channels)} Radio Paradise channel aliases")

    runner = web.AppRunner(create_app(settings))
    await runner.setup()
    site = web.TCPSite(runner, settings.host, settings.port)
    await site.start()
    logger.info(f"HTTP server listening on port {settings.port}")

    try:
        await asyncio.Event().wait()
    finally:
        await runner.cleanup()


def main() -> None:
    settings = Settings.from_env()
    configure_logging(settings.log_level)
    asyncio.run(serve(settings))


if __name__ == "__main__":
    main()
