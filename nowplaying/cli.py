"""
nowplaying — command line entry point.

Usage:
    nowplaying serve [--host H] [--port P]   # Run the HTTP service
    nowplaying lookup <stream url>           # Resolve one URL and print the JSON envelope
"""

import argparse
import asyncio
import dataclasses
import json
import sys

import aiohttp

from .config import Settings, configure_logging
from .responses import error_payload, success_payload
from .server import resolve_now_playing, serve


async def lookup(stream_url: str, settings: Settings) -> int:
    async with aiohttp.ClientSession() as session:
        result = await resolve_now_playing(stream_url, session, settings)
    if result.ok:
        print(json.dumps(success_payload(result), ensure_ascii=False, indent=2))
        return 0
    print(json.dumps(error_payload(result.error or "Unknown error", result.quality),
                     ensure_ascii=False, indent=2))
    return 1


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="nowplaying", description="Radio now-playing metadata service")
    parser.add_argument("--log-level", help="override NOWPLAYING_LOG_LEVEL")
    sub = parser.add_subparsers(dest="command", required=True)

    serve_parser = sub.add_parser("serve", help="run the HTTP service")
    serve_parser.add_argument("--host", help="listen address")
    serve_parser.add_argument("--port", type=int, help="listen port")

    lookup_parser = sub.add_parser("lookup", help="resolve a single stream URL")
    lookup_parser.add_argument("url", help="stream URL")

    args = parser.parse_args(argv)

    settings = Settings.from_env()
    if args.log_level:
        settings = dataclasses.replace(settings, log_level=args.log_level.upper())

    if args.command == "serve":
        overrides = {k: v for k, v in (("host", args.host), ("port", args.port)) if v is not None}
        settings = dataclasses.replace(settings, **overrides)
        configure_logging(settings.log_level)
        try:
            asyncio.run(serve(settings))
        except KeyboardInterrupt:
            pass
        return 0

    # Keep stdout clean for the JSON document
    configure_logging(args.log_level or "WARNING")
    return asyncio.run(lookup(args.url, settings))


if __name__ == "__main__":
    sys.exit(main())
