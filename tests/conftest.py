"""Shared fixtures and stream builders for the now-playing tests."""

import dataclasses

import aiohttp
import pytest
from aiohttp import web

from nowplaying.config import Settings


def metadata_block(text: str | bytes | None, encoding: str = "utf-8") -> bytes:
    """Length byte plus NUL-padded metadata, as an ICY server frames it."""
    if text is None:
        return b"\x00"
    data = text.encode(encoding) if isinstance(text, str) else text
    length = (len(data) + 15) // 16
    return bytes([length]) + data.ljust(length * 16, b"\x00")


def icy_stream(*blocks: str | bytes | None, metaint: int = 100, encoding: str = "utf-8") -> bytes:
    """Audio bytes interleaved with one metadata block per interval."""
    audio = b"\xff\xfb" * (metaint // 2) + b"\xff" * (metaint % 2)
    out = bytearray()
    for block in blocks:
        out += audio
        out += metadata_block(block, encoding)
    out += audio
    return bytes(out)


class ChunkedReader:
    """Async reader handing out data in small fixed-size pieces."""

    def __init__(self, data: bytes, chunk: int = 7) -> None:
        self._data = data
        self._chunk = chunk
        self.reads = 0

    async def read(self, n: int = -1) -> bytes:
        self.reads += 1
        size = self._chunk if n < 0 else min(n, self._chunk)
        out, self._data = self._data[:size], self._data[size:]
        return out


def icy_handler(body: bytes, metaint: int = 100, **extra_headers: str):
    """aiohttp handler serving body as an ICY stream."""

    async def handler(request: web.Request) -> web.StreamResponse:
        headers = {
            "Content-Type": "audio/mpeg",
            "icy-br": "128",
            "icy-name": "Test Station",
            "icy-metaint": str(metaint),
            **{k.replace("_", "-"): v for k, v in extra_headers.items()},
        }
        response = web.StreamResponse(headers=headers)
        await response.prepare(request)
        await response.write(body)
        await response.write_eof()
        return response

    return handler


@pytest.fixture()
def settings():
    """Settings with short timeouts; tests override URLs with dataclasses.replace."""
    return Settings(stream_timeout=1.0, metadata_timeout=2.0, api_timeout=2.0)


@pytest.fixture()
def make_settings(settings):
    def _make(**overrides) -> Settings:
        return dataclasses.replace(settings, **overrides)

    return _make


@pytest.fixture()
async def session():
    async with aiohttp.ClientSession() as s:
        yield s
