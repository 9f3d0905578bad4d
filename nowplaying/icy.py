"""
ICY / SHOUTcast in-band metadata decoding.

A server that honours "Icy-MetaData: 1" interleaves its audio with
metadata blocks:

    <metaint audio bytes> <L> <L * 16 bytes of text> <metaint audio bytes> ...

The text is a run of key='value'; pairs, e.g. StreamTitle='Artist - Song';
padded with NUL bytes. Broadcasters rarely declare the text encoding, so a
few common ones are tried in turn.
"""

import asyncio
import logging
import re
from collections.abc import Iterable
from typing import Protocol

import aiohttp

from .titles import is_likely_station_name

logger = logging.getLogger(__name__)

STREAM_TITLE_MARKER = "StreamTitle="
# cp1250 is effectively never used: Latin-1 decodes every byte, and a block
# whose Latin-1 text lacks StreamTitle= lacks it in cp1250 too.
METADATA_ENCODINGS = ("utf-8", "iso-8859-1", "cp1250")
MAX_META_INTERVALS = 3
READ_CHUNK_SIZE = 4096
SHOUTCAST_SCAN_BYTES = 4096

_QUOTED_TITLE_RE = re.compile(r"""StreamTitle=(['"])(.*?)\1(?=;|$)""", re.DOTALL)
_BARE_TITLE_RE = re.compile(r"StreamTitle=([^;]*)")
_EMPTY_TITLES = ("StreamTitle='';", 'StreamTitle="";')


class ByteReader(Protocol):
    async def read(self, n: int = -1) -> bytes: ...


class MetadataBuffer:
    """Growable byte buffer with a read cursor.

    Bytes are appended as they arrive from the network and consumed from the
    front; consumed bytes are dropped on compact() instead of reallocating on
    every read.
    """

    def __init__(self) -> None:
        self._data = bytearray()
        self._pos = 0

    def __len__(self) -> int:
        return len(self._data) - self._pos

    def feed(self, chunk: bytes) -> None:
        self._data.extend(chunk)

    def skip(self, n: int) -> None:
        if n > len(self):
            raise ValueError(f"cannot skip {n} bytes, only {len(self)} buffered")
        self._pos += n

    def take(self, n: int) -> bytes:
        if n > len(self):
            raise ValueError(f"cannot take {n} bytes, only {len(self)} buffered")
        out = bytes(self._data[self._pos:self._pos + n])
        self._pos += n
        return out

    def compact(self) -> None:
        del self._data[:self._pos]
        self._pos = 0

    async def fill(self, reader: ByteReader, size: int, chunk_size: int = READ_CHUNK_SIZE) -> bool:
        """Read until at least size bytes are buffered. False on EOF."""
        while len(self) < size:
            chunk = await reader.read(max(chunk_size, size - len(self)))
            if not chunk:
                return False
            self.feed(chunk)
        return True


def decode_metadata_block(block: bytes) -> str:
    """Decode a metadata block, preferring the first encoding showing StreamTitle=."""
    text = ""
    for encoding in METADATA_ENCODINGS:
        try:
            text = block.decode(encoding)
        except UnicodeDecodeError:
            logger.debug(f"Metadata block is not valid {encoding}")
            continue
        if STREAM_TITLE_MARKER in text:
            break
    return text


def extract_stream_title(text: str) -> str | None:
    """Value of the StreamTitle assignment, None when absent or empty."""
    text = text.replace("\x00", "").strip()
    if not text or text in _EMPTY_TITLES:
        return None

    m = _QUOTED_TITLE_RE.search(text)
    if m:
        return m.group(2).strip() or None

    m = _BARE_TITLE_RE.search(text)
    if m:
        return m.group(1).strip().strip("'\"").strip() or None
    return None


def parse_metadata_block(block: bytes, brands: Iterable[str] = ()) -> str | None:
    """Title carried by one metadata block, or None for empty blocks and idents."""
    title = extract_stream_title(decode_metadata_block(block))
    if title is None:
        return None
    if is_likely_station_name(title, brands):
        logger.debug(f"Ignoring station ident in stream metadata: {title!r}")
        return None
    return title


async def read_stream_title(reader: ByteReader, metaint: int, brands: Iterable[str] = (),
                            max_intervals: int = MAX_META_INTERVALS,
                            chunk_size: int = READ_CHUNK_SIZE) -> str | None:
    """Scan up to max_intervals metadata blocks of an ICY stream for a song title.

    Best effort: short reads, undecodable or malformed blocks and payload
    errors all yield None. Timeouts are left to the caller.
    """
    if metaint <= 0:
        return None
    brands = tuple(brands)
    buffer = MetadataBuffer()
    try:
        for interval in range(max_intervals):
            if not await buffer.fill(reader, metaint + 1, chunk_size):
                logger.debug(f"Stream ended before metadata interval {interval + 1}")
                return None
            buffer.skip(metaint)
            length = buffer.take(1)[0] * 16
            if length == 0:
                buffer.compact()
                continue

            if not await buffer.fill(reader, length, chunk_size):
                logger.debug("Stream ended inside a metadata block")
                return None
            block = buffer.take(length)
            buffer.compact()

            title = parse_metadata_block(block, brands)
            if title:
                return title
    except (aiohttp.ClientPayloadError, aiohttp.ClientConnectionError,
            asyncio.IncompleteReadError, ValueError) as e:
        logger.debug(f"ICY metadata read failed: {e}")
    return None


def scan_stream_title(chunk: bytes) -> str | None:
    """SHOUTcast v1 fallback: look for StreamTitle in the first bytes of a stream."""
    if not chunk:
        return None
    text = chunk[:SHOUTCAST_SCAN_BYTES].decode("utf-8", errors="replace")
    m = _QUOTED_TITLE_RE.search(text)
    if m:
        return m.group(2).strip() or None
    return None
