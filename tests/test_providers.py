"""Tests for the provider adapters against in-process fake upstreams."""

import asyncio

import pytest
from aiohttp import web

from nowplaying.config import Settings
from nowplaying.models import NowPlayingResult
from nowplaying.providers import GenericIcyAdapter, NaxiAdapter, RadioParadiseAdapter, RadioSAdapter
from nowplaying.providers.base import join_artist_title
from nowplaying.providers.naxi import extract_now_playing
from nowplaying.providers.radios import first_played, parse_reply
from nowplaying.providers.stream import stream_client_timeout
from nowplaying.responses import success_payload
from nowplaying.stations import StationTables, StreamTarget

from conftest import icy_handler, icy_stream

NAXI_PAGE = """
<html><body>
<div class="stations">
  <div class="station-data" data-station="rock">
    <p class="artist">Riblja Čorba</p>
    <p class="song">Lutka sa naslovne strane</p>
  </div>
  <div class="station-data" data-station="jazz">
    <p class="artist">Miles Davis</p>
    <p class="song">So What</p>
  </div>
  <div class="station-data" data-station="cafe">
    <p class="artist">Naxi Cafe</p>
    <p class="song">Naxi Cafe Radio</p>
  </div>
</div>
</body></html>
"""

NAXI_CLASS_PAGE = """
<div class="station-data">
  <p class="artist exyu">Bajaga</p>
  <p class="song exyu">Moji drugovi</p>
</div>
<div class="station-data">
  <p class="artist exyurock">Partibrejkers</p>
  <p class="song exyurock">Hoću da znam</p>
</div>
"""


def reply(status: int = 200, **kwargs):
    """Handler answering every request with the same canned response."""

    async def handler(request: web.Request) -> web.Response:
        return web.Response(status=status, **kwargs)

    return handler


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

class TestJoinArtistTitle:

    def test_both(self):
        assert join_artist_title(" Pink Floyd ", "Time ") == "Pink Floyd - Time"

    def test_title_only(self):
        assert join_artist_title("", "Time") == "Time"

    def test_missing(self):
        assert join_artist_title("Pink Floyd", None) is None
        assert join_artist_title(None, 42) is None


# ---------------------------------------------------------------------------
# Naxi HTML extraction
# ---------------------------------------------------------------------------

class TestNaxiExtraction:

    def test_picks_requested_station_not_first(self):
        assert extract_now_playing(NAXI_PAGE, "jazz") == "Miles Davis - So What"
        assert extract_now_playing(NAXI_PAGE, "rock") == "Riblja Čorba - Lutka sa naslovne strane"

    def test_brand_entry_rejected(self):
        assert extract_now_playing(NAXI_PAGE, "cafe") is None

    def test_unknown_station(self):
        assert extract_now_playing(NAXI_PAGE, "house") is None

    def test_class_scoped_entries(self):
        assert extract_now_playing(NAXI_CLASS_PAGE, "exyurock") == "Partibrejkers - Hoću da znam"
        assert extract_now_playing(NAXI_CLASS_PAGE, "exyu") == "Bajaga - Moji drugovi"

    def test_empty_station_block_does_not_borrow_next(self):
        html = ('<div data-station="rock"></div>'
                '<div data-station="jazz"><p class="artist">Miles Davis</p><p class="song">So What</p></div>')
        assert extract_now_playing(html, "rock") is None

    def test_entities_decoded(self):
        html = ('<div class="station-data" data-station="rock">'
                '<p class="artist">Riblja &#268;orba</p><p class="song">Don&#8217;t Stop &amp; Go</p></div>')
        title = extract_now_playing(html, "rock")
        assert title == "Riblja Čorba - Don\u2019t Stop & Go"
        assert success_payload(NowPlayingResult.found(title, False))["title"] == title


class TestNaxiAdapter:

    async def test_website(self, aiohttp_server, session, make_settings):
        app = web.Application()
        app.router.add_get("/", reply(text=NAXI_PAGE, content_type="text/html"))
        server = await aiohttp_server(app)

        adapter = NaxiAdapter(session, make_settings(naxi_page_url=str(server.make_url("/"))))
        target = StreamTarget.from_url("https://naxidigital-jazz128ssl.streaming.rs:8172/;stream.nsv")
        result = await adapter.resolve(target)

        assert result.ok
        assert result.raw_title == "Miles Davis - So What"
        assert result.is_station_name is False
        assert result.quality.source == "naxi-website"

    async def test_falls_back_to_stream(self, aiohttp_server, session, make_settings):
        app = web.Application()
        app.router.add_get("/", reply(500))
        app.router.add_get("/stream", icy_handler(icy_stream("StreamTitle='Van Gogh - Klatno';")))
        server = await aiohttp_server(app)

        stations = StationTables.from_dict({"naxi": {"stations": {"127.0.0.1": "rock"}}})
        adapter = NaxiAdapter(session, make_settings(naxi_page_url=str(server.make_url("/"))), stations)
        result = await adapter.resolve(StreamTarget.from_url(str(server.make_url("/stream"))))

        assert result.raw_title == "Van Gogh - Klatno"
        assert result.quality.source == "naxi-stream"

    async def test_nothing_found(self, aiohttp_server, session, make_settings):
        app = web.Application()
        app.router.add_get("/", reply(text="<html></html>", content_type="text/html"))
        app.router.add_get("/stream", icy_handler(icy_stream("StreamTitle='Naxi Radio';")))
        server = await aiohttp_server(app)

        stations = StationTables.from_dict({"naxi": {"stations": {"127.0.0.1": "rock"}}})
        adapter = NaxiAdapter(session, make_settings(naxi_page_url=str(server.make_url("/"))), stations)
        result = await adapter.resolve(StreamTarget.from_url(str(server.make_url("/stream"))))

        assert not result.ok
        assert result.status == 404
        assert result.error == "Naxi: No metadata found"


# ---------------------------------------------------------------------------
# Radio Paradise
# ---------------------------------------------------------------------------

class TestRadioParadiseAdapter:

    @pytest.fixture()
    async def api(self, aiohttp_server):
        """Fake now_playing API; responses keyed by channel id."""
        requests: list[str] = []
        replies: dict[str, web.Response | dict] = {}

        async def handler(request):
            chan = request.query.get("chan", "")
            requests.append(chan)
            reply = replies.get(chan)
            if reply is None:
                return web.Response(status=404)
            if isinstance(reply, dict):
                return web.json_response(reply)
            return reply

        app = web.Application()
        app.router.add_get("/api/now_playing", handler)
        server = await aiohttp_server(app)
        return server, requests, replies

    async def test_main_channel(self, api, session, make_settings):
        server, requests, replies = api
        replies["0"] = {"artist": "Pink Floyd", "title": "Time", "album": "The Dark Side of the Moon"}
        adapter = RadioParadiseAdapter(session, make_settings(
            radioparadise_api_url=str(server.make_url("/api/now_playing"))))

        result = await adapter.resolve(StreamTarget.from_url("https://stream.radioparadise.com/aac-320"))

        assert result.raw_title == "Pink Floyd - Time"
        assert result.quality.format == "AAC"
        assert result.quality.bitrate == "320"
        assert requests == ["0"]

    async def test_404_falls_back_to_default_once(self, api, session, make_settings):
        server, requests, replies = api
        replies["0"] = {"artist": "Talk Talk", "title": "Life's What You Make It"}
        adapter = RadioParadiseAdapter(session, make_settings(
            radioparadise_api_url=str(server.make_url("/api/now_playing"))))

        result = await adapter.resolve(StreamTarget.from_url("https://stream.radioparadise.com/mellow-320"))

        assert result.raw_title == "Talk Talk - Life's What You Make It"
        assert requests == ["1", "0"]

    async def test_default_channel_404_is_not_retried(self, api, session, make_settings):
        server, requests, _ = api
        adapter = RadioParadiseAdapter(session, make_settings(
            radioparadise_api_url=str(server.make_url("/api/now_playing"))))

        result = await adapter.resolve(StreamTarget.from_url("https://stream.radioparadise.com/flac"))

        assert result.status == 503
        assert result.error == "Radio Paradise: API request failed: 404"
        assert requests == ["0"]

    async def test_api_error_is_503(self, api, session, make_settings):
        server, _, replies = api
        replies["2"] = web.Response(status=500)
        adapter = RadioParadiseAdapter(session, make_settings(
            radioparadise_api_url=str(server.make_url("/api/now_playing"))))

        result = await adapter.resolve(StreamTarget.from_url("https://stream.radioparadise.com/rock-320"))

        assert result.status == 503
        assert result.error == "Radio Paradise: API request failed: 500"

    async def test_unknown_channel_is_400(self, session, settings):
        adapter = RadioParadiseAdapter(session, settings)
        result = await adapter.resolve(StreamTarget.from_url("https://stream.radioparadise.com/polka-64"))
        assert result.status == 400
        assert result.error == "Radio Paradise: Unknown Radio Paradise station"

    async def test_empty_document_is_404(self, api, session, make_settings):
        server, _, replies = api
        replies["0"] = {"artist": "", "title": ""}
        adapter = RadioParadiseAdapter(session, make_settings(
            radioparadise_api_url=str(server.make_url("/api/now_playing"))))

        result = await adapter.resolve(StreamTarget.from_url("https://stream.radioparadise.com/aac-128"))

        assert result.status == 404


# ---------------------------------------------------------------------------
# Radio S
# ---------------------------------------------------------------------------

class TestRadioSReplies:

    def test_direct_fields(self):
        assert parse_reply({"artist": "Zdravko Čolić", "title": "Ti si mi u krvi"}) == \
            "Zdravko Čolić - Ti si mi u krvi"

    def test_nested_data(self):
        assert parse_reply({"success": True, "data": {"artist": "A", "title": "B"}}) == "A - B"

    def test_last_five_fragment(self):
        fragment = (
            '<h3>Poslednjih pet</h3><ul class="last-five">'
            '<li><span class="artist">Ceca</span> - <span class="title">Beograd</span></li>'
            '<li><span class="artist">Lepa Brena</span> - <span class="title">Jugoslovenka</span></li>'
            '</ul>'
        )
        assert parse_reply({"html": fragment}) == "Ceca - Beograd"

    def test_entities_in_fields(self):
        assert parse_reply({"artist": "Beyonc&eacute;", "title": "Don&#8217;t Hurt Yourself"}) == \
            "Beyoncé - Don\u2019t Hurt Yourself"

    def test_entities_in_fragment(self):
        fragment = '<ul class="last-five"><li><span class="artist">&#272;or&#273;e Bala&scaron;evi&#263;</span>' \
                   ' - <span class="title">Ratovi</span></li></ul>'
        assert first_played(fragment) == "Đorđe Balašević - Ratovi"

    def test_plain_list_items(self):
        assert first_played("<ol><li>Bajaga - 442 do Beograda</li><li>Old - Song</li></ol>") == \
            "Bajaga - 442 do Beograda"

    @pytest.mark.parametrize("data", [None, 0, "0", [], {}, {"html": "<ul></ul>"}])
    def test_nothing(self, data):
        assert parse_reply(data) is None


class TestRadioSAdapter:

    async def test_form_post(self, aiohttp_server, session, make_settings):
        received = {}

        async def handler(request):
            received.update(await request.post())
            return web.json_response({"artist": "Ceca", "title": "Beograd"})

        app = web.Application()
        app.router.add_post("/ajax", handler)
        server = await aiohttp_server(app)
        adapter = RadioSAdapter(session, make_settings(radios_api_url=str(server.make_url("/ajax"))))

        result = await adapter.resolve(StreamTarget.from_url("http://stream.radios.rs:9010/;stream.nsv"))

        assert result.raw_title == "Ceca - Beograd"
        assert received["station"] == "s2"
        assert received["action"] == "radios_now_playing"
        assert received["nonce"] == ""
        assert received["page"] == ""

    async def test_falls_back_to_stream(self, aiohttp_server, session, make_settings):
        app = web.Application()
        app.router.add_post("/ajax", reply(503))
        app.router.add_get("/s1", icy_handler(icy_stream("StreamTitle='Ceca - Beograd';")))
        server = await aiohttp_server(app)

        stations = StationTables.from_dict({"radios": {"hosts": ["127.0.0.1"], "ports": {str(server.port): "s1"}}})
        adapter = RadioSAdapter(session, make_settings(radios_api_url=str(server.make_url("/ajax"))), stations)
        result = await adapter.resolve(StreamTarget.from_url(str(server.make_url("/s1"))))

        assert result.raw_title == "Ceca - Beograd"
        assert result.quality.source == "radios-stream"

    async def test_unknown_port_is_400(self, session, settings):
        adapter = RadioSAdapter(session, settings)
        result = await adapter.resolve(StreamTarget.from_url("http://stream.radios.rs:1234/"))
        assert result.status == 400
        assert result.error == "Radio S: Unknown Radio S station"


# ---------------------------------------------------------------------------
# Generic ICY
# ---------------------------------------------------------------------------

class TestGenericIcyAdapter:

    async def test_in_band_title(self, aiohttp_server, session, settings):
        app = web.Application()
        app.router.add_get("/live", icy_handler(icy_stream(None, "StreamTitle='Daft Punk - One More Time';")))
        server = await aiohttp_server(app)

        result = await GenericIcyAdapter(session, settings).resolve(
            StreamTarget.from_url(str(server.make_url("/live"))))

        assert result.ok
        assert result.raw_title == "Daft Punk - One More Time"
        assert result.is_station_name is False
        assert result.quality.bitrate == "128"
        assert result.quality.meta_interval == 100
        assert result.quality.icy_headers_present is True
        assert result.quality.public()["format"] == "MP3"

    async def test_icy_title_header(self, aiohttp_server, session, settings):
        app = web.Application()
        app.router.add_get("/live", icy_handler(icy_stream(None), icy_title="Moby - Porcelain"))
        server = await aiohttp_server(app)

        result = await GenericIcyAdapter(session, settings).resolve(
            StreamTarget.from_url(str(server.make_url("/live"))))

        assert result.raw_title == "Moby - Porcelain"
        assert result.quality.source == "icy-header"

    async def test_station_ident_only(self, aiohttp_server, session, settings):
        app = web.Application()
        app.router.add_get("/live", icy_handler(icy_stream("StreamTitle='Best Radio Hits 24/7';")))
        server = await aiohttp_server(app)

        result = await GenericIcyAdapter(session, settings).resolve(
            StreamTarget.from_url(str(server.make_url("/live"))))

        assert result.ok
        assert result.raw_title is None
        assert result.is_station_name is True

    async def test_shoutcast_v1_scan(self, aiohttp_server, session, settings):
        async def handler(request):
            return web.Response(body=b"\xff\xfbStreamTitle='Air - Talisman';",
                                headers={"Content-Type": "audio/mpeg"})

        app = web.Application()
        app.router.add_get("/live", handler)
        server = await aiohttp_server(app)

        result = await GenericIcyAdapter(session, settings).resolve(
            StreamTarget.from_url(str(server.make_url("/live"))))

        assert result.raw_title == "Air - Talisman"
        assert result.quality.source == "shoutcast-v1"
        assert result.quality.icy_headers_present is False

    async def test_upstream_error_status(self, aiohttp_server, session, settings):
        app = web.Application()
        app.router.add_get("/live", reply(404))
        server = await aiohttp_server(app)

        result = await GenericIcyAdapter(session, settings).resolve(
            StreamTarget.from_url(str(server.make_url("/live"))))

        assert result.status == 503

    async def test_timeout(self, aiohttp_server, session, make_settings):
        async def slow(request):
            await asyncio.sleep(2)
            return web.Response(status=200)

        app = web.Application()
        app.router.add_get("/live", slow)
        server = await aiohttp_server(app)

        result = await GenericIcyAdapter(session, make_settings(stream_timeout=0.2)).resolve(
            StreamTarget.from_url(str(server.make_url("/live"))))

        assert result.status == 500
        assert result.error == "Request timeout"
        assert result.quality.response_time is not None

    async def test_connection_refused(self, unused_tcp_port, session, settings):
        result = await GenericIcyAdapter(session, settings).resolve(
            StreamTarget.from_url(f"http://127.0.0.1:{unused_tcp_port}/live"))

        assert result.status == 500
        assert result.error.startswith("Stream connection failed")

    async def test_trickled_headers_time_out(self, session, make_settings):
        async def trickle(reader, writer):
            await reader.readuntil(b"\r\n\r\n")
            writer.write(b"HTTP/1.1 200 OK\r\n")
            try:
                for i in range(20):
                    writer.write(f"X-Filler-{i}: x\r\n".encode())
                    await writer.drain()
                    await asyncio.sleep(0.1)
            except ConnectionError:
                pass
            finally:
                writer.close()

        server = await asyncio.start_server(trickle, "127.0.0.1", 0)
        port = server.sockets[0].getsockname()[1]
        try:
            result = await GenericIcyAdapter(session, make_settings(stream_timeout=0.3)).resolve(
                StreamTarget.from_url(f"http://127.0.0.1:{port}/live"))
        finally:
            server.close()

        assert result.status == 500
        assert result.error == "Request timeout"
        assert result.quality.response_time < 1500


def test_stream_timeout_bounds_connection_setup():
    timeout = stream_client_timeout(Settings(stream_timeout=3.0))
    assert timeout.total is None
    assert timeout.connect == 3.0
    assert timeout.sock_connect == 3.0
    assert timeout.sock_read == 3.0
