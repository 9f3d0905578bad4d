import logging

from .providers import (
    GenericIcyAdapter,
    NaxiAdapter,
    ProviderAdapter,
    RadioParadiseAdapter,
    RadioSAdapter,
)
from .stations import STATIONS, StationTables, StreamTarget

logger = logging.getLogger(__name__)


def select_adapter(stream_url: str | None,
                   stations: StationTables = STATIONS) -> type[ProviderAdapter]:
    """Pick the adapter owning stream_url; unknown hosts get the generic ICY adapter.

    Hosts are matched exactly against the station tables. Checks run in a
    fixed order and the first match wins.
    """
    target = StreamTarget.from_url(stream_url)
    host = target.hostname

    if host in stations.naxi:
        adapter: type[ProviderAdapter] = NaxiAdapter
    elif host in stations.radios_hosts:
        adapter = RadioSAdapter
    elif host in stations.radioparadise_hosts:
        adapter = RadioParadiseAdapter
    else:
        adapter = GenericIcyAdapter

    logger.debug(f"Routing {target.netloc or stream_url!r} to {adapter.name}")
    return adapter
