"""Service configuration read from the environment."""

import logging
import os
from dataclasses import dataclass

LOG_FORMAT = "%(asctime)s %(levelname)s %(message)s"

USER_AGENT = "Mozilla/5.0 (compatible; IcecastMetadataFetcher/1.0)"
BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


@dataclass(frozen=True)
class Settings:
    host: str = "0.0.0.0"
    port: int = 8787
    log_level: str = "INFO"

    # Seconds. The stream bound covers connect + first byte, the metadata
    # bound covers reading ICY intervals after the headers arrived.
    stream_timeout: float = 3.0
    metadata_timeout: float = 8.0
    api_timeout: float = 5.0
    max_meta_intervals: int = 3

    radioparadise_api_url: str = "https://api.radioparadise.com/api/now_playing"
    naxi_page_url: str = "https://www.naxi.rs/"
    radios_api_url: str = "https://www.radios.rs/wp-admin/admin-ajax.php"

    @classmethod
    def from_env(cls) -> "Settings":
        env = os.environ
        return cls(
            host=env.get("NOWPLAYING_HOST", cls.host),
            port=int(env.get("NOWPLAYING_PORT", str(cls.port))),
            log_level=env.get("NOWPLAYING_LOG_LEVEL", cls.log_level).upper(),
            stream_timeout=float(env.get("NOWPLAYING_STREAM_TIMEOUT", str(cls.stream_timeout))),
            metadata_timeout=float(env.get("NOWPLAYING_METADATA_TIMEOUT", str(cls.metadata_timeout))),
            api_timeout=float(env.get("NOWPLAYING_API_TIMEOUT", str(cls.api_timeout))),
            max_meta_intervals=int(env.get("NOWPLAYING_MAX_META_INTERVALS", str(cls.max_meta_intervals))),
            radioparadise_api_url=env.get("RADIOPARADISE_API_URL", cls.radioparadise_api_url),
            naxi_page_url=env.get("NAXI_PAGE_URL", cls.naxi_page_url),
            radios_api_url=env.get("RADIOS_API_URL", cls.radios_api_url),
        )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)
