"""Async GeoIP wrapper around the synchronous geoip2 library.

geoip2 reads from a local GeoLite2-City .mmdb file and is blocking.
Calls are wrapped in asyncio.to_thread() to avoid blocking the event loop.

- Returns an empty GeoLocation when the database file is missing or the
  lookup fails; verification never fails because of geolocation.
- Lazy-loads the reader on first use (double-checked locking with asyncio.Lock).
"""

import asyncio
from dataclasses import dataclass
from typing import Optional

import geoip2.database
import geoip2.errors
import maxminddb

from shared.logging import get_logger

log = get_logger(__name__)


@dataclass(frozen=True)
class GeoLocation:
    country_code: Optional[str] = None  # ISO 3166-1 alpha-2
    city: Optional[str] = None


UNKNOWN_LOCATION = GeoLocation()


class GeoIPService:
    def __init__(self, city_db_path: str) -> None:
        self._city_db_path = city_db_path
        self._reader: Optional[geoip2.database.Reader] = None
        self._loaded = False
        self._lock = asyncio.Lock()

    async def _get_reader(self) -> Optional[geoip2.database.Reader]:
        if not self._loaded:
            async with self._lock:
                if not self._loaded:
                    try:
                        self._reader = await asyncio.to_thread(
                            geoip2.database.Reader, self._city_db_path
                        )
                    except (OSError, maxminddb.InvalidDatabaseError) as e:
                        log.warning(
                            "geoip_db_unavailable",
                            path=self._city_db_path,
                            error=str(e),
                            error_type=type(e).__name__,
                        )
                        self._reader = None
                    self._loaded = True
        return self._reader

    async def lookup(self, ip_address: Optional[str]) -> GeoLocation:
        if not ip_address:
            return UNKNOWN_LOCATION
        reader = await self._get_reader()
        if reader is None:
            return UNKNOWN_LOCATION
        try:
            result = await asyncio.to_thread(reader.city, ip_address)
        except (
            geoip2.errors.AddressNotFoundError,
            ValueError,
            maxminddb.InvalidDatabaseError,
        ):
            return UNKNOWN_LOCATION
        return GeoLocation(
            country_code=result.country.iso_code,
            city=result.city.name,
        )

    def close(self) -> None:
        if self._reader is not None:
            self._reader.close()
            self._reader = None
            self._loaded = False
