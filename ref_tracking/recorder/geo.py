"""GeoIP country lookup for click records."""

import ipaddress
import logging
from pathlib import Path
from typing import Optional

import geoip2.database
import geoip2.errors

log = logging.getLogger("ref_tracking.geo")


class GeoLookup:
    """Resolve an IP address to an ISO 3166-1 alpha-2 country code.

    Backed by a MaxMind GeoIP2/GeoLite2 Country database. Without a database,
    or for private/loopback/invalid addresses, the country code is "".

    Usage:
        geo = GeoLookup("/usr/share/GeoIP/GeoLite2-Country.mmdb")
        geo.country_code("8.8.8.8")  # "US"
    """

    def __init__(self, database_path: Optional[str] = None):
        self._reader: Optional[geoip2.database.Reader] = None
        self._database_path = database_path or ""

        if self._database_path:
            self._open()

    def _open(self) -> None:
        path = Path(self._database_path)
        if not path.exists():
            log.warning("GeoIP database not found: %s", path)
            return
        self._reader = geoip2.database.Reader(str(path))
        log.info("GeoIP database loaded: %s", path)

    @staticmethod
    def _is_public(ip: str) -> bool:
        try:
            addr = ipaddress.ip_address(ip)
        except ValueError:
            return False
        return addr.is_global

    def country_code(self, ip: Optional[str]) -> str:
        if not ip or self._reader is None or not self._is_public(ip):
            return ""
        try:
            return self._reader.country(ip).country.iso_code or ""
        except (geoip2.errors.AddressNotFoundError, ValueError) as e:
            log.debug("GeoIP lookup failed for %s: %s", ip, e)
            return ""

    def close(self) -> None:
        if self._reader is not None:
            self._reader.close()
            self._reader = None
