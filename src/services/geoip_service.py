"""
GeoIP lookup service.
Maps a client address to a coarse country/city using a local MaxMind database.
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional

import geoip2.database
import geoip2.errors
from fastapi import Request

logger = logging.getLogger(__name__)

# Characters of the address kept in diagnostic output
LOG_IP_PREFIX_LENGTH = 7


@dataclass(frozen=True)
class GeoIPResult:
    country: Optional[str] = None
    city: Optional[str] = None


def _redact_ip(raw_ip: str) -> str:
    return f"{raw_ip[:LOG_IP_PREFIX_LENGTH]}..."


class GeoIPService:
    """
    Offline IP-to-location resolver.

    The reader is opened once and only read afterwards, so one instance is
    shared by all requests. A missing database file disables lookups.
    """

    def __init__(self, db_path: Optional[str] = None, reader=None):
        """
        Initialize the GeoIP service.

        Args:
            db_path: Path to a GeoLite2/GeoIP2 City or Country .mmdb file
            reader: Pre-built reader, mainly for tests
        """
        self.db_path = db_path
        self.reader = reader
        self.logger = logger
        if self.reader is None and db_path:
            self.reader = self._open_reader(db_path)
        self.database_type = self._read_database_type()

    def _open_reader(self, db_path: str):
        if not os.path.exists(db_path):
            self.logger.warning(f"GeoIP database not found at {db_path}; location lookups disabled")
            return None
        try:
            return geoip2.database.Reader(db_path)
        except Exception as e:
            self.logger.warning(f"Could not open GeoIP database {db_path}: {str(e)}")
            return None

    @property
    def is_available(self) -> bool:
        return self.reader is not None

    def _read_database_type(self) -> str:
        if self.reader is None:
            return ""
        try:
            database_type = self.reader.metadata().database_type or ""
        except Exception as e:
            self.logger.warning(f"Could not read GeoIP database metadata: {str(e)}")
            return ""
        self.logger.info(f"GeoIP database loaded: {database_type}")
        return database_type

    def _is_city_database(self) -> bool:
        return "City" in self.database_type

    def lookup(self, raw_ip: Optional[str]) -> GeoIPResult:
        """
        Look up the location of an address.

        Args:
            raw_ip: IPv4 or IPv6 address

        Returns:
            GeoIPResult; both fields None when the lookup is not possible
        """
        if not isinstance(raw_ip, str) or not raw_ip.strip():
            return GeoIPResult()

        if self.reader is None:
            return GeoIPResult()

        ip = raw_ip.strip()
        try:
            if self._is_city_database():
                response = self.reader.city(ip)
                city = response.city.name or None
            else:
                response = self.reader.country(ip)
                city = None

            country = response.country.iso_code or response.registered_country.iso_code or None
            return GeoIPResult(country=country, city=city)

        except (geoip2.errors.AddressNotFoundError, ValueError):
            self.logger.warning(f"GeoIP lookup failed for IP (truncated): {_redact_ip(ip)}")
            return GeoIPResult()
        except Exception as e:
            self.logger.warning(f"GeoIP lookup error: {type(e).__name__}")
            return GeoIPResult()

    def close(self) -> None:
        if self.reader is not None:
            try:
                self.reader.close()
            except Exception as e:
                self.logger.warning(f"Error closing GeoIP database: {str(e)}")
            self.reader = None


def get_geoip_service(request: Request) -> GeoIPService:
    """Return the process-wide GeoIP service stored on the application state."""
    service = getattr(request.app.state, "geoip", None)
    if service is None:
        service = GeoIPService()
        request.app.state.geoip = service
    return service
