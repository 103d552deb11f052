from __future__ import annotations

import csv
import io
import logging
import urllib.error
import urllib.request
from collections.abc import Callable

from packages.shared.schemas.station_v1 import DutyStationV1
from services.api.app.services.cache import TTLCache

logger = logging.getLogger(__name__)

DEFAULT_STATIONS_CSV_URL = (
    "https://raw.githubusercontent.com/CEB-HLCM/HR-Public-Codes/refs/heads/main/DSCITYCD.csv"
)

_STATIONS_CACHE_KEY = "duty_stations"


class ReferenceDataError(Exception):
    """Raised when the reference dataset cannot be fetched."""


def _fetch_text(url: str) -> str:
    try:
        with urllib.request.urlopen(url, timeout=30) as resp:
            return resp.read().decode("utf-8-sig")
    except urllib.error.HTTPError as e:
        raise ReferenceDataError(f"HTTP {e.code} fetching {url}") from e
    except (urllib.error.URLError, OSError) as e:
        raise ReferenceDataError(f"Failed to fetch {url}: {e}") from e


def _coordinate(raw: str) -> float:
    # The published dataset uses a decimal comma in some rows.
    try:
        return float((raw or "0").strip().replace(",", "."))
    except ValueError:
        return 0.0


def parse_stations_csv(text: str) -> list[DutyStationV1]:
    stations: list[DutyStationV1] = []
    for row in csv.DictReader(io.StringIO(text.strip())):
        code = (row.get("CITY_CODE") or "").strip()
        if not code:
            continue
        stations.append(
            DutyStationV1(
                code=code,
                country_code=(row.get("COUNTRY_CODE") or "").strip(),
                name=(row.get("CITY_NAME") or "").strip(),
                common_name=(row.get("CITY_COMMON_NAME") or "").strip(),
                latitude=_coordinate(row.get("LATITUDE", "")),
                longitude=_coordinate(row.get("LONGITUDE", "")),
                obsolete=(row.get("OBSOLETE") or "0").strip() == "1",
                region=(row.get("REGION") or "").strip(),
            )
        )
    return stations


class ReferenceDataClient:
    """Read access to the published duty station dataset, cached in ``cache``."""

    def __init__(
        self,
        cache: TTLCache,
        *,
        url: str = DEFAULT_STATIONS_CSV_URL,
        fetch: Callable[[str], str] = _fetch_text,
    ) -> None:
        self._cache = cache
        self._url = url
        self._fetch = fetch

    def stations(self) -> list[DutyStationV1]:
        cached = self._cache.get(_STATIONS_CACHE_KEY)
        if cached is not None:
            return cached

        stations = parse_stations_csv(self._fetch(self._url))
        logger.info("Loaded %d duty stations from %s", len(stations), self._url)
        self._cache.set(_STATIONS_CACHE_KEY, stations)
        return stations

    def get_station(self, code: str) -> DutyStationV1 | None:
        code = code.strip().upper()
        for station in self.stations():
            if station.code.upper() == code:
                return station
        return None
