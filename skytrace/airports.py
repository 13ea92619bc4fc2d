"""
Airport directory - static name/city/country lookup by airport code.

OpenSky reports airports by ICAO code (e.g. 'KJFK'). The directory maps
those codes to display data. Data can come from:
1. A CSV file (AIRPORTS_CSV), columns: icao,iata,name,city,country
2. Embedded fallback data for major airports

The directory is loaded once at startup and never modified afterwards,
so lookups need no locking.

Usage:
    from skytrace.airports import AirportDirectory

    directory = AirportDirectory.from_csv(Path('airports.csv'))
    info = directory.get('EGLL')
    print(info.city)  # 'London'
"""

import csv
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

from skytrace.models.records import AirportDetail

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AirportInfo:
    """Static airport information."""
    code: str
    name: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None


# Major airports for display enrichment when no dataset is configured
# (ICAO code, Name, City, Country)
EMBEDDED_AIRPORTS = (
    ('KATL', 'Hartsfield-Jackson Atlanta Intl', 'Atlanta', 'United States'),
    ('KBOS', 'Boston Logan Intl', 'Boston', 'United States'),
    ('KDEN', 'Denver Intl', 'Denver', 'United States'),
    ('KDFW', 'Dallas Fort Worth Intl', 'Dallas', 'United States'),
    ('KJFK', 'John F Kennedy Intl', 'New York', 'United States'),
    ('KLAX', 'Los Angeles Intl', 'Los Angeles', 'United States'),
    ('KMIA', 'Miami Intl', 'Miami', 'United States'),
    ('KORD', "Chicago O'Hare Intl", 'Chicago', 'United States'),
    ('KSEA', 'Seattle-Tacoma Intl', 'Seattle', 'United States'),
    ('KSFO', 'San Francisco Intl', 'San Francisco', 'United States'),
    ('CYYZ', 'Toronto Pearson Intl', 'Toronto', 'Canada'),
    ('CYUL', 'Montreal Trudeau Intl', 'Montreal', 'Canada'),
    ('CYVR', 'Vancouver Intl', 'Vancouver', 'Canada'),
    ('CYOW', 'Ottawa Macdonald-Cartier Intl', 'Ottawa', 'Canada'),
    ('EGLL', 'London Heathrow', 'London', 'United Kingdom'),
    ('EGKK', 'London Gatwick', 'London', 'United Kingdom'),
    ('LFPG', 'Paris Charles de Gaulle', 'Paris', 'France'),
    ('EDDF', 'Frankfurt am Main', 'Frankfurt', 'Germany'),
    ('EDDM', 'Munich', 'Munich', 'Germany'),
    ('EHAM', 'Amsterdam Schiphol', 'Amsterdam', 'Netherlands'),
    ('LEMD', 'Adolfo Suarez Madrid-Barajas', 'Madrid', 'Spain'),
    ('LIRF', 'Rome Fiumicino', 'Rome', 'Italy'),
    ('LSZH', 'Zurich', 'Zurich', 'Switzerland'),
    ('OMDB', 'Dubai Intl', 'Dubai', 'United Arab Emirates'),
    ('RJTT', 'Tokyo Haneda', 'Tokyo', 'Japan'),
    ('VHHH', 'Hong Kong Intl', 'Hong Kong', 'China'),
    ('WSSS', 'Singapore Changi', 'Singapore', 'Singapore'),
    ('YSSY', 'Sydney Kingsford Smith', 'Sydney', 'Australia'),
)


def normalize_code(code: Optional[str]) -> Optional[str]:
    if not code or not isinstance(code, str):
        return None
    return code.strip().upper() or None


class AirportDirectory:
    """Read-only airport lookup keyed by ICAO (and IATA, when known) code."""

    def __init__(self, airports: Dict[str, AirportInfo]):
        self._airports = airports

    @classmethod
    def embedded(cls) -> 'AirportDirectory':
        """Directory built from the embedded fallback table."""
        airports = {
            icao: AirportInfo(code=icao, name=name, city=city, country=country)
            for icao, name, city, country in EMBEDDED_AIRPORTS
        }
        return cls(airports)

    @classmethod
    def from_csv(cls, csv_path: Path) -> 'AirportDirectory':
        """
        Load airports from CSV.

        Falls back to the embedded table when the file is missing or has
        no usable rows.
        """
        if not csv_path.exists():
            logger.error(f'Airport CSV not found: {csv_path}')
            return cls.embedded()

        logger.info(f'Loading airport data from {csv_path}')
        airports: Dict[str, AirportInfo] = {}

        with open(csv_path, 'r', encoding='utf-8', errors='ignore') as f:
            reader = csv.DictReader(f)

            for row in reader:
                icao = normalize_code(row.get('icao'))
                iata = normalize_code(row.get('iata'))
                if not icao and not iata:
                    continue

                info = AirportInfo(
                    code=icao or iata,
                    name=(row.get('name') or '').strip() or None,
                    city=(row.get('city') or '').strip() or None,
                    country=(row.get('country') or '').strip() or None,
                )
                if icao:
                    airports[icao] = info
                # IATA aliases never shadow a real ICAO entry
                if iata and iata not in airports:
                    airports[iata] = info

        if not airports:
            logger.warning(f'No airports parsed from {csv_path}, using embedded table')
            return cls.embedded()

        logger.info(f'Loaded {len(airports)} airport codes')
        return cls(airports)

    @classmethod
    def from_config(cls, csv_path: Optional[str]) -> 'AirportDirectory':
        if csv_path:
            return cls.from_csv(Path(csv_path))
        return cls.embedded()

    def get(self, code: Optional[str]) -> Optional[AirportInfo]:
        code = normalize_code(code)
        if not code:
            return None
        return self._airports.get(code)

    def detail(self, code: Optional[str], time: Optional[int] = None) -> Optional[AirportDetail]:
        """
        AirportDetail for a code, stamped with a movement time.

        Unknown codes still yield a detail carrying just the code.
        """
        code = normalize_code(code)
        if not code:
            return None

        info = self._airports.get(code)
        if info is None:
            return AirportDetail(code=code, time=time)

        return AirportDetail(
            code=code,
            name=info.name,
            city=info.city,
            country=info.country,
            time=time,
        )

    def __len__(self) -> int:
        return len(self._airports)
