"""
Tests for AirportDirectory.
"""

from pathlib import Path

import pytest

from skytrace.airports import EMBEDDED_AIRPORTS, AirportDirectory


@pytest.fixture
def csv_file(tmp_path: Path) -> Path:
    path = tmp_path / 'airports.csv'
    path.write_text(
        'icao,iata,name,city,country\n'
        'EGLL,LHR,London Heathrow,London,United Kingdom\n'
        'KJFK,JFK,John F Kennedy Intl,New York,United States\n'
        # IATA alias colliding with an ICAO code
        'XXXX,EGLL,Impostor,Nowhere,Nowhere\n'
        ',,,,\n',
        encoding='utf-8',
    )
    return path


class TestLoading:

    def test_csv_rows_loaded(self, csv_file):
        directory = AirportDirectory.from_csv(csv_file)

        info = directory.get('egll')
        assert info.name == 'London Heathrow'
        assert info.country == 'United Kingdom'

    def test_iata_alias_resolves_to_icao_entry(self, csv_file):
        directory = AirportDirectory.from_csv(csv_file)

        assert directory.get('JFK').code == 'KJFK'

    def test_iata_alias_never_shadows_icao(self, csv_file):
        directory = AirportDirectory.from_csv(csv_file)

        assert directory.get('EGLL').name == 'London Heathrow'
        assert directory.get('XXXX').name == 'Impostor'

    def test_missing_file_uses_embedded_table(self, tmp_path):
        directory = AirportDirectory.from_csv(tmp_path / 'missing.csv')

        assert len(directory) == len(EMBEDDED_AIRPORTS)
        assert directory.get('LFPG').city == 'Paris'

    def test_empty_file_uses_embedded_table(self, tmp_path):
        path = tmp_path / 'empty.csv'
        path.write_text('icao,iata,name,city,country\n', encoding='utf-8')

        assert len(AirportDirectory.from_csv(path)) == len(EMBEDDED_AIRPORTS)

    def test_from_config_without_path(self):
        assert AirportDirectory.from_config(None).get('KJFK') is not None


class TestDetail:

    def test_known_code_with_time(self, airports):
        detail = airports.detail('kjfk', 900)

        assert detail.to_dict() == {
            'code': 'KJFK',
            'name': 'John F Kennedy Intl',
            'city': 'New York',
            'country': 'United States',
            'time': 900,
        }

    def test_unknown_code_keeps_code(self, airports):
        detail = airports.detail('ZZZZ')

        assert detail.code == 'ZZZZ'
        assert detail.name is None

    def test_blank_code_is_none(self, airports):
        assert airports.detail('  ') is None
        assert airports.get(None) is None
