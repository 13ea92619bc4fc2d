"""
Tests for AirportMovementFinder.

Tests cover:
- Window computation, centred and trailing, and the 48h cap
- Case-insensitive aircraft matching
- Best-effort behavior on empty boards and upstream failures
"""

import pytest

from skytrace.errors import TokenRenewalError, UpstreamUnavailable
from skytrace.models.records import FlightRecord, MovementKind
from skytrace.services.movements import AirportMovementFinder

HOUR = 3600


@pytest.fixture
def finder(client, clock) -> AirportMovementFinder:
    return AirportMovementFinder(client, lookback_hours=3, max_window_hours=48, timeout=10, clock=clock)


class TestWindow:

    def test_centred_on_reference_time(self, finder):
        assert finder.window(1_000_000) == (1_000_000 - 3 * HOUR, 1_000_000 + 3 * HOUR)

    def test_trailing_window_ends_now(self, finder, clock):
        begin, end = finder.window()
        assert end == int(clock.now)
        assert end - begin == 3 * HOUR

    def test_centred_window_capped(self, client, clock):
        finder = AirportMovementFinder(client, lookback_hours=40, max_window_hours=48, clock=clock)
        begin, end = finder.window(1_000_000)
        assert end - begin == 48 * HOUR

    def test_trailing_window_capped(self, client, clock):
        finder = AirportMovementFinder(client, lookback_hours=100, max_window_hours=48, clock=clock)
        begin, end = finder.window()
        assert end - begin == 48 * HOUR


class TestFind:

    def test_matches_aircraft_case_insensitively(self, finder, client):
        client.get_airport_movements.return_value = [
            FlightRecord(icao24='111111', arrival_airport='EGLL'),
            FlightRecord(icao24='abc123', arrival_airport='EGLL', last_seen=500),
            FlightRecord(icao24='abc123', arrival_airport='EGLL', last_seen=900),
        ]

        record = finder.find(MovementKind.ARRIVAL, 'EGLL', 'ABC123', reference_time=600)

        assert record.last_seen == 500
        client.get_airport_movements.assert_called_once_with(
            MovementKind.ARRIVAL, 'EGLL', 600 - 3 * HOUR, 600 + 3 * HOUR, timeout=10,
        )

    def test_accepts_kind_as_string(self, finder, client):
        client.get_airport_movements.return_value = [FlightRecord(icao24='abc123')]

        assert finder.find('departure', 'EGLL', 'abc123') is not None
        assert client.get_airport_movements.call_args.args[0] is MovementKind.DEPARTURE

    def test_no_match_is_none(self, finder, client):
        client.get_airport_movements.return_value = [FlightRecord(icao24='111111')]
        assert finder.find(MovementKind.DEPARTURE, 'EGLL', 'abc123') is None

    def test_empty_board_is_none(self, finder, client):
        client.get_airport_movements.return_value = []
        assert finder.find(MovementKind.DEPARTURE, 'EGLL', 'abc123') is None

    @pytest.mark.parametrize('error', [
        UpstreamUnavailable('down'),
        TokenRenewalError('no token', status_code=401),
    ])
    def test_upstream_failure_is_none(self, finder, client, error):
        client.get_airport_movements.side_effect = error
        assert finder.find(MovementKind.ARRIVAL, 'EGLL', 'abc123') is None

    def test_missing_inputs_skip_network(self, finder, client):
        assert finder.find(MovementKind.ARRIVAL, None, 'abc123') is None
        assert finder.find(MovementKind.ARRIVAL, 'EGLL', '') is None
        client.get_airport_movements.assert_not_called()
