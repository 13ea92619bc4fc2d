"""
Tests for the Flask API layer.

Uses the Flask test client against an app wired with a stubbed OpenSky
client, so every request runs through the real services and error
handlers without touching the network.
"""

import pytest

from skytrace.app import create_app
from skytrace.cache import TTLCache
from skytrace.errors import UpstreamRejected, UpstreamUnavailable
from skytrace.models.records import FlightRecord
from skytrace.services import (
    AirportMovementFinder,
    AirspaceService,
    FlightSummaryResolver,
    RouteResolver,
    Services,
    TrackService,
)

from .conftest import flight


@pytest.fixture
def services(client, airports, route_cache, summary_cache, clock):
    client.credentials = None
    client.stats = {'auth_mode': 'anonymous', 'requests': 0, 'errors': 0}

    routes = RouteResolver(client, route_cache, airports, timeout=10)
    movements = AirportMovementFinder(client, timeout=10, clock=clock)
    summaries = FlightSummaryResolver(
        client, routes, movements, airports, summary_cache, max_workers=2, clock=clock,
    )
    container = Services(
        client=client,
        airports=airports,
        airspace=AirspaceService(client, TTLCache(5, name='airspace', clock=clock)),
        routes=routes,
        summaries=summaries,
        tracks=TrackService(client),
        route_cache=route_cache,
    )
    yield container
    container.close()


@pytest.fixture
def api(services):
    app = create_app(services)
    app.config['TESTING'] = True
    return app.test_client()


class TestAirspaceEndpoint:

    def test_oversized_box_is_400(self, api, client):
        response = api.get('/api/airspace?lamin=0&lomin=0&lamax=30&lomax=30')

        assert response.status_code == 400
        assert response.get_json() == {'error': 'BBox too large'}
        client.get_states.assert_not_called()

    def test_non_numeric_coordinate_is_400(self, api):
        response = api.get('/api/airspace?lamin=abc&lomin=0&lamax=1&lomax=1')

        assert response.status_code == 400
        assert response.get_json() == {'error': 'Invalid lamin'}

    def test_returns_time_and_aircraft(self, api, client):
        client.get_states.return_value = (1700000000, [])

        response = api.get('/api/airspace?lamin=43&lomin=-80&lamax=44&lomax=-79')

        assert response.status_code == 200
        assert response.get_json() == {'time': 1700000000, 'aircraft': []}

    def test_upstream_server_error_is_502(self, api, client):
        client.get_states.side_effect = UpstreamUnavailable('OpenSky error 503')

        response = api.get('/api/airspace?lamin=43&lomin=-80&lamax=44&lomax=-79')

        assert response.status_code == 502
        assert response.get_json() == {'error': 'OpenSky error 503'}

    def test_upstream_client_error_status_passes_through(self, api, client):
        client.get_states.side_effect = UpstreamRejected('OpenSky error 429', status_code=429)

        response = api.get('/api/airspace?lamin=43&lomin=-80&lamax=44&lomax=-79')

        assert response.status_code == 429


class TestFlightSummaryEndpoint:

    def test_missing_icao24_is_400(self, api):
        response = api.get('/api/flight/summary')

        assert response.status_code == 400
        assert response.get_json() == {'error': 'Missing icao24'}

    def test_nothing_found_is_json_null(self, api):
        response = api.get('/api/flight/summary?icao24=abc123')

        assert response.status_code == 200
        assert response.get_json() is None

    def test_summary_document(self, api, client):
        client.get_flights_by_aircraft.return_value = [
            FlightRecord.from_api(flight(dep='EGLL', arr='KJFK', first_seen=100, last_seen=900)),
        ]
        client.get_route.return_value = {'callsign': 'BAW117', 'route': ['EGLL', 'KJFK']}

        response = api.get('/api/flight/summary?icao24=ABC123')
        data = response.get_json()

        assert response.status_code == 200
        assert data['icao24'] == 'abc123'
        assert data['callsign'] == 'BAW117'
        assert data['departureAirport'] == 'EGLL'
        assert data['arrivalAirport'] == 'KJFK'
        assert data['route'] == ['EGLL', 'KJFK']
        assert data['source'] == 'primary'
        assert data['departure'] == {
            'code': 'EGLL',
            'name': 'London Heathrow',
            'city': 'London',
            'country': 'United Kingdom',
            'time': 100,
        }
        assert data['arrival']['time'] == 900

    def test_history_failure_is_502(self, api, client):
        client.get_flights_by_aircraft.side_effect = UpstreamUnavailable('history down')

        response = api.get('/api/flight/summary?icao24=abc123')

        assert response.status_code == 502


class TestTrackEndpoint:

    def test_missing_icao24_is_400(self, api):
        assert api.get('/api/flight/track').status_code == 400

    def test_path_is_lat_lon_pairs(self, api, client):
        client.get_track.return_value = {
            'icao24': 'abc123',
            'callsign': 'BAW117',
            'startTime': 100,
            'endTime': 200,
            'path': [[100, 51.47, -0.45, 0, 270, True], [150, None, None, 0, 0, False]],
        }

        response = api.get('/api/flight/track?icao24=abc123')

        assert response.status_code == 200
        assert response.get_json()['path'] == [[51.47, -0.45]]


class TestRoutesEndpoint:

    def test_unknown_route_is_all_null(self, api):
        response = api.get('/api/routes/zzz999')

        assert response.status_code == 200
        assert response.get_json() == {
            'callsign': 'ZZZ999',
            'from': None,
            'to': None,
            'route': None,
            'fromAirport': None,
            'toAirport': None,
        }

    def test_known_route(self, api, client):
        client.get_route.return_value = {'callsign': 'BAW117', 'route': ['EGLL', 'KJFK']}

        data = api.get('/api/routes/BAW117').get_json()

        assert data['from'] == 'EGLL'
        assert data['to'] == 'KJFK'
        assert data['route'] == ['EGLL', 'KJFK']
        assert data['toAirport']['city'] == 'New York'

    def test_overlong_callsign_is_400(self, api, client, route_cache):
        response = api.get('/api/routes/' + 'X' * 40)

        assert response.status_code == 400
        assert response.get_json() == {'error': 'Invalid callsign'}
        client.get_route.assert_not_called()
        assert route_cache.stats['entries'] == 0

    def test_route_rejection_status_passes_through(self, api, client):
        client.get_route.side_effect = UpstreamRejected('Route error 404', status_code=404)

        response = api.get('/api/routes/BAW117')

        assert response.status_code == 404
        assert response.get_json() == {'error': 'Route error 404'}


class TestOperationalEndpoints:

    def test_health(self, api):
        response = api.get('/health')

        assert response.status_code == 200
        assert response.get_json() == {'status': 'ok'}

    def test_status_reports_caches(self, api):
        data = api.get('/api/status').get_json()

        assert data['status'] == 'healthy'
        assert data['oauth'] is None
        assert set(data['caches']) == {'airspace', 'summaries', 'routes'}
        assert data['caches']['routes']['persistent'] is False
        assert data['airports'] == 3

    def test_unknown_path_is_json_404(self, api):
        response = api.get('/api/nope')

        assert response.status_code == 404
        assert response.get_json() == {'error': 'Not found'}
