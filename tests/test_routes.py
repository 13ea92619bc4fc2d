"""
Tests for RouteResolver.

Tests cover:
- Callsign normalization and blank callsigns
- Negative results cached as NO_ROUTE
- Upstream failures propagated and not cached
- Airport enrichment of origin and destination
"""

import pytest

from skytrace.cache import MISSING
from skytrace.errors import UpstreamRejected, UpstreamUnavailable, ValidationError
from skytrace.models.records import NO_ROUTE
from skytrace.services.routes import RouteResolver, parse_route_codes


@pytest.fixture
def resolver(client, route_cache, airports) -> RouteResolver:
    return RouteResolver(client, route_cache, airports, timeout=10)


class TestParseRouteCodes:

    def test_valid_route(self):
        assert parse_route_codes({'route': ['egll', ' KJFK ']}) == ('EGLL', 'KJFK')

    @pytest.mark.parametrize('data', [
        None,
        [],
        {},
        {'route': []},
        {'route': 'EGLL-KJFK'},
        {'route': ['EGLL', None]},
    ])
    def test_empty_or_malformed(self, data):
        assert parse_route_codes(data) is None


class TestRouteResolver:

    def test_blank_callsign_skips_network(self, resolver, client):
        assert resolver.resolve('   ') is None
        assert resolver.resolve(None) is None
        client.get_route.assert_not_called()

    def test_unknown_callsign_twice_calls_upstream_once(self, resolver, client, route_cache):
        client.get_route.return_value = {'callsign': 'ZZZ999', 'route': []}

        assert resolver.resolve('ZZZ999') is None
        assert resolver.resolve('zzz999 ') is None

        assert client.get_route.call_count == 1
        assert route_cache.get('ZZZ999', MISSING) is NO_ROUTE

    def test_route_enriched_with_airports(self, resolver, client):
        client.get_route.return_value = {'callsign': 'BAW117', 'route': ['EGLL', 'CYYZ', 'KJFK']}

        route = resolver.resolve(' baw117')

        client.get_route.assert_called_once_with('BAW117', timeout=10)
        assert route.airports == ('EGLL', 'CYYZ', 'KJFK')
        assert route.origin_code == 'EGLL'
        assert route.destination_code == 'KJFK'
        assert route.origin_detail.city == 'London'
        assert route.destination_detail.name == 'John F Kennedy Intl'

    def test_positive_result_served_from_cache(self, resolver, client):
        client.get_route.return_value = {'route': ['EGLL', 'KJFK']}

        first = resolver.resolve('BAW117')
        second = resolver.resolve('BAW117')

        assert first is second
        assert client.get_route.call_count == 1

    def test_unknown_airport_keeps_code(self, resolver, client):
        client.get_route.return_value = {'route': ['EGLL', 'XXXX']}

        route = resolver.resolve('BAW999')

        assert route.destination_detail.code == 'XXXX'
        assert route.destination_detail.name is None

    def test_server_error_propagates_and_is_not_cached(self, resolver, client, route_cache):
        client.get_route.side_effect = UpstreamUnavailable('down')

        with pytest.raises(UpstreamUnavailable):
            resolver.resolve('BAW117')
        assert route_cache.get('BAW117', MISSING) is MISSING

        client.get_route.side_effect = None
        client.get_route.return_value = {'route': ['EGLL', 'KJFK']}
        assert resolver.resolve('BAW117').destination_code == 'KJFK'

    def test_client_error_status_passes_through(self, resolver, client):
        client.get_route.side_effect = UpstreamRejected('not found', status_code=404)

        with pytest.raises(UpstreamRejected) as exc:
            resolver.resolve('BAW117')
        assert exc.value.status_code == 404

    def test_cached_peek_never_calls_upstream(self, resolver, client):
        assert resolver.cached('BAW117') is None
        client.get_route.assert_not_called()

    def test_overlong_callsign_rejected_before_cache(self, resolver, client, route_cache):
        with pytest.raises(ValidationError):
            resolver.resolve('ABCDEFGHIJKLMNOPQRSTUVWXYZ')

        client.get_route.assert_not_called()
        assert route_cache.stats['entries'] == 0
        assert resolver.cached('ABCDEFGHIJKLMNOPQRSTUVWXYZ') is None

    def test_eight_character_callsign_accepted(self, resolver, client):
        client.get_route.return_value = {'route': ['EGLL', 'KJFK']}

        assert resolver.resolve('ABCD1234').callsign == 'ABCD1234'
