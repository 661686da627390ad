"""
Unit tests for remote data source clients.
"""
import pytest
import requests

from nr_advisor.core.geometry import BoundingBox
from nr_advisor.data.sources import (
    NominatimClient,
    OverpassClient,
    PopulationDensityClient,
    build_buildings_query,
    build_speed_query,
)
from nr_advisor.utils.config import get_default_config
from nr_advisor.utils.exceptions import FetchError

from fakes import FakeResponse, FakeSession

OVERPASS_URL = "https://overpass.test/api/interpreter"


def _static(response):
    return FakeSession(lambda method, url, kwargs: response)


def _raising(exc):
    def router(method, url, kwargs):
        raise exc
    return FakeSession(router)


class TestQueries:
    """Overpass QL builders."""

    def test_buildings_query(self):
        bbox = BoundingBox(1.0, 2.0, 3.0, 4.0)
        query = build_buildings_query(bbox, timeout_s=25)

        assert query.startswith("[out:json][timeout:25];")
        assert "way(1.0,2.0,3.0,4.0)[building];" in query
        assert query.rstrip().endswith("out;")

    def test_speed_query(self):
        bbox = BoundingBox(1.0, 2.0, 3.0, 4.0)
        query = build_speed_query(bbox)

        assert "way(1.0,2.0,3.0,4.0)[highway][maxspeed];" in query
        assert "[timeout:60]" in query


class TestOverpassClient:
    """Test OverpassClient."""

    def test_posts_form_encoded_query(self):
        """Query is sent as the 'data' form field with timeout and UA."""
        session = _static(FakeResponse({'elements': []}))
        client = OverpassClient(OVERPASS_URL, timeout=(1, 2), user_agent="ua-test", session=session)

        client.fetch("[out:json];way[building];out;")

        method, url, kwargs = session.calls[0]
        assert method == 'post'
        assert url == OVERPASS_URL
        assert kwargs['data'] == {'data': "[out:json];way[building];out;"}
        assert kwargs['timeout'] == (1, 2)
        assert kwargs['headers']['User-Agent'] == "ua-test"

    def test_fetch_elements_parses_models(self):
        """Elements come back as models; missing tags become empty."""
        payload = {'elements': [
            {'type': 'way', 'id': 10, 'tags': {'building': 'yes', 'height': '12'}, 'nodes': [1, 2]},
            {'type': 'way', 'id': 11},
        ]}
        client = OverpassClient(OVERPASS_URL, session=_static(FakeResponse(payload)))

        elements = client.fetch_elements("q")

        assert [e.id for e in elements] == [10, 11]
        assert elements[0].tags['height'] == '12'
        assert elements[1].tags == {}

    def test_network_error_wrapped(self):
        """Connection errors become FetchError with the cause chained."""
        cause = requests.ConnectionError("refused")
        client = OverpassClient(OVERPASS_URL, session=_raising(cause))

        with pytest.raises(FetchError) as exc_info:
            client.fetch("q")

        assert exc_info.value.__cause__ is cause
        assert exc_info.value.service == 'overpass'
        assert exc_info.value.url == OVERPASS_URL

    def test_timeout_wrapped(self):
        """Timeouts become FetchError."""
        client = OverpassClient(OVERPASS_URL, session=_raising(requests.Timeout("slow")))

        with pytest.raises(FetchError):
            client.fetch("q")

    def test_http_error_wrapped(self):
        """HTTP error statuses become FetchError."""
        client = OverpassClient(OVERPASS_URL, session=_static(FakeResponse(status_code=429)))

        with pytest.raises(FetchError, match="429"):
            client.fetch("q")

    def test_invalid_json_wrapped(self):
        """Undecodable bodies become FetchError."""
        response = FakeResponse(json_error=ValueError("Expecting value"))
        client = OverpassClient(OVERPASS_URL, session=_static(response))

        with pytest.raises(FetchError, match="Invalid JSON"):
            client.fetch("q")

    def test_missing_elements_wrapped(self):
        """A payload without 'elements' is a fetch failure."""
        client = OverpassClient(OVERPASS_URL, session=_static(FakeResponse({'remark': 'timeout'})))

        with pytest.raises(FetchError, match="Unexpected Overpass payload"):
            client.fetch_elements("q")

    def test_from_config(self):
        """Client picks endpoint, timeout and UA from config."""
        config = get_default_config()
        client = OverpassClient.from_config(config)

        assert client.url == config.endpoints.overpass_url
        assert client.timeout == config.http.timeout
        assert client.headers['User-Agent'] == config.endpoints.user_agent


class TestNominatimClient:
    """Test NominatimClient."""

    def test_reverse_sends_coordinates(self):
        session = _static(FakeResponse({'address': {'city': 'Dublin'}}))
        client = NominatimClient("https://nominatim.test/reverse", session=session)

        result = client.reverse(53.35, -6.26)

        method, _, kwargs = session.calls[0]
        assert method == 'get'
        assert kwargs['params'] == {'lat': 53.35, 'lon': -6.26, 'format': 'json'}
        assert result.address.place_name == 'Dublin'

    @pytest.mark.parametrize("address,expected", [
        ({'city': 'Cork', 'town': 'Ballincollig'}, 'Cork'),
        ({'city': '', 'town': 'Kinsale'}, 'Kinsale'),
        ({'village': 'Doolin', 'hamlet': 'Fisherstreet'}, 'Doolin'),
        ({'hamlet': 'Fisherstreet'}, 'Fisherstreet'),
        ({'county': 'Clare'}, None),
    ])
    def test_place_name_precedence(self, address, expected):
        """First non-empty of city, town, village, hamlet wins."""
        client = NominatimClient("https://nominatim.test/reverse", session=_static(FakeResponse({'address': address})))
        assert client.reverse(0, 0).address.place_name == expected

    def test_error_payload_has_no_place(self):
        """Nominatim error payloads yield no place name."""
        client = NominatimClient("https://nominatim.test/reverse", session=_static(FakeResponse({'error': 'Unable to geocode'})))
        assert client.reverse(0, 0).address.place_name is None

    def test_non_object_payload_wrapped(self):
        client = NominatimClient("https://nominatim.test/reverse", session=_static(FakeResponse([1, 2])))
        with pytest.raises(FetchError):
            client.reverse(0, 0)


class TestPopulationDensityClient:
    """Test PopulationDensityClient."""

    def test_lookup(self):
        session = _static(FakeResponse({'populationDensity': 4811.2}))
        client = PopulationDensityClient("https://density.test/population-density", session=session)

        result = client.lookup("Dublin", 2020)

        assert result.population_density == pytest.approx(4811.2)
        assert session.calls[0][2]['params'] == {'city': 'Dublin', 'year': 2020}

    def test_missing_value_wrapped(self):
        """A payload without populationDensity is a fetch failure."""
        client = PopulationDensityClient("https://density.test/population-density", session=_static(FakeResponse({'message': 'not found'})))

        with pytest.raises(FetchError) as exc_info:
            client.lookup("Atlantis", 2020)

        assert exc_info.value.service == 'population_density'
