"""
Unit tests for the analysis runner, using fake HTTP sessions.
"""
import json

import pytest
import requests

from nr_advisor.data.schemas import AnalysisRequest
from nr_advisor.data.sources import NominatimClient, OverpassClient, PopulationDensityClient
from nr_advisor.runner import build_parser, main, run_analysis
from nr_advisor.utils.config import get_default_config
from nr_advisor.utils.exceptions import FetchError

from fakes import FakeResponse, FakeSession

BUILDINGS_PAYLOAD = {'elements': [
    {'type': 'way', 'id': 1, 'tags': {'building': 'yes', 'height': '24', 'name': 'Tower A'}},
    {'type': 'way', 'id': 2, 'tags': {'building': 'yes', 'height': '30', 'building:levels': '9'}},
    {'type': 'way', 'id': 3, 'tags': {'building': 'yes', 'name': 'Shed'}},
]}

SPEED_PAYLOAD = {'elements': [
    {'type': 'way', 'id': 10, 'tags': {'highway': 'motorway', 'maxspeed': '100'}},
    {'type': 'way', 'id': 11, 'tags': {'highway': 'primary', 'maxspeed': '60'}},
    {'type': 'way', 'id': 12, 'tags': {'highway': 'primary', 'maxspeed': 'national'}},
]}


def _overpass_router(buildings=BUILDINGS_PAYLOAD, speeds=SPEED_PAYLOAD):
    def router(method, url, kwargs):
        query = kwargs['data']['data']
        if '[maxspeed]' in query:
            if isinstance(speeds, Exception):
                raise speeds
            return FakeResponse(speeds)
        if isinstance(buildings, Exception):
            raise buildings
        return FakeResponse(buildings)
    return router


def _clients(overpass_router=None, address=None, density=None, geocode_error=None, density_error=None):
    config = get_default_config()

    def geocode(method, url, kwargs):
        if geocode_error is not None:
            raise geocode_error
        return FakeResponse({'address': address if address is not None else {'city': 'Dublin'}})

    def density_lookup(method, url, kwargs):
        if density_error is not None:
            raise density_error
        return FakeResponse({'populationDensity': 1200 if density is None else density})

    overpass_session = FakeSession(overpass_router or _overpass_router())
    return {
        'overpass': OverpassClient.from_config(config, session=overpass_session),
        'nominatim': NominatimClient.from_config(config, session=FakeSession(geocode)),
        'density_client': PopulationDensityClient.from_config(config, session=FakeSession(density_lookup)),
    }, overpass_session


@pytest.fixture
def request_dublin():
    return AnalysisRequest(latitude=53.3498, longitude=-6.2603, bin_size_m=500)


class TestRunAnalysis:
    """End-to-end pipeline with fake services."""

    def test_full_pipeline(self, request_dublin):
        clients, overpass_session = _clients()

        report = run_analysis(request_dublin, get_default_config(), **clients)

        assert report.city == 'Dublin'
        assert report.population_density == 1200
        assert report.buildings_total == 3
        assert report.buildings_with_height_tags == 2
        assert report.building_metrics.average_height == pytest.approx(27.0)
        assert report.building_metrics.tallest_by_height.id == 2
        assert report.speed_metrics.max_speed == 100
        assert report.mean_speed == 80
        assert report.settings.as_tuple() == ('120 kHz', '3.5 GHz', 'Extended')
        assert report.notes == []
        assert len(overpass_session.calls) == 2

    def test_queries_use_bbox(self, request_dublin):
        clients, overpass_session = _clients()
        report = run_analysis(request_dublin, get_default_config(), **clients)

        queries = sorted(call[2]['data']['data'] for call in overpass_session.calls)
        assert all(report.bbox.to_overpass() in q for q in queries)
        assert any('[building]' in q for q in queries)
        assert any('[highway][maxspeed]' in q for q in queries)

    def test_no_speed_data_is_partial(self, request_dublin):
        """Areas without numeric speed limits still get a recommendation."""
        router = _overpass_router(speeds={'elements': [
            {'type': 'way', 'id': 12, 'tags': {'highway': 'primary', 'maxspeed': 'national'}},
        ]})
        clients, _ = _clients(overpass_router=router)

        report = run_analysis(request_dublin, get_default_config(), **clients)

        assert not report.speed_metrics.has_data
        assert report.mean_speed is None
        assert report.settings.subcarrier == '15 kHz'
        assert any('speed' in note.lower() for note in report.notes)

    def test_geocode_failure_is_partial(self, request_dublin):
        """A failed reverse lookup leaves city and density unknown."""
        clients, _ = _clients(geocode_error=requests.ConnectionError("down"))

        report = run_analysis(request_dublin, get_default_config(), **clients)

        assert report.city is None
        assert report.population_density is None
        assert report.settings.frequency == '700 MHz'
        assert report.notes

    def test_no_place_name_skips_density(self, request_dublin):
        """Without a place name the density service is not called."""
        clients, _ = _clients(address={'county': 'Clare'})
        density_session = clients['density_client']._session

        report = run_analysis(request_dublin, get_default_config(), **clients)

        assert report.city is None
        assert density_session.calls == []

    def test_density_failure_is_partial(self, request_dublin):
        clients, _ = _clients(density_error=requests.HTTPError("404"))

        report = run_analysis(request_dublin, get_default_config(), **clients)

        assert report.city == 'Dublin'
        assert report.population_density is None
        assert any('Dublin' in note for note in report.notes)

    def test_overpass_failure_is_terminal(self, request_dublin):
        """A failed Overpass query aborts the run with FetchError."""
        router = _overpass_router(buildings=requests.ConnectionError("reset"))
        clients, _ = _clients(overpass_router=router)

        with pytest.raises(FetchError):
            run_analysis(request_dublin, get_default_config(), **clients)

    def test_speed_fetch_failure_is_terminal(self, request_dublin):
        """A failed speed-limit query also aborts the run with FetchError."""
        router = _overpass_router(speeds=requests.Timeout("read timed out"))
        clients, _ = _clients(overpass_router=router)

        with pytest.raises(FetchError) as exc_info:
            run_analysis(request_dublin, get_default_config(), **clients)

        assert exc_info.value.service == 'overpass'
        assert isinstance(exc_info.value.__cause__, requests.Timeout)

    def test_requests_do_not_share_state(self):
        """Two runs with different inputs do not leak into each other."""
        first_clients, _ = _clients(address={'city': 'Dublin'}, density=1200)
        second_clients, _ = _clients(address={'town': 'Kinsale'}, density=90)

        first = run_analysis(AnalysisRequest(latitude=53.35, longitude=-6.26, bin_size_m=500), **first_clients)
        second = run_analysis(AnalysisRequest(latitude=51.70, longitude=-8.52, bin_size_m=800), **second_clients)

        assert (first.city, first.settings.frequency) == ('Dublin', '3.5 GHz')
        assert (second.city, second.settings.frequency) == ('Kinsale', '700 MHz')
        assert first.bbox != second.bbox


class TestMain:
    """CLI entry point."""

    def test_parser_requires_coordinates(self):
        with pytest.raises(SystemExit) as exc_info:
            build_parser().parse_args(['--lat', '53.3'])
        assert exc_info.value.code == 2

    def test_invalid_latitude_exit_code(self, capsys):
        """Out-of-range latitude exits with 2 before any network call."""
        code = main(['--lat', '90', '--lon', '0', '--bin-size', '500'])

        assert code == 2
        assert "Invalid input" in capsys.readouterr().err

    def test_invalid_bin_size_exit_code(self):
        assert main(['--lat', '10', '--lon', '0', '--bin-size', '0']) == 2

    def test_missing_config_exit_code(self, tmp_path, capsys):
        code = main([
            '--lat', '53.3', '--lon', '-6.2', '--bin-size', '500',
            '--config', str(tmp_path / 'missing.yaml'),
        ])

        assert code == 1
        assert "Config file not found" in capsys.readouterr().err

    def test_successful_run(self, monkeypatch, tmp_path, capsys):
        """Successful run prints the summary and writes JSON."""
        clients, _ = _clients()

        def fake_run_analysis(request, config):
            return run_analysis(request, config, **clients)

        monkeypatch.setattr('nr_advisor.runner.run_analysis', fake_run_analysis)
        output = tmp_path / 'report.json'

        code = main([
            '--lat', '53.3498', '--lon', '-6.2603', '--bin-size', '500',
            '--output-json', str(output),
        ])

        assert code == 0
        assert "Subcarrier : 120 kHz" in capsys.readouterr().out
        assert json.loads(output.read_text())['city'] == 'Dublin'

    def test_unwritable_json_path_exit_code(self, monkeypatch, tmp_path, capsys):
        """A JSON path that cannot be written exits with 1 after the summary."""
        clients, _ = _clients()

        def fake_run_analysis(request, config):
            return run_analysis(request, config, **clients)

        monkeypatch.setattr('nr_advisor.runner.run_analysis', fake_run_analysis)
        blocker = tmp_path / 'blocker'
        blocker.write_text('not a directory')
        output = blocker / 'report.json'

        code = main([
            '--lat', '53.3498', '--lon', '-6.2603', '--bin-size', '500',
            '--output-json', str(output),
        ])

        captured = capsys.readouterr()
        assert code == 1
        assert "Subcarrier : 120 kHz" in captured.out
        assert "could not write" in captured.err
