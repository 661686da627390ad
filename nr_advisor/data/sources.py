"""
Remote data sources.

Provides thin HTTP clients for the three services the advisor depends on:
- Overpass API (OSM buildings and speed-limited roads)
- Nominatim reverse geocoding (coordinate -> place name)
- Population density lookup (place name + year -> people per km2)

Every failure at the network, HTTP or JSON level surfaces as FetchError
with the underlying exception chained.
"""
from typing import Any, Dict, List, Optional, Tuple

import requests
from pydantic import ValidationError

from nr_advisor.core.geometry import BoundingBox
from nr_advisor.data.schemas import (
    OverpassElement,
    PopulationDensityResult,
    ReverseGeocodeResult,
    parse_elements,
)
from nr_advisor.utils.config import AdvisorConfig
from nr_advisor.utils.error_handling import log_elements_summary, validate_elements_payload
from nr_advisor.utils.exceptions import DataValidationError, FetchError
from nr_advisor.utils.logging_config import get_logger

logger = get_logger(__name__)

Timeout = Tuple[float, float]


def build_buildings_query(bbox: BoundingBox, timeout_s: int = 60) -> str:
    """Overpass QL for all building ways inside the box."""
    return f"[out:json][timeout:{timeout_s}];\nway({bbox.to_overpass()})[building];\nout;\n"


def build_speed_query(bbox: BoundingBox, timeout_s: int = 60) -> str:
    """Overpass QL for highway ways carrying a maxspeed tag."""
    return f"[out:json][timeout:{timeout_s}];\nway({bbox.to_overpass()})[highway][maxspeed];\nout;\n"


def _request_json(
    session: Any,
    method: str,
    url: str,
    service: str,
    timeout: Timeout,
    headers: Dict[str, str],
    **kwargs,
) -> Any:
    """Send a request and decode its JSON body, mapping failures to FetchError."""
    try:
        response = getattr(session, method)(url, timeout=timeout, headers=headers, **kwargs)
        response.raise_for_status()
    except requests.RequestException as e:
        logger.error("request_failed", service=service, url=url, error=str(e))
        raise FetchError(f"Error fetching data from {service}: {e}", service=service, url=url) from e

    try:
        return response.json()
    except ValueError as e:
        logger.error("response_not_json", service=service, url=url, error=str(e))
        raise FetchError(f"Invalid JSON from {service}: {e}", service=service, url=url) from e


class OverpassClient:
    """Client for an Overpass-compatible interpreter endpoint."""

    def __init__(
        self,
        url: str,
        timeout: Timeout = (10.0, 90.0),
        user_agent: str = "nr-advisor",
        session: Optional[Any] = None,
    ):
        """
        Args:
            url: Interpreter URL (POST endpoint)
            timeout: (connect, read) timeout in seconds
            user_agent: User-Agent header value
            session: Optional requests.Session-like object; module-level
                requests is used when omitted so concurrent calls do not
                share connection state
        """
        self.url = url
        self.timeout = timeout
        self.headers = {"User-Agent": user_agent}
        self._session = session

    @classmethod
    def from_config(cls, config: AdvisorConfig, session: Optional[Any] = None) -> 'OverpassClient':
        return cls(
            url=config.endpoints.overpass_url,
            timeout=config.http.timeout,
            user_agent=config.endpoints.user_agent,
            session=session,
        )

    def fetch(self, query: str) -> Dict[str, Any]:
        """
        POST a query and return the decoded JSON document.

        The body is sent form-urlencoded as ``data=<query>``.

        Raises:
            FetchError: On network, HTTP status or JSON decoding failure
        """
        logger.debug("overpass_query_sent", url=self.url, query=query.strip())
        return _request_json(
            self._session or requests,
            'post',
            self.url,
            service='overpass',
            timeout=self.timeout,
            headers=self.headers,
            data={'data': query},
        )

    def fetch_elements(self, query: str) -> List[OverpassElement]:
        """
        POST a query and return its elements as models.

        Raises:
            FetchError: On any fetch failure, or when the payload has no
                usable ``elements`` array
        """
        payload = self.fetch(query)
        try:
            raw_elements = validate_elements_payload(payload)
            elements = parse_elements(raw_elements)
        except (DataValidationError, ValidationError) as e:
            raise FetchError(f"Unexpected Overpass payload: {e}", service='overpass', url=self.url) from e

        log_elements_summary(elements, name='overpass')
        return elements


class NominatimClient:
    """Reverse-geocoding client for a Nominatim /reverse endpoint."""

    def __init__(
        self,
        url: str,
        timeout: Timeout = (10.0, 30.0),
        user_agent: str = "nr-advisor",
        session: Optional[Any] = None,
    ):
        self.url = url
        self.timeout = timeout
        self.headers = {"User-Agent": user_agent}
        self._session = session

    @classmethod
    def from_config(cls, config: AdvisorConfig, session: Optional[Any] = None) -> 'NominatimClient':
        return cls(
            url=config.endpoints.nominatim_url,
            timeout=config.http.timeout,
            user_agent=config.endpoints.user_agent,
            session=session,
        )

    def reverse(self, latitude: float, longitude: float) -> ReverseGeocodeResult:
        """
        Look up the address of a coordinate.

        Raises:
            FetchError: On fetch failure or an unparseable response
        """
        payload = _request_json(
            self._session or requests,
            'get',
            self.url,
            service='nominatim',
            timeout=self.timeout,
            headers=self.headers,
            params={'lat': latitude, 'lon': longitude, 'format': 'json'},
        )
        try:
            return ReverseGeocodeResult.model_validate(payload)
        except ValidationError as e:
            raise FetchError(f"Unexpected Nominatim payload: {e}", service='nominatim', url=self.url) from e


class PopulationDensityClient:
    """Client for the city population density service."""

    def __init__(
        self,
        url: str,
        timeout: Timeout = (10.0, 30.0),
        user_agent: str = "nr-advisor",
        session: Optional[Any] = None,
    ):
        self.url = url
        self.timeout = timeout
        self.headers = {"User-Agent": user_agent}
        self._session = session

    @classmethod
    def from_config(cls, config: AdvisorConfig, session: Optional[Any] = None) -> 'PopulationDensityClient':
        return cls(
            url=config.endpoints.population_density_url,
            timeout=config.http.timeout,
            user_agent=config.endpoints.user_agent,
            session=session,
        )

    def lookup(self, city: str, year: int) -> PopulationDensityResult:
        """
        Fetch the population density of a city for a year.

        Raises:
            FetchError: On fetch failure or a response without a numeric
                ``populationDensity``
        """
        payload = _request_json(
            self._session or requests,
            'get',
            self.url,
            service='population_density',
            timeout=self.timeout,
            headers=self.headers,
            params={'city': city, 'year': year},
        )
        try:
            return PopulationDensityResult.model_validate(payload)
        except ValidationError as e:
            raise FetchError(
                f"Unexpected population density payload: {e}",
                service='population_density',
                url=self.url,
            ) from e
