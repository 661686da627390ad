"""
Remote data access.

Provides Pydantic schemas for service payloads and the HTTP clients for
Overpass, Nominatim and the population density service.
"""
from nr_advisor.data.schemas import (
    AnalysisRequest,
    OverpassElement,
    PopulationDensityResult,
    ReverseGeocodeResult,
)
from nr_advisor.data.sources import (
    OverpassClient,
    NominatimClient,
    PopulationDensityClient,
    build_buildings_query,
    build_speed_query,
)

__all__ = [
    'AnalysisRequest',
    'OverpassElement',
    'PopulationDensityResult',
    'ReverseGeocodeResult',
    'OverpassClient',
    'NominatimClient',
    'PopulationDensityClient',
    'build_buildings_query',
    'build_speed_query',
]
