"""
Pydantic schemas for remote service payloads.

Defines models for Overpass elements, Nominatim reverse-geocoding results
and population density lookups.
"""
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


class OverpassElement(BaseModel):
    """
    Schema for a single Overpass element (node, way or relation).

    Only the tag mapping is interpreted downstream; geometry and member
    lists are ignored.

    Example:
        >>> element = OverpassElement(
        ...     type='way',
        ...     id=123456,
        ...     tags={'building': 'yes', 'height': '18.5', 'name': 'Liberty Hall'}
        ... )
    """
    type: str = Field("way", description="Element type: node, way or relation")
    id: int = Field(0, description="OSM element id")
    tags: Dict[str, str] = Field(default_factory=dict, description="OSM tags")

    model_config = ConfigDict(extra="ignore", frozen=True)

    @field_validator('tags', mode='before')
    @classmethod
    def coerce_tags(cls, v: Any) -> Dict[str, str]:
        """Missing tags become an empty mapping; values are coerced to str."""
        if v is None:
            return {}
        if isinstance(v, dict):
            return {str(k): str(val) for k, val in v.items()}
        return v

    @property
    def name(self) -> Optional[str]:
        return self.tags.get('name') or None


class Address(BaseModel):
    """Subset of the Nominatim address block used to name the place."""
    city: Optional[str] = None
    town: Optional[str] = None
    village: Optional[str] = None
    hamlet: Optional[str] = None

    model_config = ConfigDict(extra="ignore")

    @property
    def place_name(self) -> Optional[str]:
        """First non-empty of city, town, village, hamlet."""
        for candidate in (self.city, self.town, self.village, self.hamlet):
            if candidate:
                return candidate
        return None


class ReverseGeocodeResult(BaseModel):
    """Nominatim /reverse response."""
    address: Address = Field(default_factory=Address)
    display_name: Optional[str] = None

    model_config = ConfigDict(extra="ignore")


class PopulationDensityResult(BaseModel):
    """Population density service response (people per km2)."""
    population_density: float = Field(..., ge=0, alias="populationDensity")

    model_config = ConfigDict(extra="ignore", populate_by_name=True)


def parse_elements(raw_elements: List[Dict[str, Any]]) -> List[OverpassElement]:
    """Convert raw Overpass element dictionaries into models."""
    return [OverpassElement.model_validate(raw) for raw in raw_elements]


class AnalysisRequest(BaseModel):
    """
    Validated input for one analysis run.

    Example:
        >>> request = AnalysisRequest(latitude=53.3498, longitude=-6.2603, bin_size_m=500)
    """
    latitude: float = Field(..., gt=-90, lt=90, description="Center latitude in decimal degrees")
    longitude: float = Field(..., ge=-180, le=180, description="Center longitude in decimal degrees")
    bin_size_m: float = Field(..., gt=0, le=50000, description="Radius of the analysed area (meters)")

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)
