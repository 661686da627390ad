"""
Bounding box geometry for area queries.

The Earth is treated as a sphere and a radius in meters is converted to
degree offsets with an equirectangular approximation, which is accurate
enough for the few-kilometer areas sent to Overpass.
"""
import math
from dataclasses import dataclass

from nr_advisor.utils.exceptions import GeometryError


# Earth's radius in meters (mean radius)
EARTH_RADIUS_M = 6371000.0


@dataclass(frozen=True)
class BoundingBox:
    """Lat/lon rectangle in decimal degrees."""
    min_lat: float
    min_lon: float
    max_lat: float
    max_lon: float

    def to_overpass(self) -> str:
        """Render as the Overpass ``south,west,north,east`` filter."""
        return f"{self.min_lat},{self.min_lon},{self.max_lat},{self.max_lon}"

    @property
    def height_m(self) -> float:
        """North-south extent."""
        return EARTH_RADIUS_M * math.radians(self.max_lat - self.min_lat)

    @property
    def width_m(self) -> float:
        # east-west extent at the center latitude
        mid_lat = math.radians((self.min_lat + self.max_lat) / 2)
        return EARTH_RADIUS_M * math.cos(mid_lat) * math.radians(self.max_lon - self.min_lon)


def calculate_bbox(latitude: float, longitude: float, radius_m: float) -> BoundingBox:
    """
    Calculate the bounding box of a radius around a center coordinate.

    The latitude offset is the arc length of the radius. The longitude
    offset is the same arc scaled by 1/cos(latitude), so the box is
    undefined at the poles.

    Args:
        latitude: Center latitude, strictly between -90 and 90
        longitude: Center longitude, -180 to 180
        radius_m: Radius in meters (> 0)

    Returns:
        BoundingBox around the center

    Raises:
        GeometryError: If an input is not finite or is out of range
    """
    for name, value in (('latitude', latitude), ('longitude', longitude), ('radius_m', radius_m)):
        if not math.isfinite(value):
            raise GeometryError(f"Invalid {name}: {value} is not finite")

    if not -90.0 < latitude < 90.0:
        raise GeometryError(f"Invalid coordinates: latitude {latitude} must be strictly between -90 and 90")
    if not -180.0 <= longitude <= 180.0:
        raise GeometryError(f"Invalid coordinates: longitude {longitude} out of range [-180, 180]")
    if radius_m <= 0:
        raise GeometryError(f"Invalid radius: {radius_m} m (must be > 0)")

    delta_lat = math.degrees(radius_m / EARTH_RADIUS_M)
    delta_lon = math.degrees(radius_m / (EARTH_RADIUS_M * math.cos(math.radians(latitude))))

    return BoundingBox(
        min_lat=latitude - delta_lat,
        min_lon=longitude - delta_lon,
        max_lat=latitude + delta_lat,
        max_lon=longitude + delta_lon,
    )
