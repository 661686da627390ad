"""
Core analysis modules.

Contains the bounding box geometry, OSM tag parsing and the building and
speed aggregations.
"""
from nr_advisor.core.geometry import (
    BoundingBox,
    calculate_bbox,
    EARTH_RADIUS_M,
)
from nr_advisor.core.buildings import (
    BuildingMetrics,
    HEIGHT_RELATED_TAGS,
    calculate_building_metrics,
    filter_buildings_with_height_tags,
)
from nr_advisor.core.speeds import SpeedMetrics, calculate_speed_metrics

__all__ = [
    'BoundingBox',
    'calculate_bbox',
    'EARTH_RADIUS_M',
    'BuildingMetrics',
    'HEIGHT_RELATED_TAGS',
    'calculate_building_metrics',
    'filter_buildings_with_height_tags',
    'SpeedMetrics',
    'calculate_speed_metrics',
]
