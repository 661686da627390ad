"""
Building filtering and aggregate metrics.

Filters OSM building ways down to the ones carrying height-related tags and
summarises their heights and level counts: averages, a tall-building count
and the record holders by height and by levels.
"""
from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np
import pandas as pd

from nr_advisor.core.tags import height_of, levels_of
from nr_advisor.data.schemas import OverpassElement
from nr_advisor.utils.error_handling import safe_division
from nr_advisor.utils.logging_config import get_logger

logger = get_logger(__name__)

HEIGHT_RELATED_TAGS = (
    'height',
    'building:levels',
    'building:levels:aboveground',
    'building:levels:underground',
    'building:height',
    'building:min_height',
    'building:min_level',
    'building:max_level',
)

DEFAULT_TALL_BUILDING_HEIGHT_M = 20.0


@dataclass(frozen=True)
class BuildingMetrics:
    """
    Aggregate building statistics for an area.

    Attributes:
        contributing_count: Buildings with height > 0 or levels > 0
        tall_buildings_count: Contributing buildings taller than the threshold
        tall_building_height_m: Threshold used for tall_buildings_count
        average_height: Mean height (m) over contributing buildings, 0 if none
        average_levels: Mean level count over contributing buildings, 0 if none
        tallest_by_height: First building with the greatest height
        tallest_by_levels: First building with the greatest level count
    """
    contributing_count: int
    tall_buildings_count: int
    tall_building_height_m: float
    average_height: float
    average_levels: float
    tallest_by_height: Optional[OverpassElement] = None
    tallest_by_levels: Optional[OverpassElement] = None

    @property
    def has_data(self) -> bool:
        return self.contributing_count > 0


def has_height_tags(element: OverpassElement) -> bool:
    """True if the element carries at least one height/level-related tag."""
    return any(tag in element.tags for tag in HEIGHT_RELATED_TAGS)


def filter_buildings_with_height_tags(elements: Sequence[OverpassElement]) -> List[OverpassElement]:
    """Keep only elements with at least one height/level-related tag."""
    filtered = [element for element in elements if has_height_tags(element)]
    logger.info(
        "buildings_filtered",
        total=len(elements),
        with_height_tags=len(filtered),
    )
    return filtered


def _building_frame(elements: Sequence[OverpassElement]) -> pd.DataFrame:
    """One row per element with parsed height/levels; absent values are NaN."""
    return pd.DataFrame({
        'height': pd.Series([height_of(e.tags) for e in elements], dtype='float64'),
        'levels': pd.Series([levels_of(e.tags) for e in elements], dtype='float64'),
    })


def calculate_building_metrics(
    elements: Sequence[OverpassElement],
    tall_building_height_m: float = DEFAULT_TALL_BUILDING_HEIGHT_M,
) -> BuildingMetrics:
    """
    Calculate building metrics from a list of building elements.

    Absent or unparseable ``height``/``building:levels`` count as 0 in the
    sums. A building contributes only if its height or level count is
    positive. Record holders keep the first element seen on ties.

    Args:
        elements: Building elements (normally the filtered list)
        tall_building_height_m: Height (m) a building must exceed to count as tall

    Returns:
        BuildingMetrics for the elements

    Example:
        >>> metrics = calculate_building_metrics([
        ...     OverpassElement(tags={'height': '10'}),
        ...     OverpassElement(tags={'height': '20', 'building:levels': '5'}),
        ... ])
        >>> metrics.average_height
        15.0
    """
    df = _building_frame(elements).fillna(0.0)
    contributing = df[(df['height'] > 0) | (df['levels'] > 0)]
    count = len(contributing)

    if count == 0:
        logger.info("buildings_aggregated", contributing=0)
        return BuildingMetrics(
            contributing_count=0,
            tall_buildings_count=0,
            tall_building_height_m=tall_building_height_m,
            average_height=0.0,
            average_levels=0.0,
        )

    # idxmax returns the first label holding the maximum
    tallest_by_height = elements[int(contributing['height'].idxmax())]
    tallest_by_levels = elements[int(contributing['levels'].idxmax())]

    metrics = BuildingMetrics(
        contributing_count=count,
        tall_buildings_count=int(np.count_nonzero(contributing['height'] > tall_building_height_m)),
        tall_building_height_m=tall_building_height_m,
        average_height=safe_division(contributing['height'].sum(), count),
        average_levels=safe_division(contributing['levels'].sum(), count),
        tallest_by_height=tallest_by_height,
        tallest_by_levels=tallest_by_levels,
    )

    logger.info(
        "buildings_aggregated",
        contributing=count,
        average_height=round(metrics.average_height, 2),
        average_levels=round(metrics.average_levels, 2),
        tall_buildings=metrics.tall_buildings_count,
    )
    return metrics
