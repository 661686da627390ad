"""
Speed limit aggregation for road ways.
"""
from dataclasses import dataclass
from typing import Optional, Sequence

import pandas as pd

from nr_advisor.core.tags import maxspeed_of
from nr_advisor.data.schemas import OverpassElement
from nr_advisor.utils.logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class SpeedMetrics:
    """
    Max/min/mean of parsed ``maxspeed`` values.

    When no way had a numeric ``maxspeed`` the metrics are in the "no data"
    state: ``sample_count`` is 0 and the statistics are None.
    """
    sample_count: int
    max_speed: Optional[int] = None
    min_speed: Optional[int] = None
    mean_speed: Optional[float] = None

    @property
    def has_data(self) -> bool:
        return self.sample_count > 0

    @classmethod
    def no_data(cls) -> 'SpeedMetrics':
        return cls(sample_count=0)


def calculate_speed_metrics(elements: Sequence[OverpassElement]) -> SpeedMetrics:
    """
    Aggregate the numeric ``maxspeed`` tags of road ways.

    Values without a numeric prefix ("national", "none", "walk") are
    dropped.

    Args:
        elements: Way elements from the speed query

    Returns:
        SpeedMetrics, in the "no data" state if nothing was parseable
    """
    parsed = pd.Series([maxspeed_of(e.tags) for e in elements], dtype='float64')
    speeds = parsed.dropna()

    if speeds.empty:
        logger.warning("speed_data_missing", ways=len(elements))
        return SpeedMetrics.no_data()

    metrics = SpeedMetrics(
        sample_count=len(speeds),
        max_speed=int(speeds.max()),
        min_speed=int(speeds.min()),
        mean_speed=float(speeds.mean()),
    )

    logger.info(
        "speeds_aggregated",
        ways=len(elements),
        samples=metrics.sample_count,
        dropped=len(elements) - metrics.sample_count,
        max_speed=metrics.max_speed,
        min_speed=metrics.min_speed,
        mean_speed=round(metrics.mean_speed, 2),
    )
    return metrics
