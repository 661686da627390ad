"""
Request-scoped pipeline state and the final analysis report.
"""
import math
from dataclasses import dataclass, field
from typing import List, Optional

from nr_advisor.core.buildings import BuildingMetrics
from nr_advisor.core.geometry import BoundingBox
from nr_advisor.core.speeds import SpeedMetrics
from nr_advisor.data.schemas import AnalysisRequest
from nr_advisor.recommendations.nr_settings import RecommendationSettings


@dataclass
class AnalysisContext:
    """Mutable state of a single analysis run; never shared across runs."""
    request: AnalysisRequest
    bbox: Optional[BoundingBox] = None
    city: Optional[str] = None
    population_density: Optional[float] = None
    notes: List[str] = field(default_factory=list)

    def note(self, message: str) -> None:
        self.notes.append(message)


@dataclass(frozen=True)
class AnalysisReport:
    """Everything needed to render the outcome of one run."""
    request: AnalysisRequest
    bbox: BoundingBox
    city: Optional[str]
    population_density: Optional[float]
    buildings_total: int
    buildings_with_height_tags: int
    building_metrics: BuildingMetrics
    speed_ways_total: int
    speed_metrics: SpeedMetrics
    settings: RecommendationSettings
    notes: List[str] = field(default_factory=list)

    @property
    def average_height(self) -> int:
        return math.ceil(self.building_metrics.average_height)

    @property
    def average_levels(self) -> int:
        return math.ceil(self.building_metrics.average_levels)

    @property
    def mean_speed(self) -> Optional[int]:
        if not self.speed_metrics.has_data:
            return None
        return math.ceil(self.speed_metrics.mean_speed)
