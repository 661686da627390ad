"""
5G NR settings recommendation.

Maps area characteristics to physical-layer settings with threshold rules:
- Subcarrier spacing from the average road speed (mobility)
- Frequency band from the population density (capacity vs reach)
- Cyclic prefix mode from average building height/levels (delay spread)

The selection is a pure function of its inputs and the thresholds.
"""
from dataclasses import dataclass
from typing import Optional

from nr_advisor.utils.config import ThresholdConfig
from nr_advisor.utils.logging_config import get_logger

logger = get_logger(__name__)

CYCLIC_PREFIX_EXTENDED = 'Extended'
CYCLIC_PREFIX_NORMAL = 'Normal'


@dataclass(frozen=True)
class RecommendationSettings:
    """Recommended NR physical-layer settings."""
    subcarrier: str
    frequency: str
    cyclic_mode: str

    def as_tuple(self):
        return (self.subcarrier, self.frequency, self.cyclic_mode)


def select_subcarrier(average_speed: float, thresholds: ThresholdConfig) -> str:
    for tier in thresholds.subcarrier_tiers:
        if average_speed > tier.above_kmh:
            return tier.spacing
    return thresholds.subcarrier_default


def select_frequency(population_density: float, thresholds: ThresholdConfig) -> str:
    for tier in thresholds.frequency_tiers:
        if population_density > tier.above_density:
            return tier.band
    return thresholds.frequency_default


def select_cyclic_mode(average_height: float, average_levels: float, thresholds: ThresholdConfig) -> str:
    if average_height > thresholds.extended_cp_height_m or average_levels > thresholds.extended_cp_levels:
        return CYCLIC_PREFIX_EXTENDED
    return CYCLIC_PREFIX_NORMAL


def select_nr_settings(
    population_density: float,
    average_height: float,
    average_levels: float,
    average_speed: float,
    thresholds: Optional[ThresholdConfig] = None,
) -> RecommendationSettings:
    """
    Select NR settings for an area.

    Args:
        population_density: People per km2 (0 when unknown)
        average_height: Average building height (m)
        average_levels: Average building level count
        average_speed: Average road speed limit (km/h, 0 when unknown)
        thresholds: Threshold configuration (defaults when omitted)

    Returns:
        RecommendationSettings

    Example:
        >>> select_nr_settings(1200, 25, 3, 75).as_tuple()
        ('120 kHz', '3.5 GHz', 'Extended')
    """
    thresholds = thresholds or ThresholdConfig()

    settings = RecommendationSettings(
        subcarrier=select_subcarrier(average_speed, thresholds),
        frequency=select_frequency(population_density, thresholds),
        cyclic_mode=select_cyclic_mode(average_height, average_levels, thresholds),
    )

    logger.debug(
        "nr_settings_selected",
        population_density=population_density,
        average_height=average_height,
        average_levels=average_levels,
        average_speed=average_speed,
        subcarrier=settings.subcarrier,
        frequency=settings.frequency,
        cyclic_mode=settings.cyclic_mode,
    )
    return settings
