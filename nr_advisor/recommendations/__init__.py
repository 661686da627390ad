"""
Recommendation modules.

Selects 5G NR physical-layer settings from area characteristics:
    - Subcarrier spacing: from average road speed
    - Frequency band: from population density
    - Cyclic prefix mode: from average building height and levels
"""
from nr_advisor.recommendations.nr_settings import (
    RecommendationSettings,
    select_nr_settings,
    select_subcarrier,
    select_frequency,
    select_cyclic_mode,
)

__all__ = [
    'RecommendationSettings',
    'select_nr_settings',
    'select_subcarrier',
    'select_frequency',
    'select_cyclic_mode',
]
