"""
Configuration management using Pydantic for validation.

This module provides type-safe configuration loading and validation
for remote endpoints, HTTP timeouts and recommendation thresholds.
"""
import os
import re
from pathlib import Path
from typing import List, Tuple
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator
import yaml

from nr_advisor.utils.exceptions import ConfigurationError


def _expand_env_vars(value: str) -> str:
    """Expand ${VAR} environment variables in string values."""
    pattern = r'\$\{([^}]+)\}'

    def replace_var(match):
        return os.environ.get(match.group(1), '')

    return re.sub(pattern, replace_var, value)


class EndpointConfig(BaseModel):
    """Remote service endpoints."""
    overpass_url: str = "https://overpass-api.de/api/interpreter"
    nominatim_url: str = "https://nominatim.openstreetmap.org/reverse"
    population_density_url: str = "https://population-density-honore.onrender.com/population-density"
    user_agent: str = Field("nr-advisor/0.1.0", min_length=1, description="User-Agent sent to every service")

    @field_validator('overpass_url', 'nominatim_url', 'population_density_url', 'user_agent', mode='before')
    @classmethod
    def expand_env(cls, v):
        if isinstance(v, str):
            return _expand_env_vars(v)
        return v

    @field_validator('overpass_url', 'nominatim_url', 'population_density_url')
    @classmethod
    def require_http(cls, v: str) -> str:
        if not v.startswith(('http://', 'https://')):
            raise ValueError(f"Endpoint must be an http(s) URL: {v!r}")
        return v


class HttpConfig(BaseModel):
    """HTTP client behaviour."""
    connect_timeout_s: float = Field(10.0, gt=0.0, description="TCP connect timeout (seconds)")
    read_timeout_s: float = Field(90.0, gt=0.0, description="Response read timeout (seconds)")
    overpass_query_timeout_s: int = Field(60, ge=1, le=900, description="Server-side [timeout:T] for Overpass queries")

    @property
    def timeout(self) -> Tuple[float, float]:
        """Timeout tuple in the form accepted by requests."""
        return (self.connect_timeout_s, self.read_timeout_s)


class SubcarrierTier(BaseModel):
    """Subcarrier spacing used when average speed exceeds ``above_kmh``."""
    above_kmh: float = Field(..., ge=0.0)
    spacing: str = Field(..., min_length=1)


class FrequencyTier(BaseModel):
    """Frequency band used when population density exceeds ``above_density``."""
    above_density: float = Field(..., ge=0.0)
    band: str = Field(..., min_length=1)


class ThresholdConfig(BaseModel):
    """Thresholds for the NR settings recommendation."""
    subcarrier_tiers: List[SubcarrierTier] = Field(
        default_factory=lambda: [
            SubcarrierTier(above_kmh=70, spacing="120 kHz"),
            SubcarrierTier(above_kmh=50, spacing="60 kHz"),
            SubcarrierTier(above_kmh=30, spacing="30 kHz"),
        ]
    )
    subcarrier_default: str = "15 kHz"
    frequency_tiers: List[FrequencyTier] = Field(
        default_factory=lambda: [
            FrequencyTier(above_density=1000, band="3.5 GHz"),
            FrequencyTier(above_density=500, band="2.4 GHz"),
        ]
    )
    frequency_default: str = "700 MHz"
    extended_cp_height_m: float = Field(20.0, ge=0.0, description="Average height above which Extended CP is used")
    extended_cp_levels: float = Field(7.0, ge=0.0, description="Average levels above which Extended CP is used")
    tall_building_height_m: float = Field(20.0, ge=0.0, description="Height above which a building counts as tall")

    @model_validator(mode='after')
    def tiers_descending(self):
        """Tiers are evaluated top-down, so thresholds must strictly decrease."""
        speeds = [t.above_kmh for t in self.subcarrier_tiers]
        if any(a <= b for a, b in zip(speeds, speeds[1:])):
            raise ValueError(f"subcarrier_tiers must be strictly descending, got {speeds}")
        densities = [t.above_density for t in self.frequency_tiers]
        if any(a <= b for a, b in zip(densities, densities[1:])):
            raise ValueError(f"frequency_tiers must be strictly descending, got {densities}")
        return self


class AdvisorConfig(BaseModel):
    """Complete advisor configuration."""
    endpoints: EndpointConfig = Field(default_factory=EndpointConfig)
    http: HttpConfig = Field(default_factory=HttpConfig)
    thresholds: ThresholdConfig = Field(default_factory=ThresholdConfig)
    population_year: int = Field(2020, ge=1900, le=2100, description="Year passed to the density service")
    max_workers: int = Field(2, ge=1, le=4, description="Threads used for the Overpass fetches")


def load_config(config_path: Path) -> AdvisorConfig:
    """
    Load and validate configuration from YAML file.

    Args:
        config_path: Path to YAML config file

    Returns:
        Validated AdvisorConfig object

    Raises:
        FileNotFoundError: If config file doesn't exist
        ConfigurationError: If YAML is malformed or validation fails

    Example:
        >>> config = load_config(Path("config/advisor.yaml"))
        >>> print(config.thresholds.frequency_default)
        700 MHz
    """
    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    try:
        with open(config_path, 'r') as f:
            config_dict = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Malformed YAML in {config_path}: {e}") from e

    if not isinstance(config_dict, dict):
        raise ConfigurationError(f"Config root must be a mapping: {config_path}")

    try:
        return AdvisorConfig(**config_dict)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid advisor config {config_path}: {e}") from e


def get_default_config() -> AdvisorConfig:
    """
    Get default configuration.

    Returns:
        Default AdvisorConfig
    """
    return AdvisorConfig()
