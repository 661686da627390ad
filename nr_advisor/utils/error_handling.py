"""
Error handling utilities for the advisor pipeline.

Provides payload validation for remote responses and numeric helpers that
never let NaN or infinity escape into the aggregates.
"""
from typing import Any, Dict, List
import pandas as pd
import numpy as np
from nr_advisor.utils.logging_config import get_logger
from nr_advisor.utils.exceptions import DataValidationError

logger = get_logger(__name__)


def validate_elements_payload(payload: Any, name: str = "Overpass response") -> List[Dict[str, Any]]:
    """
    Validate that an Overpass JSON payload carries an ``elements`` array.

    Parameters
    ----------
    payload : Any
        Decoded JSON document
    name : str
        Name of the payload for error messages

    Returns
    -------
    List[Dict[str, Any]]
        The element dictionaries

    Raises
    ------
    DataValidationError
        If the payload is not an object, has no ``elements`` list, or any
        element is not an object
    """
    if not isinstance(payload, dict):
        raise DataValidationError(
            f"{name} must be a JSON object, got {type(payload).__name__}"
        )

    elements = payload.get('elements')
    if not isinstance(elements, list):
        raise DataValidationError(
            f"{name} missing 'elements' array. "
            f"Available keys: {sorted(payload.keys())}"
        )

    invalid = [i for i, element in enumerate(elements) if not isinstance(element, dict)]
    if invalid:
        raise DataValidationError(
            f"{name} contains non-object elements",
            invalid_rows=len(invalid),
            details={'first_invalid_index': invalid[0]},
        )

    return elements


def log_elements_summary(elements: List[Any], name: str) -> None:
    """
    Log summary statistics for a list of Overpass elements.

    Parameters
    ----------
    elements : List
        Parsed elements (dicts or OverpassElement models)
    name : str
        Name for logging
    """
    log_data = {
        "elements": name,
        "count": len(elements),
    }

    if elements:
        types = pd.Series([
            e.get('type') if isinstance(e, dict) else getattr(e, 'type', None)
            for e in elements
        ])
        log_data["types"] = types.value_counts(dropna=False).to_dict()

    logger.debug("Elements summary", **log_data)


def safe_division(numerator: float, denominator: float, default: float = 0.0) -> float:
    """
    Safely divide two numbers, returning default on error.

    Parameters
    ----------
    numerator : float
        Numerator
    denominator : float
        Denominator
    default : float
        Value to return on division by zero or error

    Returns
    -------
    float
        Result of division or default value
    """
    if denominator == 0 or pd.isna(denominator) or pd.isna(numerator):
        return default

    try:
        result = numerator / denominator
        if not np.isfinite(result):
            return default
        return float(result)
    except (ZeroDivisionError, ValueError, TypeError):
        return default
