"""
Parsers for numeric OSM tag values.

OSM values are free text ("12 m", "3;4", "national"). These parsers read
the leading number the way a lenient number prefix parse would, and return
None when the tag is absent or has no numeric prefix, so that an absent tag
is never confused with a value of zero.
"""
import math
import re
from typing import Mapping, Optional

_LEADING_FLOAT = re.compile(r'^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)')
_LEADING_INT = re.compile(r'^\s*([+-]?\d+)')

HEIGHT_TAG = 'height'
LEVELS_TAG = 'building:levels'
MAXSPEED_TAG = 'maxspeed'
NAME_TAG = 'name'


def parse_float_prefix(value: Optional[str]) -> Optional[float]:
    """'12.5 m' -> 12.5, 'unknown' -> None, '1e999' -> None."""
    if value is None:
        return None
    match = _LEADING_FLOAT.match(value)
    if not match:
        return None
    number = float(match.group(1))
    if not math.isfinite(number):
        return None
    return number


def parse_int_prefix(value: Optional[str]) -> Optional[int]:
    """'3;4' -> 3, '50 mph' -> 50, 'national' -> None."""
    if value is None:
        return None
    match = _LEADING_INT.match(value)
    if not match:
        return None
    return int(match.group(1))


def height_of(tags: Mapping[str, str]) -> Optional[float]:
    return parse_float_prefix(tags.get(HEIGHT_TAG))


def levels_of(tags: Mapping[str, str]) -> Optional[int]:
    return parse_int_prefix(tags.get(LEVELS_TAG))


def maxspeed_of(tags: Mapping[str, str]) -> Optional[int]:
    return parse_int_prefix(tags.get(MAXSPEED_TAG))
