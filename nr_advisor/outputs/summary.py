"""
Rendering of analysis reports.

Produces a plain-text summary for the terminal and a JSON document for
downstream tooling.
"""
import json
from pathlib import Path
from typing import Any, Dict, Optional

from nr_advisor.core.report import AnalysisReport
from nr_advisor.core.tags import HEIGHT_TAG, LEVELS_TAG
from nr_advisor.data.schemas import OverpassElement
from nr_advisor.utils.logging_config import get_logger

logger = get_logger(__name__)

NAME_NOT_AVAILABLE = "Name not available"
NO_DATA = "no data"


def _element_name(element: Optional[OverpassElement]) -> str:
    if element is None or not element.name:
        return NAME_NOT_AVAILABLE
    return element.name


def _tag_or_no_data(element: Optional[OverpassElement], tag: str) -> str:
    if element is None or tag not in element.tags:
        return NO_DATA
    return element.tags[tag]


def _element_dict(element: Optional[OverpassElement]) -> Optional[Dict[str, Any]]:
    if element is None:
        return None
    return {'type': element.type, 'id': element.id, 'tags': dict(element.tags)}


def render_text(report: AnalysisReport) -> str:
    """
    Render a report as a human-readable summary.

    Args:
        report: Completed analysis report

    Returns:
        Multi-line string
    """
    buildings = report.building_metrics
    speeds = report.speed_metrics
    city = report.city or "unknown"
    density = NO_DATA if report.population_density is None else f"{report.population_density:,.1f} per km2"

    if speeds.has_data:
        speed_lines = [
            f"  Min Speed     : {speeds.min_speed} km/h",
            f"  Max Speed     : {speeds.max_speed} km/h",
            f"  Average Speed : {report.mean_speed} km/h",
        ]
    else:
        speed_lines = [f"  Speed limits  : {NO_DATA}"]

    max_height = _tag_or_no_data(buildings.tallest_by_height, HEIGHT_TAG)
    max_levels = _tag_or_no_data(buildings.tallest_by_levels, LEVELS_TAG)

    lines = [
        f"City: {city} with Population Density: {density}",
        "",
        "RECOMMENDED SETTINGS",
        f"  Frequency  : {report.settings.frequency}",
        f"  Subcarrier : {report.settings.subcarrier}",
        f"  Cyclic Mode: {report.settings.cyclic_mode}",
        "",
        "BUILDINGS",
        f"  Average Height           : {report.average_height} m",
        f"  Average Levels           : {report.average_levels}",
        f"  Building with Max Height : {max_height}{'' if max_height == NO_DATA else ' m'}",
        f"  Building with Max Levels : {max_levels}{'' if max_levels == NO_DATA else ' Floors'}",
        f"  Taller than {buildings.tall_building_height_m:g} m        : {buildings.tall_buildings_count}",
        "",
        "SPEED",
        *speed_lines,
        "",
        f"Building with Max Height is: {_element_name(buildings.tallest_by_height)}",
        f"Building with Max Levels is: {_element_name(buildings.tallest_by_levels)}",
    ]

    if report.notes:
        lines.append("")
        lines.append("NOTES")
        lines.extend(f"  - {note}" for note in report.notes)

    return "\n".join(lines) + "\n"


def report_to_dict(report: AnalysisReport) -> Dict[str, Any]:
    """Convert a report to a JSON-serialisable dictionary."""
    buildings = report.building_metrics
    speeds = report.speed_metrics
    return {
        'request': report.request.model_dump(),
        'bbox': {
            'min_lat': report.bbox.min_lat,
            'min_lon': report.bbox.min_lon,
            'max_lat': report.bbox.max_lat,
            'max_lon': report.bbox.max_lon,
        },
        'city': report.city,
        'population_density': report.population_density,
        'recommendation': {
            'subcarrier': report.settings.subcarrier,
            'frequency': report.settings.frequency,
            'cyclic_mode': report.settings.cyclic_mode,
        },
        'buildings': {
            'total': report.buildings_total,
            'with_height_tags': report.buildings_with_height_tags,
            'contributing': buildings.contributing_count,
            'average_height': report.average_height,
            'average_levels': report.average_levels,
            'tall_buildings_count': buildings.tall_buildings_count,
            'tall_building_height_m': buildings.tall_building_height_m,
            'tallest_by_height': _element_dict(buildings.tallest_by_height),
            'tallest_by_levels': _element_dict(buildings.tallest_by_levels),
        },
        'speed': {
            'ways': report.speed_ways_total,
            'samples': speeds.sample_count,
            'has_data': speeds.has_data,
            'min_speed': speeds.min_speed,
            'max_speed': speeds.max_speed,
            'mean_speed': report.mean_speed,
        },
        'notes': list(report.notes),
    }


def write_json(report: AnalysisReport, output_path: Path) -> Path:
    """
    Write a report as pretty-printed JSON.

    Args:
        report: Completed analysis report
        output_path: Destination file; parent directories are created

    Returns:
        Path to the written file
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, 'w') as f:
        json.dump(report_to_dict(report), f, indent=2)

    logger.info("Report saved", output_file=str(output_path))
    return output_path
