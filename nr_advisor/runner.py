"""
Runner for the NR settings advisor.

Pipeline for one coordinate:
1. Reverse-geocode the coordinate to a place name (Nominatim)
2. Look up the population density of the place
3. Calculate the bounding box for the bin size
4. Fetch buildings and speed-limited roads from Overpass (in parallel)
5. Aggregate building and speed metrics
6. Select NR settings and render the report

Usage:
    python -m nr_advisor.runner --lat 53.3498 --lon -6.2603 --bin-size 500

    # Write the report as JSON too
    python -m nr_advisor.runner --lat 53.3498 --lon -6.2603 --bin-size 500 --output-json out/report.json

    # Use a custom configuration
    python -m nr_advisor.runner --lat 53.3498 --lon -6.2603 --bin-size 500 --config config/advisor.yaml
"""
import argparse
import math
import sys
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Tuple

from pydantic import ValidationError

from nr_advisor.core.buildings import calculate_building_metrics, filter_buildings_with_height_tags
from nr_advisor.core.geometry import calculate_bbox
from nr_advisor.core.report import AnalysisContext, AnalysisReport
from nr_advisor.core.speeds import calculate_speed_metrics
from nr_advisor.data.schemas import AnalysisRequest, OverpassElement
from nr_advisor.data.sources import (
    NominatimClient,
    OverpassClient,
    PopulationDensityClient,
    build_buildings_query,
    build_speed_query,
)
from nr_advisor.outputs.summary import render_text, write_json
from nr_advisor.recommendations.nr_settings import select_nr_settings
from nr_advisor.utils.config import AdvisorConfig, get_default_config, load_config
from nr_advisor.utils.exceptions import AdvisorError, FetchError, GeometryError
from nr_advisor.utils.logging_config import configure_logging, get_logger

logger = get_logger(__name__)


def resolve_location(
    context: AnalysisContext,
    nominatim: NominatimClient,
    density_client: PopulationDensityClient,
    year: int,
) -> None:
    """
    Fill in the place name and population density of the request.

    Lookup failures are partial-data conditions: they are logged and noted
    on the context, never raised.
    """
    request = context.request

    try:
        result = nominatim.reverse(request.latitude, request.longitude)
    except FetchError as e:
        logger.warning("reverse_geocode_failed", error=str(e))
        context.note("Reverse geocoding failed; city unknown")
        return

    context.city = result.address.place_name
    if not context.city:
        logger.warning("city_not_found", latitude=request.latitude, longitude=request.longitude)
        context.note("No city, town, village or hamlet found for this coordinate")
        return

    logger.info("city_resolved", city=context.city)

    try:
        density = density_client.lookup(context.city, year)
    except FetchError as e:
        logger.warning("population_density_missing", city=context.city, error=str(e))
        context.note(f"Population density unavailable for {context.city}")
        return

    context.population_density = density.population_density
    logger.info("population_density_resolved", city=context.city, density=context.population_density)


def fetch_area_elements(
    context: AnalysisContext,
    overpass: OverpassClient,
    config: AdvisorConfig,
) -> Tuple[List[OverpassElement], List[OverpassElement]]:
    """
    Fetch buildings and speed-limited ways for the context's bounding box.

    The two queries are independent and run concurrently.

    Returns:
        Tuple of (building elements, speed way elements)

    Raises:
        FetchError: If either query fails
    """
    query_timeout = config.http.overpass_query_timeout_s
    buildings_query = build_buildings_query(context.bbox, query_timeout)
    speed_query = build_speed_query(context.bbox, query_timeout)

    with ThreadPoolExecutor(max_workers=config.max_workers) as executor:
        buildings_future = executor.submit(overpass.fetch_elements, buildings_query)
        speed_future = executor.submit(overpass.fetch_elements, speed_query)
        try:
            buildings = buildings_future.result()
            speed_ways = speed_future.result()
        except FetchError:
            buildings_future.cancel()
            speed_future.cancel()
            raise

    logger.info("overpass_data_fetched", buildings=len(buildings), speed_ways=len(speed_ways))
    return buildings, speed_ways


def run_analysis(
    request: AnalysisRequest,
    config: Optional[AdvisorConfig] = None,
    overpass: Optional[OverpassClient] = None,
    nominatim: Optional[NominatimClient] = None,
    density_client: Optional[PopulationDensityClient] = None,
) -> AnalysisReport:
    """
    Run the full analysis for one request.

    Args:
        request: Validated coordinate and bin size
        config: Advisor configuration (defaults when omitted)
        overpass: Overpass client (built from config when omitted)
        nominatim: Reverse-geocoding client (built from config when omitted)
        density_client: Population density client (built from config when omitted)

    Returns:
        AnalysisReport

    Raises:
        GeometryError: If the bounding box cannot be computed
        FetchError: If an Overpass query fails
    """
    config = config or get_default_config()
    overpass = overpass or OverpassClient.from_config(config)
    nominatim = nominatim or NominatimClient.from_config(config)
    density_client = density_client or PopulationDensityClient.from_config(config)

    start_time = datetime.now()
    logger.info(
        "analysis_started",
        latitude=request.latitude,
        longitude=request.longitude,
        bin_size_m=request.bin_size_m,
    )

    context = AnalysisContext(request=request)
    resolve_location(context, nominatim, density_client, config.population_year)

    context.bbox = calculate_bbox(request.latitude, request.longitude, request.bin_size_m)
    logger.info(
        "bbox_calculated",
        bbox=context.bbox.to_overpass(),
        width_m=round(context.bbox.width_m),
        height_m=round(context.bbox.height_m),
    )

    buildings, speed_ways = fetch_area_elements(context, overpass, config)

    thresholds = config.thresholds
    height_tagged = filter_buildings_with_height_tags(buildings)
    building_metrics = calculate_building_metrics(
        height_tagged,
        tall_building_height_m=thresholds.tall_building_height_m,
    )
    if not building_metrics.has_data:
        context.note("No buildings with height or level data in the area")

    speed_metrics = calculate_speed_metrics(speed_ways)
    if not speed_metrics.has_data:
        context.note("No numeric speed limits in the area; lowest subcarrier tier assumed")

    mean_speed = math.ceil(speed_metrics.mean_speed) if speed_metrics.has_data else 0
    settings = select_nr_settings(
        population_density=context.population_density or 0,
        average_height=math.ceil(building_metrics.average_height),
        average_levels=math.ceil(building_metrics.average_levels),
        average_speed=mean_speed,
        thresholds=thresholds,
    )

    report = AnalysisReport(
        request=request,
        bbox=context.bbox,
        city=context.city,
        population_density=context.population_density,
        buildings_total=len(buildings),
        buildings_with_height_tags=len(height_tagged),
        building_metrics=building_metrics,
        speed_ways_total=len(speed_ways),
        speed_metrics=speed_metrics,
        settings=settings,
        notes=list(context.notes),
    )

    logger.info(
        "analysis_complete",
        subcarrier=settings.subcarrier,
        frequency=settings.frequency,
        cyclic_mode=settings.cyclic_mode,
        duration_s=round((datetime.now() - start_time).total_seconds(), 2),
    )
    return report


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='NR settings advisor - recommend 5G NR settings for an area',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Analyse a 500 m radius around central Dublin
  python -m nr_advisor.runner --lat 53.3498 --lon -6.2603 --bin-size 500

  # Save the report as JSON and emit JSON logs
  python -m nr_advisor.runner --lat 53.3498 --lon -6.2603 --bin-size 500 \\
      --output-json out/dublin.json --json-logs
        """
    )

    parser.add_argument('--lat', type=float, required=True, help='Center latitude (decimal degrees)')
    parser.add_argument('--lon', type=float, required=True, help='Center longitude (decimal degrees)')
    parser.add_argument('--bin-size', type=float, required=True, help='Radius of the area in meters')

    parser.add_argument(
        '--config',
        type=Path,
        default=None,
        help='YAML configuration file (default: built-in settings)'
    )

    parser.add_argument(
        '--output-json',
        type=Path,
        default=None,
        help='Also write the report as JSON to this path'
    )

    parser.add_argument(
        '--log-level',
        default='WARNING',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
        help='Logging level (default: WARNING)'
    )

    parser.add_argument('--json-logs', action='store_true', help='Emit JSON-formatted logs')
    parser.add_argument('--log-file', type=Path, default=None, help='Also write logs to this file')

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for CLI."""
    args = build_parser().parse_args(argv)

    configure_logging(log_level=args.log_level, log_file=args.log_file, json_output=args.json_logs)

    try:
        request = AnalysisRequest(latitude=args.lat, longitude=args.lon, bin_size_m=args.bin_size)
    except ValidationError as e:
        print(f"Invalid input: {e}", file=sys.stderr)
        return 2

    try:
        config = load_config(args.config) if args.config else get_default_config()
        report = run_analysis(request, config)
    except GeometryError as e:
        print(f"Invalid input: {e}", file=sys.stderr)
        return 2
    except (AdvisorError, FileNotFoundError) as e:
        logger.error("Execution failed", error=str(e), exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1

    sys.stdout.write(render_text(report))
    if args.output_json:
        try:
            write_json(report, args.output_json)
        except OSError as e:
            logger.error("Report write failed", path=str(args.output_json), error=str(e))
            print(f"Error: could not write {args.output_json}: {e}", file=sys.stderr)
            return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
