"""CLI entry point for the carpool matching engine."""

import argparse
import asyncio
import logging
import sys
from datetime import datetime, timezone

from campusride.core.config import Settings
from campusride.core.db import init_db
from campusride.core.geo import format_distance
from campusride.core.schemas import GeoPoint, MatchResult
from campusride.pipeline.orchestrator import MatchEngine, export_matches_json
from campusride.pricing.fare import calculate_fare, format_fare, surge_label, total_fare
from campusride.sources.sqlite import SQLiteRideSource


def _geo_point(value: str) -> GeoPoint:
    """Parse 'LAT,LNG' into a GeoPoint (argparse type)."""
    try:
        lat, lng = (float(part) for part in value.split(","))
        return GeoPoint(lat=lat, lng=lng)
    except ValueError as e:
        msg = f"expected LAT,LNG with valid coordinates, got '{value}'"
        raise argparse.ArgumentTypeError(msg) from e


def _iso_datetime(value: str) -> datetime:
    try:
        return datetime.fromisoformat(value)
    except ValueError as e:
        msg = f"expected an ISO 8601 datetime, got '{value}'"
        raise argparse.ArgumentTypeError(msg) from e


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Campus carpool matching - rank driver rides for a passenger",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # --- search subcommand ---
    search_parser = subparsers.add_parser("search", help="Find the best rides for a passenger")
    search_parser.add_argument(
        "--config",
        default="config/settings.yaml",
        help="Path to settings YAML file (default: config/settings.yaml)",
    )
    search_parser.add_argument(
        "--pickup", required=True, type=_geo_point, help="Passenger pickup as LAT,LNG",
    )
    search_parser.add_argument(
        "--destination", required=True, type=_geo_point, help="Passenger destination as LAT,LNG",
    )
    search_parser.add_argument("--seats", type=int, default=1, help="Seats required (default: 1)")
    search_parser.add_argument(
        "--max-pay", type=float, required=True, help="Maximum fare per seat in RM",
    )
    search_parser.add_argument(
        "--min-rating", type=float, default=None, help="Minimum driver rating (0-5)",
    )
    search_parser.add_argument("--top", type=int, default=None, help="Number of matches to return")
    search_parser.add_argument(
        "--max-distance", type=float, default=None, help="Search radius in km",
    )
    search_parser.add_argument(
        "--passenger-id", default=None, help="Passenger id for gender-preference matching",
    )
    search_parser.add_argument(
        "--export",
        choices=["json"],
        help="Export results to format (json)",
    )
    search_parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )

    # --- fare subcommand ---
    fare_parser = subparsers.add_parser("fare", help="Quote a student fare")
    fare_parser.add_argument(
        "--distance", type=float, required=True, help="Trip distance in km",
    )
    fare_parser.add_argument(
        "--at", type=_iso_datetime, default=None,
        help="Departure time, ISO 8601 (default: now)",
    )
    fare_parser.add_argument("--seats", type=int, default=1, help="Seats to book (default: 1)")
    fare_parser.add_argument(
        "--config",
        default=None,
        help="Optional settings YAML with custom fare rules",
    )
    fare_parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )

    return parser.parse_args(argv)


def setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def print_matches(matches: list[MatchResult]) -> None:
    if not matches:
        print("No matches found.")
        return

    print(f"\n{len(matches)} match(es) found:")
    for i, m in enumerate(matches, start=1):
        vehicle = m.driver.vehicle
        vehicle_text = (
            f"{vehicle.model or 'N/A'} ({vehicle.color or 'N/A'}) - {vehicle.plate_number or 'N/A'}"
            if vehicle else "N/A"
        )
        print(f"  {i}. {m.match_quality} ({m.score_percentage}) ride {m.ride.id}")
        print(f"     Driver: {m.driver.name}, rating {m.driver.average_rating:.1f} "
              f"({m.driver.rating_count} ratings)")
        print(f"     Vehicle: {vehicle_text}")
        print(f"     Fare: {format_fare(m.fare)}, pickup {format_distance(m.pickup_distance_km)} "
              f"away, destination {format_distance(m.dest_distance_km)} apart")


async def run_search(settings: Settings, args: argparse.Namespace) -> list[MatchResult]:
    """Run a match search against the configured SQLite database."""
    conn = init_db(settings.database.path)
    try:
        engine = MatchEngine(SQLiteRideSource(conn, settings.lookup), settings)
        return await engine.find_best_matches(
            args.pickup,
            args.destination,
            args.seats,
            args.max_pay,
            args.min_rating,
            args.top,
            args.max_distance,
            passenger_id=args.passenger_id,
        )
    finally:
        conn.close()


def cmd_search(args: argparse.Namespace) -> None:
    """Handle search subcommand."""
    settings = Settings.from_yaml(args.config)
    matches = asyncio.run(run_search(settings, args))

    if args.export == "json":
        print(export_matches_json(matches))
    else:
        print_matches(matches)


def cmd_fare(args: argparse.Namespace) -> None:
    """Handle fare subcommand."""
    settings = Settings.from_yaml(args.config) if args.config else Settings()
    trip_time = args.at or datetime.now(timezone.utc)
    fare = calculate_fare(args.distance, trip_time, settings.fare)

    print(f"Distance: {format_distance(args.distance)}")
    print(f"Pricing: {surge_label(trip_time, settings.fare)}")
    print(f"Fare per seat: {format_fare(fare)}")
    if args.seats > 1:
        print(f"Total for {args.seats} seats: {format_fare(total_fare(fare, args.seats))}")


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    setup_logging(args.verbose)

    if args.command == "fare":
        try:
            cmd_fare(args)
        except (FileNotFoundError, ValueError) as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)
    else:
        try:
            cmd_search(args)
        except (FileNotFoundError, ValueError) as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)


if __name__ == "__main__":
    main()
