#!/usr/bin/env python3
"""Print the weather observation and rule color for one coordinate.

Usage:
    python colorize.py --lat 20.0 --lon 78.0 --time 2025-08-05T12:00

Example:
    python colorize.py --lat 20.0 --lon 78.0 --start 2025-08-04T00:00 \
        --end 2025-08-06T00:00 --rules rules.json --source openmeteo
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from datetime import datetime

# Check imports before running
try:
    import regioncast as rc
    from pydantic import ValidationError
except ImportError:
    print("Error: regioncast not installed. Run: pip install -e .")
    sys.exit(1)


def parse_time(value: str) -> datetime:
    """argparse type for ISO-8601 timestamps."""
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an ISO-8601 timestamp: {value!r}") from None


async def run(args: argparse.Namespace) -> int:
    """Resolve and classify the requested coordinate."""
    config = rc.Config(provider=args.provider, timezone=args.timezone)
    point = rc.coordinate(args.lat, args.lon)

    if args.start is not None and args.end is not None:
        selection = (args.start, args.end)
    else:
        selection = args.time or datetime.now()

    rule_sets = rc.load_rule_sets(args.rules) if args.rules else rc.DEFAULT_RULE_SETS
    if args.source not in rule_sets:
        print(f"Error: no rule set named {args.source!r} in rules file.")
        return 1
    rule_set = rule_sets[args.source]

    resolver = rc.WeatherResolver(config=config)
    observation = await resolver.resolve(point, selection)
    result = rc.evaluate(observation, rule_set)

    print(f"Location:  {point.lat:.4f}, {point.lon:.4f}")
    print(f"Time:      {observation.timestamp.isoformat(sep=' ')}")
    print(f"Source:    {'fallback' if observation.fallback else resolver.provider.name}")
    for name in observation.values:
        marker = " (synthesized)" if name in observation.synthesized else ""
        print(f"  {name:<18} {observation.display_value(name)}{marker}")
    print(f"Field:     {rule_set.field}")
    print(f"Color:     {result.color} ({result.status})")
    return 0


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Color a coordinate by its weather using threshold rules.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python colorize.py --lat 20.0 --lon 78.0 --time 2025-08-05T12:00
  python colorize.py --lat 52.23 --lon 21.01 --start 2025-08-04T00:00 --end 2025-08-06T00:00
        """,
    )
    parser.add_argument("--lat", type=float, required=True, help="Latitude in degrees")
    parser.add_argument("--lon", type=float, required=True, help="Longitude in degrees")
    parser.add_argument(
        "--time",
        type=parse_time,
        default=None,
        help="Point in time (ISO-8601, default: now)",
    )
    parser.add_argument("--start", type=parse_time, default=None, help="Range start")
    parser.add_argument("--end", type=parse_time, default=None, help="Range end")
    parser.add_argument(
        "--rules",
        type=str,
        default=None,
        help="JSON rule file (default: built-in temperature rules)",
    )
    parser.add_argument(
        "--source",
        type=str,
        default="openmeteo",
        help="Rule set key inside the rules file (default: openmeteo)",
    )
    parser.add_argument(
        "--provider",
        type=str,
        default="open-meteo-archive",
        help="Weather provider (default: open-meteo-archive)",
    )
    parser.add_argument(
        "--timezone",
        type=str,
        default="UTC",
        help="IANA time zone for naive timestamps (default: UTC)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if (args.start is None) != (args.end is None):
        print("Error: --start and --end must be given together.")
        sys.exit(1)

    try:
        sys.exit(asyncio.run(run(args)))
    except (rc.RegionCastError, ValidationError) as e:
        print(f"\nError: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
