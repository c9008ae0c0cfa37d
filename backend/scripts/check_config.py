"""
Validate Paddock configuration and optionally test connectivity.

Usage:
    python scripts/check_config.py
    python scripts/check_config.py --connectivity
"""

import argparse
import asyncio
import os
import sys

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from paddock.config import get_settings
from paddock.config_validator import connectivity_test, validate
from paddock.database import async_engine
from paddock.fetchers import TabClient


def print_summary(summary: dict) -> None:
    print("\nConfiguration Summary:")
    print(f"  Database: {summary['database']}")
    print(f"  Feed: {summary['feed']['base_url']}")
    print(f"  Rate limit: {summary['feed']['rate_limit_ms']}ms")
    print(f"  Job concurrency: {summary['jobs']['concurrency']}")


async def run_connectivity() -> bool:
    print("\nTesting connectivity...")
    try:
        async with TabClient() as client:
            ok, results = await connectivity_test(async_engine, client)
    finally:
        await async_engine.dispose()

    for service, (service_ok, message) in results.items():
        mark = "OK" if service_ok else "FAILED"
        print(f"  [{mark}] {service}: {message}")
    return ok


async def main() -> int:
    parser = argparse.ArgumentParser(description="Validate Paddock configuration")
    parser.add_argument(
        "-c",
        "--connectivity",
        action="store_true",
        help="Also test database and feed connectivity",
    )
    args = parser.parse_args()

    result = validate(get_settings())
    if not result.valid:
        print("Configuration validation failed:", file=sys.stderr)
        for error in result.errors:
            print(f"  - {error}", file=sys.stderr)
        return 1

    print("Configuration validation passed")
    print_summary(result.summary)

    if args.connectivity and not await run_connectivity():
        print("Connectivity test failed", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
