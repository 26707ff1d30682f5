#!/usr/bin/env python3
"""
run_queries - Tool for running the named MongoDB queries of the query catalogue and printing
              their results.

Usage:
    python3 run_queries.py --help
    python3 run_queries.py --list
    python3 run_queries.py --query active_users_count --query top_5_favorite_fruits
    python3 run_queries.py --check-equivalences

Environment Variables:
    MONGODB_URL - MongoDB connection URL (required)

The database name and connection timeout are read from config.toml. Every result is printed as
MongoDB extended JSON; a failed query prints its error kind and message instead. The exit status
is non-zero when any query failed or any pair of equivalent queries disagreed.
"""

import argparse
import asyncio
import logging
import os
import sys
from typing import List

# Third-party imports
from bson import json_util
from dotenv import load_dotenv

# Local imports
from query_catalogue import (CatalogueError, EquivalenceCheck, InvalidConnectionError,
                             QueryCatalogueRunner, QueryResult, load_query_catalogue, open_database)
from query_catalogue.config import load_config

# Load environment variables from .env file
load_dotenv()

# Setup the global logger
logger = logging.getLogger(__name__)


def setup_logging(level: str = "INFO") -> None:
    """Setup logging configuration"""
    logging.basicConfig(level=getattr(logging, level.upper()),
                        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
                        datefmt='%Y-%m-%d %H:%M:%S')


def print_catalogue(runner: QueryCatalogueRunner) -> None:
    for definition in runner.definitions():
        print(f"{definition.name:<40} {definition.kind.value:<10} {definition.collection:<8} "
              f"{definition.description}")


def print_result(result: QueryResult, indent: int) -> None:
    print(f"\n=== {result.name} ===")
    if not result.ok:
        print(f"FAILED ({result.error.kind}): {result.error.message}")
    elif result.is_empty:
        print("(no documents)")
    else:
        print(json_util.dumps(result.documents, indent=indent))


def print_equivalence_checks(checks: List[EquivalenceCheck]) -> None:
    print("\n=== EQUIVALENCE CHECKS ===")
    for check in checks:
        print(f"- {check}")
        for result in (check.first, check.second):
            if not result.ok:
                print(f"    {result}")


async def main() -> int:
    """
    Main function
    """
    parser = argparse.ArgumentParser(description="Run named queries from the MongoDB query catalogue")
    parser.add_argument("--log-level",
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        default='INFO',
                        help="Set the logging level")
    parser.add_argument("--config", default="config.toml", help="Path to the TOML configuration")
    parser.add_argument("--list",
                        action="store_true",
                        help="List the catalogue queries and exit without connecting")
    parser.add_argument("--query",
                        action="append",
                        dest="queries",
                        metavar="NAME",
                        help="Query to run (repeatable). Defaults to every query in the catalogue")
    parser.add_argument("--check-equivalences",
                        action="store_true",
                        help="Also run every pair of equivalent queries and compare their results")

    args = parser.parse_args()

    # Setup logging with specified level
    setup_logging(args.log_level)

    try:
        catalogue = load_query_catalogue()
    except CatalogueError as e:
        logger.error("Failed to load query catalogue: %s", e)
        return 1

    if args.list:
        print_catalogue(QueryCatalogueRunner(database=None, catalogue=catalogue))
        return 0

    unknown = [name for name in args.queries or [] if name not in catalogue]
    if unknown:
        parser.error(f"Unknown queries: {', '.join(unknown)} (use --list to see the catalogue)")

    # Load configuration
    try:
        config = load_config(args.config)
        logger.info("Configuration loaded successfully")
    except ValueError as e:
        logger.error("Failed to load configuration: %s", e)
        return 1

    # Extract configuration from environment variables
    mongodb_url = os.getenv('MONGODB_URL')
    if not mongodb_url:
        logger.error("MongoDB URL is required. Set the MONGODB_URL environment variable")
        return 1

    mongodb_config = config['mongodb']
    indent = config['output']['indent']

    try:
        async with open_database(mongodb_url, mongodb_config['database'],
                                 mongodb_config['server_selection_timeout_ms']) as database:
            runner = QueryCatalogueRunner(database=database, catalogue=catalogue)

            results = await runner.run_many(args.queries)
            for result in results:
                print_result(result, indent)

            checks = []
            if args.check_equivalences:
                checks = await runner.check_all_equivalences()
                print_equivalence_checks(checks)
    except InvalidConnectionError as e:
        logger.error("%s", e)
        return 1

    failed = [result.name for result in results if not result.ok]
    disagreeing = [str(check) for check in checks if not check.agree]

    if failed:
        logger.error("%d of %d queries failed: %s", len(failed), len(results), ", ".join(failed))
    if disagreeing:
        logger.error("%d equivalence checks failed", len(disagreeing))

    return 1 if failed or disagreeing else 0


def cli() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    cli()
