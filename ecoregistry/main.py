# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Registry updater command line

Usage:
    python -m ecoregistry create-db
    python -m ecoregistry update [--duration SECONDS]
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from ecoregistry.core.config import Config, get_config, load_config
from ecoregistry.core.errors import EcoRegistryError
from ecoregistry.core.logging import configure_logging
from ecoregistry.models.module_models import UpdateReport
from ecoregistry.services.proxy.client import FetchClient, FetchClientConfig
from ecoregistry.services.proxy.module_proxy import ModuleProxy
from ecoregistry.services.registry.orchestrator import UpdateConfig, UpdateOrchestrator
from ecoregistry.services.registry.store import ModuleRegistry

logger = logging.getLogger(__name__)


async def create_db(config: Config):
    """Create the registry database and its tables."""
    config.db_path.parent.mkdir(parents=True, exist_ok=True)
    registry = ModuleRegistry(config.database_url)
    try:
        await registry.create_schema()
    finally:
        await registry.close()
    logger.info(f"Created database at {config.db_path}")


async def update(config: Config, duration: float = None) -> UpdateReport:
    """
    Run one update against the configured database.

    Args:
        config: Application configuration
        duration: Seconds to spend reading the index (config value if None)

    Returns:
        Counts for the run
    """
    registry = ModuleRegistry(config.database_url)
    try:
        async with FetchClient(FetchClientConfig.from_config(config)) as client:
            proxy = ModuleProxy(client, config.proxy_url)
            orchestrator = UpdateOrchestrator(
                registry,
                client,
                proxy,
                UpdateConfig.from_config(config, duration=duration),
            )
            return await orchestrator.run()
    finally:
        await registry.close()


def main():
    parser = argparse.ArgumentParser(description="Module ecosystem registry updater")
    parser.add_argument(
        "--config",
        help="YAML configuration file (default: $ECOREGISTRY_CONFIG_PATH or configs/ecoregistry.yaml)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("create-db", help="Create the registry database")
    update_parser = subparsers.add_parser("update", help="Ingest the index and resolve versions")
    update_parser.add_argument(
        "--duration",
        type=float,
        help="Seconds to spend reading the index (default: from config)",
    )

    args = parser.parse_args()

    try:
        config = load_config(args.config) if args.config else get_config()
        configure_logging(config.log_level, config.log_format)
    except (EcoRegistryError, ValueError) as e:
        print(f"error: {e}", file=sys.stderr)
        sys.exit(2)

    try:
        if args.command == "create-db":
            asyncio.run(create_db(config))
        else:
            report = asyncio.run(update(config, args.duration))
            print(report.model_dump_json(indent=2))
    except EcoRegistryError as e:
        logger.error(f"{args.command} failed: {e}", extra={"error_details": e.to_dict()})
        sys.exit(1)


if __name__ == "__main__":
    main()
