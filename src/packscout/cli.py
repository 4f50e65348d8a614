"""Command-line entry point: ``packscout <package> [-r URL ...]``.

Prints the release result as JSON on stdout. Exit status is 0 when releases
were found, 1 when no registry knew the package, and 2 when the default
registry is unavailable.
"""

from __future__ import annotations

import argparse
import asyncio
import sys

import structlog

from packscout.config import Settings
from packscout.errors import RegistryUnavailableError
from packscout.logging_config import configure_logging
from packscout.state import create_app_state

log = structlog.get_logger()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="packscout", description="List releases of a Composer package."
    )
    parser.add_argument("package", help="package name, e.g. vendor/name")
    parser.add_argument(
        "-r",
        "--registry",
        action="append",
        dest="registries",
        metavar="URL",
        help="registry URL to try, in order (repeatable; default: the public registry)",
    )
    return parser


async def run(package: str, registries: list[str] | None, settings: Settings) -> int:
    async with create_app_state(settings) as state:
        try:
            result = await state.datasource.get_releases(package, registries)
        except RegistryUnavailableError as exc:
            log.error("registry_unavailable", error=exc.message)
            return 2
    if result is None:
        log.info("no_releases_found", package=package)
        return 1
    sys.stdout.write(result.model_dump_json(indent=2) + "\n")
    return 0


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = Settings()
    configure_logging(settings.logging)
    return asyncio.run(run(args.package, args.registries, settings))
