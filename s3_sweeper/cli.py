from __future__ import annotations
"""Command line entry point."""
import argparse
import logging
import os
from datetime import datetime, timezone
from typing import Sequence

from .controller import SweepController, SweepOptions, exit_code
from .durations import InvalidDuration, compute_cutoff, parse_duration
from .reporting import load_package_info
from .services import S3SweeperService
from .settings import (
    DEFAULT_CONCURRENCY,
    DEFAULT_PAGE_SIZE,
    ConfigurationError,
    SettingsLoader,
)

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_LEVEL_ENV = "S3_SWEEPER_LOG"

logger = logging.getLogger(__name__)


def _comma_list(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected an integer, got {value!r}")
    if number <= 0:
        raise argparse.ArgumentTypeError("must be greater than zero")
    return number


def build_parser() -> argparse.ArgumentParser:
    info = load_package_info()
    parser = argparse.ArgumentParser(prog="s3-sweeper", description=info.summary or None)
    parser.add_argument(
        "-p",
        "--prefix",
        dest="prefixes",
        action="extend",
        type=_comma_list,
        default=[],
        help='Comma-separated prefixes for search objects (e.g. "upload,download")',
    )
    parser.add_argument(
        "-s",
        "--suffix",
        dest="suffixes",
        action="extend",
        type=_comma_list,
        default=[],
        help='Comma-separated suffixes for search objects (e.g. ".jpg,.png")',
    )
    parser.add_argument(
        "-o",
        "--older-than",
        required=True,
        help="Objects older than the specified will be deleted (1d2h30m)",
    )
    parser.add_argument(
        "--delete",
        action="store_true",
        help="Really delete objects instead of only reporting them",
    )
    parser.add_argument(
        "--page-size",
        type=_positive_int,
        default=DEFAULT_PAGE_SIZE,
        help="Page size while retrieving objects (default: %(default)s)",
    )
    parser.add_argument(
        "--concurrent-requests",
        type=_positive_int,
        default=DEFAULT_CONCURRENCY,
        help="Max concurrent requests to S3 (default: %(default)s)",
    )
    parser.add_argument(
        "--fail-on-listing-error",
        action="store_true",
        help="Exit non-zero when any listing page fails, even after partial progress",
    )
    parser.add_argument(
        "--log-level",
        default=os.environ.get(LOG_LEVEL_ENV, "INFO"),
        help=f"Logging level (default: ${LOG_LEVEL_ENV} or INFO)",
    )
    parser.add_argument("-V", "--version", action="version", version=f"%(prog)s {info.version}")
    return parser


def configure_logging(level_name: str) -> None:
    level = logging.getLevelName(level_name.upper())
    if not isinstance(level, int):
        level = logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    if level > logging.DEBUG:
        for name in ("botocore", "boto3", "urllib3"):
            logging.getLogger(name).setLevel(logging.WARNING)


def main(argv: Sequence[str] | None = None, *, settings_loader: SettingsLoader | None = None, service_factory=None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)

    options = SweepOptions(
        older_than=args.older_than,
        prefixes=args.prefixes,
        suffixes=args.suffixes,
        delete=args.delete,
        page_size=args.page_size,
        concurrency=args.concurrent_requests,
        fail_on_listing_error=args.fail_on_listing_error,
    )

    now = datetime.now(timezone.utc)
    try:
        compute_cutoff(parse_duration(options.older_than), now=now)
        settings = (settings_loader or SettingsLoader()).load()
    except (InvalidDuration, ConfigurationError) as exc:
        logger.error("%s", exc)
        return 2

    service = (service_factory or S3SweeperService)(settings)
    result = SweepController(service, settings).run(options, now=now)
    return exit_code(result, options)
