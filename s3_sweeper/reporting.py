from __future__ import annotations
"""Formatting helpers for log lines and the version banner."""
from dataclasses import dataclass
from datetime import datetime
from importlib.metadata import PackageNotFoundError, metadata, version

from .models import RunResult

DIST_NAME = "s3-sweeper"


@dataclass(frozen=True)
class PackageInfo:
    name: str
    version: str
    summary: str


def load_package_info(dist_name: str = DIST_NAME) -> PackageInfo:
    try:
        distribution_metadata = metadata(dist_name)
        package_version = version(dist_name)
    except PackageNotFoundError:
        return PackageInfo(
            name=dist_name,
            version="unknown",
            summary="Find and delete old objects in an S3 bucket.",
        )
    return PackageInfo(
        name=distribution_metadata.get("Name") or dist_name,
        version=package_version,
        summary=distribution_metadata.get("Summary") or "",
    )


def format_timestamp(value: datetime) -> str:
    """Render a timestamp in the local timezone."""

    return value.astimezone().strftime("%Y-%m-%d %H:%M:%S %z")


def summary_line(result: RunResult) -> str:
    if not result.delete:
        return f"Found objects: {result.matched}. To delete them, pass --delete"
    line = f"Deleted objects: {result.deleted}"
    if result.failed:
        line += f", failed: {result.failed}"
    return line
