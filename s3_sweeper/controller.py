from __future__ import annotations
"""Run controller tying cutoff, listing, filtering and deletion together."""

import logging
from dataclasses import dataclass, field
from datetime import datetime

from .dispatcher import DeletionDispatcher
from .durations import compute_cutoff, parse_duration
from .filters import KeyFilter
from .models import FilterCriteria, RunResult
from .reporting import summary_line
from .services import ListingError, S3SweeperService
from .settings import (
    DEFAULT_CONCURRENCY,
    DEFAULT_PAGE_SIZE,
    SweepSettings,
    sanitize_positive_int,
)

logger = logging.getLogger(__name__)


@dataclass
class SweepOptions:
    """Per-run options collected from the command line."""

    older_than: str
    prefixes: list[str] = field(default_factory=list)
    suffixes: list[str] = field(default_factory=list)
    delete: bool = False
    page_size: int = DEFAULT_PAGE_SIZE
    concurrency: int = DEFAULT_CONCURRENCY
    fail_on_listing_error: bool = False


class SweepController:
    """Coordinates one sweep over the configured bucket."""

    def __init__(self, service: S3SweeperService, settings: SweepSettings):
        self._service = service
        self._settings = settings

    def build_criteria(self, options: SweepOptions, now: datetime | None = None) -> FilterCriteria:
        """Parse the age threshold and freeze the filter for this run.

        Raises:
            InvalidDuration: when ``options.older_than`` cannot be parsed.
        """
        cutoff = compute_cutoff(parse_duration(options.older_than), now=now)
        return FilterCriteria(
            prefixes=tuple(p for p in options.prefixes if p),
            suffixes=tuple(s for s in options.suffixes if s),
            cutoff=cutoff,
        )

    def run(self, options: SweepOptions, now: datetime | None = None) -> RunResult:
        criteria = self.build_criteria(options, now=now)
        logger.info("Searching for objects since %s", criteria.cutoff)

        key_filter = KeyFilter(criteria)
        result = RunResult(delete=options.delete)
        pages = self._service.iter_pages(
            self._settings.bucket,
            prefix=criteria.listing_prefix,
            page_size=sanitize_positive_int(options.page_size, DEFAULT_PAGE_SIZE),
        )

        with DeletionDispatcher(
            self._service,
            self._settings.bucket,
            delete=options.delete,
            max_concurrency=sanitize_positive_int(options.concurrency, DEFAULT_CONCURRENCY),
            result=result,
        ) as dispatcher:
            try:
                for page in pages:
                    result.pages += 1
                    for obj in key_filter.select(page.objects):
                        dispatcher.submit(obj)
            except ListingError as exc:
                result.listing_error = exc
                logger.error("%s", exc)

        logger.info(summary_line(result))
        return result


def exit_code(result: RunResult, options: SweepOptions) -> int:
    """Return the process status for a finished run."""

    if result.listing_error is None:
        return 0
    if result.pages == 0 or options.fail_on_listing_error:
        return 1
    return 0
