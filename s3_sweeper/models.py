from __future__ import annotations
"""Data models shared by the listing, filtering and deletion stages."""
from dataclasses import dataclass, field
from datetime import datetime
from threading import Lock
from typing import Optional


@dataclass(frozen=True)
class ListedObject:
    """One entry returned by a bucket listing."""

    key: str
    last_modified: datetime


@dataclass
class ObjectPage:
    """Represents a single page of listed objects."""

    number: int
    objects: list[ListedObject] = field(default_factory=list)


@dataclass(frozen=True)
class FilterCriteria:
    """Filter configuration for one run; built once before listing starts."""

    cutoff: datetime
    prefixes: tuple[str, ...] = ()
    suffixes: tuple[str, ...] = ()

    @property
    def listing_prefix(self) -> str:
        # Only the first prefix narrows the listing server-side.
        return self.prefixes[0] if self.prefixes else ""


@dataclass
class RunResult:
    """Counters accumulated over one run."""

    delete: bool = False
    matched: int = 0
    deleted: int = 0
    failed: int = 0
    pages: int = 0
    listing_error: Optional[Exception] = None
    _lock: Lock = field(default_factory=Lock, repr=False, compare=False)

    def record_match(self) -> None:
        with self._lock:
            self.matched += 1

    def record_deleted(self) -> None:
        with self._lock:
            self.deleted += 1

    def record_failed(self) -> None:
        with self._lock:
            self.failed += 1

    @property
    def settled(self) -> int:
        with self._lock:
            return self.deleted + self.failed
