from __future__ import annotations
"""Key and age predicates applied to every listed object."""
from typing import Callable, Optional

from .models import FilterCriteria, ListedObject

Check = Callable[[ListedObject, FilterCriteria], bool]


def _non_empty(obj: ListedObject, criteria: FilterCriteria) -> bool:
    return bool(obj.key)


def _not_folder_marker(obj: ListedObject, criteria: FilterCriteria) -> bool:
    # A key equal to a pattern is the folder marker itself, never data.
    return obj.key not in criteria.prefixes and obj.key not in criteria.suffixes


def _prefix(obj: ListedObject, criteria: FilterCriteria) -> bool:
    if not criteria.prefixes:
        return True
    return any(obj.key.startswith(prefix) for prefix in criteria.prefixes)


def _suffix(obj: ListedObject, criteria: FilterCriteria) -> bool:
    if not criteria.suffixes:
        return True
    return any(obj.key.endswith(suffix) for suffix in criteria.suffixes)


def _age(obj: ListedObject, criteria: FilterCriteria) -> bool:
    return obj.last_modified <= criteria.cutoff


CHECKS: tuple[tuple[str, Check], ...] = (
    ("non_empty", _non_empty),
    ("not_folder_marker", _not_folder_marker),
    ("prefix", _prefix),
    ("suffix", _suffix),
    ("age", _age),
)


class KeyFilter:
    """Ordered predicate chain; an object matches when every check passes."""

    def __init__(self, criteria: FilterCriteria):
        self._criteria = criteria

    def rejection(self, obj: ListedObject) -> Optional[str]:
        """Return the name of the first failing check, or ``None`` on a match."""

        for name, check in CHECKS:
            if not check(obj, self._criteria):
                return name
        return None

    def matches(self, obj: ListedObject) -> bool:
        return self.rejection(obj) is None

    def select(self, objects):
        for obj in objects:
            if self.matches(obj):
                yield obj


def matches(obj: ListedObject, criteria: FilterCriteria) -> bool:
    return KeyFilter(criteria).matches(obj)
