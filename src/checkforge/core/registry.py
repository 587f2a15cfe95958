"""
Check registry.

Holds the checks for a run, grouped by category. Built once, then only read,
so a single registry can back any number of runs.
"""

import logging
from collections import OrderedDict
from typing import Dict, Iterable, Iterator, List, Optional

from ..errors import DuplicateCheckId
from .models import Check

logger = logging.getLogger(__name__)


class CheckRegistry:
    """
    Ordered collection of checks.

    Iteration order: categories in the order they were first seen, and
    checks within a category in registration order.
    """

    def __init__(self, checks: Optional[Iterable[Check]] = None):
        self._by_category: "OrderedDict[str, List[Check]]" = OrderedDict()
        self._by_id: Dict[str, Check] = {}
        if checks:
            self.extend(checks)

    def register(self, check: Check) -> Check:
        """Add a check. Raises DuplicateCheckId if the id is taken."""
        if not isinstance(check, Check):
            raise TypeError(f"Expected Check, got {type(check).__name__}")
        if check.id in self._by_id:
            raise DuplicateCheckId(check.id)

        self._by_id[check.id] = check
        self._by_category.setdefault(check.category, []).append(check)
        logger.debug(f"Registered check {check.id} ({check.category})")
        return check

    def extend(self, checks: Iterable[Check]):
        for check in checks:
            self.register(check)

    def list_checks(self, category: Optional[str] = None) -> Iterable[Check]:
        """
        Registered checks, optionally filtered by category.

        Returns a lazy view that can be iterated any number of times.
        """
        return _CheckView(self, category)

    def _iter_checks(self, category: Optional[str]) -> Iterator[Check]:
        if category is not None:
            yield from self._by_category.get(category, ())
            return
        for checks in self._by_category.values():
            yield from checks

    def categories(self) -> List[str]:
        return list(self._by_category)

    def get(self, check_id: str) -> Optional[Check]:
        return self._by_id.get(check_id)

    def __contains__(self, check_id) -> bool:
        return check_id in self._by_id

    def __len__(self) -> int:
        return len(self._by_id)

    def __iter__(self) -> Iterator[Check]:
        return self._iter_checks(None)

    def __repr__(self) -> str:
        return f"CheckRegistry({len(self)} checks, categories={self.categories()})"


class _CheckView:
    """Restartable iterable over a registry's checks."""

    def __init__(self, registry: CheckRegistry, category: Optional[str]):
        self._registry = registry
        self._category = category

    def __iter__(self) -> Iterator[Check]:
        return self._registry._iter_checks(self._category)
