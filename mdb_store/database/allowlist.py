"""
Collection allow-list.

Rules come from ``StoreOptions.collections``. A Store recompiles its
allow-list whenever those rules change:

- ``[]`` or ``["*"]``: every collection is allowed
- ``"db.*"``: every collection of database ``db`` is allowed
- ``"db.collection"``: a single collection is allowed
"""

import logging
from collections.abc import Iterable

from ..config import StoreOptions
from ..constants import ALLOW_ALL_RULE, WILDCARD_COLLECTION

logger = logging.getLogger(__name__)


class CollectionAllowList:
    """Precomputed set of permitted (database, collection) pairs."""

    __slots__ = ("_allow_all", "_databases", "_pairs", "_rules")

    def __init__(self, rules: Iterable[str] = ()):
        rules = list(rules)
        self._rules = tuple(rules)
        self._allow_all = not rules or ALLOW_ALL_RULE in rules
        self._databases: frozenset[str] = frozenset(
            rule[: -len(WILDCARD_COLLECTION) - 1]
            for rule in rules
            if rule.endswith(f".{WILDCARD_COLLECTION}")
        )
        self._pairs: frozenset[str] = frozenset(
            rule
            for rule in rules
            if rule != ALLOW_ALL_RULE and not rule.endswith(f".{WILDCARD_COLLECTION}")
        )

    @classmethod
    def from_options(cls, options: StoreOptions) -> "CollectionAllowList":
        return cls(options.collections)

    @property
    def rules(self) -> tuple[str, ...]:
        """The rules this allow-list was compiled from."""
        return self._rules

    def matches(self, rules: Iterable[str]) -> bool:
        """Return True when ``rules`` are the rules this allow-list was compiled from."""
        return tuple(rules) == self._rules

    @property
    def allow_all(self) -> bool:
        return self._allow_all

    @property
    def wildcard_databases(self) -> frozenset[str]:
        return self._databases

    def is_allowed(self, database: str, collection: str) -> bool:
        """Return True when ``database.collection`` may be accessed."""
        if self._allow_all or database in self._databases:
            return True
        allowed = f"{database}.{collection}" in self._pairs
        if not allowed:
            logger.debug(f"Collection '{database}.{collection}' rejected by allow-list")
        return allowed

    def __repr__(self) -> str:
        if self._allow_all:
            return "CollectionAllowList(*)"
        return (
            f"CollectionAllowList(databases={sorted(self._databases)}, "
            f"collections={sorted(self._pairs)})"
        )
