"""
Keyed container of accumulating batch groups.

Groups are kept in creation order. When several groups qualify for emission
(``key_at_size``, ``any_key``) the oldest one wins, so emission order is
reproducible for a given input.
"""

from __future__ import annotations

from typing import Callable

from sinkbatch.models.models import BatchGroup, Binding


class GroupStore:
    """Group key → ``BatchGroup``, owned by a single traversal."""

    def __init__(self) -> None:
        self._groups: dict[str, BatchGroup] = {}

    def ensure(self, key: str, factory: Callable[[], BatchGroup]) -> BatchGroup:
        """
        Return the group for ``key``, creating it with ``factory()`` if absent.

        ``factory`` runs at most once per key while the group is in the store;
        it is where the statement template gets built.
        """
        group = self._groups.get(key)
        if group is None:
            group = factory()
            self._groups[key] = group
        return group

    def append(self, key: str, row: list[Binding]) -> int:
        """
        Append one row to the group for ``key`` and return the new row count.

        Raises:
            KeyError: If no group exists for ``key`` (call ``ensure`` first).
        """
        group = self._groups[key]
        group.rows.append(row)
        return len(group.rows)

    def size_of(self, key: str) -> int:
        """Row count of the group for ``key``; 0 when there is no such group."""
        group = self._groups.get(key)
        return len(group.rows) if group is not None else 0

    def remove(self, key: str) -> BatchGroup:
        """
        Detach and return the group for ``key``.

        Raises:
            KeyError: If no group exists for ``key``.
        """
        return self._groups.pop(key)

    def key_at_size(self, size: int) -> str | None:
        """Return the oldest key whose group holds exactly ``size`` rows, or ``None``."""
        for key, group in self._groups.items():
            if len(group.rows) == size:
                return key
        return None

    def any_key(self) -> str | None:
        """Return the oldest remaining key, or ``None`` when the store is empty."""
        return next(iter(self._groups), None)

    def __contains__(self, key: object) -> bool:
        return key in self._groups

    def __len__(self) -> int:
        return len(self._groups)

    def __bool__(self) -> bool:
        return bool(self._groups)

    def clear(self) -> None:
        """Drop every buffered group."""
        self._groups.clear()
