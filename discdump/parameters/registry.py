"""Per-tool command/flag support tables."""

from __future__ import annotations

from types import MappingProxyType
from typing import Generic, Hashable, Iterable, Mapping, Optional, TypeVar

C = TypeVar("C", bound=Hashable)
F = TypeVar("F", bound=Hashable)


class FlagRegistry(Generic[C, F]):
    """Immutable table of which flags each command verb accepts.

    Built once from a mapping literal and handed to the grammar instances
    that need it. Commands absent from the table support no flags.
    """

    def __init__(self, table: Mapping[C, Iterable[F]]):
        self._table: Mapping[C, frozenset[F]] = MappingProxyType(
            {command: frozenset(flags) for command, flags in table.items()}
        )

    def supports(self, command: Optional[C], flag: F) -> bool:
        if command is None:
            return False
        return flag in self._table.get(command, frozenset())

    def flags_for(self, command: Optional[C]) -> frozenset[F]:
        if command is None:
            return frozenset()
        return self._table.get(command, frozenset())

    def commands(self) -> tuple[C, ...]:
        return tuple(self._table)

    def as_mapping(self) -> Mapping[C, frozenset[F]]:
        return self._table

    def __contains__(self, command: object) -> bool:
        return command in self._table

    def __repr__(self) -> str:
        return f"FlagRegistry({len(self._table)} commands)"
