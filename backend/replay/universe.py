"""Universe schedule: membership snapshots turned into add/remove deltas."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable

from alpha_core.models import Symbol


@dataclass(frozen=True)
class UniverseDelta:
    """Net membership change effective at ``time``."""

    time: datetime
    added: frozenset[Symbol] = field(default_factory=frozenset)
    removed: frozenset[Symbol] = field(default_factory=frozenset)

    @property
    def is_empty(self) -> bool:
        return not self.added and not self.removed


class UniverseSchedule:
    """Ordered universe membership snapshots.

    Each snapshot lists the full membership from its time onwards;
    ``pop_next`` hands out the difference to the previous snapshot.
    """

    def __init__(self, snapshots: Iterable[tuple[datetime, Iterable[Symbol]]] = ()):
        self._snapshots = sorted(
            ((time, frozenset(members)) for time, members in snapshots),
            key=lambda s: s[0],
        )
        self._position = 0
        self._members: frozenset[Symbol] = frozenset()

    @classmethod
    def static(cls, time: datetime, members: Iterable[Symbol]) -> UniverseSchedule:
        """A universe that is set once and never changes."""
        return cls([(time, members)])

    @property
    def members(self) -> frozenset[Symbol]:
        """Membership after the snapshots handed out so far."""
        return self._members

    @property
    def next_time(self) -> datetime | None:
        if self._position >= len(self._snapshots):
            return None
        return self._snapshots[self._position][0]

    def pop_next(self) -> UniverseDelta:
        """Advance to the next snapshot and return its delta."""
        if self._position >= len(self._snapshots):
            raise IndexError("universe schedule exhausted")
        time, members = self._snapshots[self._position]
        self._position += 1
        delta = UniverseDelta(
            time=time,
            added=members - self._members,
            removed=self._members - members,
        )
        self._members = members
        return delta

    def changes_until(self, time: datetime) -> list[UniverseDelta]:
        """Pop every snapshot effective at or before ``time``."""
        deltas = []
        while self.next_time is not None and self.next_time <= time:
            deltas.append(self.pop_next())
        return deltas

    def __len__(self) -> int:
        return len(self._snapshots)
