"""Canonical ledger types.

Every value here is produced by :func:`tavern_dashboard.ledger.normalizer.normalize`
and is immutable once built.  The JSON names used on disk and over HTTP are
camelCase (``usernameKey``, ``questsCompleted``); the Python attributes are
snake_case.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

DEFAULT_TITLE = "Regular"
NEVER_UPDATED = "Never"


class LedgerError(Exception):
    """Base class for ledger failures that callers are expected to handle."""


class LedgerReadOnlyError(LedgerError):
    """Raised when a write is attempted against a source that cannot persist."""


@dataclass(frozen=True)
class NormalizationNote:
    """One field that was defaulted or coerced during normalization.

    Attributes:
        path:    Location in the input, e.g. ``players[2].gold``.
        message: What was substituted and why.
    """

    path: str
    message: str

    def __str__(self) -> str:
        return f"{self.path}: {self.message}"


@dataclass(frozen=True)
class PlayerRecord:
    """One patron's normalized stat snapshot."""

    username: str = ""
    username_key: str = ""
    current_title: str = DEFAULT_TITLE
    titles: tuple[str, ...] = (DEFAULT_TITLE,)
    gold: int = 0
    health: int = 100
    drunkenness: int = 0
    honour: int = 0
    quests_completed: int = 0
    inventory: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        """Serialize with the canonical camelCase field names."""
        return {
            "username": self.username,
            "usernameKey": self.username_key,
            "currentTitle": self.current_title,
            "titles": list(self.titles),
            "gold": self.gold,
            "health": self.health,
            "drunkenness": self.drunkenness,
            "honour": self.honour,
            "questsCompleted": self.quests_completed,
            "inventory": list(self.inventory),
        }


@dataclass(frozen=True)
class Ledger:
    """All player records plus the time the ledger was last written.

    ``notes`` carries normalization diagnostics; it is not serialized and does
    not take part in equality, so re-normalizing a canonical ledger compares
    equal to the original.
    """

    last_updated: str = NEVER_UPDATED
    players: tuple[PlayerRecord, ...] = ()
    notes: tuple[NormalizationNote, ...] = field(default=(), compare=False)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the persisted document layout."""
        return {
            "lastUpdated": self.last_updated,
            "players": [player.to_dict() for player in self.players],
        }


def empty_ledger() -> Ledger:
    """Return the ledger served when no data is available at all."""
    return Ledger(last_updated=NEVER_UPDATED, players=())

