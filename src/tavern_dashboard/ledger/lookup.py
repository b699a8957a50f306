"""Case-insensitive player lookup over a canonical ledger."""

from __future__ import annotations

from collections import Counter

from tavern_dashboard.ledger.models import Ledger, PlayerRecord


def find_player(ledger: Ledger, raw_username: str) -> PlayerRecord | None:
    """
    Return the first record whose ``username_key`` matches ``raw_username``.

    ``None`` means the patron has no entry yet.  That is an expected outcome
    (they have not spoken in chat since the ledger was last written), so
    callers render it rather than treating it as an error.
    """
    key = (raw_username or "").lower()
    for player in ledger.players:
        if player.username_key == key:
            return player
    return None


def find_duplicate_keys(ledger: Ledger) -> list[str]:
    """Return username keys that appear on more than one record, in ledger order."""
    counts = Counter(player.username_key for player in ledger.players)
    return [key for key, count in counts.items() if count > 1]
