"""Turn arbitrarily shaped ledger JSON into a canonical :class:`Ledger`.

Overview
--------
The ledger document is written by tools we do not control: the game client,
hand edits on GitHub, older exports.  Field names drift (``players`` vs
``playerList``, ``username`` vs ``name``), values arrive as the wrong type,
and sometimes the body is not JSON at all.  :func:`normalize` is therefore
**total**: any input produces a structurally valid ledger.  Nothing is
raised; each field that cannot be used as-is is replaced by its default and
recorded as a :class:`NormalizationNote` on the result.

Shapes accepted
---------------
::

    {"lastUpdated": "...", "players": [...]}
    {"lastUpdated": "...", "playerList": [...]}
    {"lastUpdated": "...", "data": {"players": [...]}}
    [ {...player...}, ... ]

Alias resolution is declarative.  Each logical field lists its candidate keys
in priority order (:data:`PLAYER_LIST_FIELDS`, :data:`USERNAME_FIELDS`) and
the first usable candidate wins.  Candidates are never merged.

Round trip
----------
``normalize(serialize(ledger)) == ledger`` for every ledger produced here.
``usernameKey`` is written out by :func:`serialize` but always recomputed on
read.
"""

from __future__ import annotations

import json
import math
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

from tavern_dashboard.ledger.models import (
    DEFAULT_TITLE,
    Ledger,
    NormalizationNote,
    PlayerRecord,
)

# ── Field aliases (priority order) ────────────────────────────────────────────
PLAYER_LIST_FIELDS: tuple[str, ...] = ("players", "playerList")
USERNAME_FIELDS: tuple[str, ...] = ("username", "name", "user")
ENVELOPE_FIELD = "data"
LAST_UPDATED_FIELD = "lastUpdated"

# ── Numeric stats: JSON name -> (attribute, default) ──────────────────────────
NUMERIC_DEFAULTS: dict[str, tuple[str, int]] = {
    "gold": ("gold", 0),
    "health": ("health", 100),
    "drunkenness": ("drunkenness", 0),
    "honour": ("honour", 0),
    "questsCompleted": ("quests_completed", 0),
}


class _Notes:
    """Collects diagnostics while a single document is normalized."""

    def __init__(self) -> None:
        self.items: list[NormalizationNote] = []

    def add(self, path: str, message: str) -> None:
        self.items.append(NormalizationNote(path=path, message=message))


# ── Public API ────────────────────────────────────────────────────────────────


def normalize(raw: str | bytes | bytearray, *, now: datetime | None = None) -> Ledger:
    """Parse and normalize a raw ledger body.

    Args:
        raw: The document exactly as read from disk or the network.  Bytes
             are decoded as UTF-8 (a leading BOM is tolerated, undecodable
             sequences are replaced).
        now: Timestamp used when the document carries no ``lastUpdated``.
             Defaults to the current UTC time.

    Returns:
        A canonical ledger.  Invalid JSON yields an empty player list and a
        note explaining why.
    """
    notes = _Notes()
    if isinstance(raw, (bytes, bytearray)):
        text = bytes(raw).decode("utf-8-sig", errors="replace")
    else:
        text = raw.lstrip("\ufeff")

    try:
        document: Any = json.loads(text)
    except (ValueError, RecursionError) as exc:
        notes.add("$", f"body is not valid JSON ({exc.__class__.__name__}); treated as {{}}")
        document = {}

    return _normalize(document, notes, now)


def normalize_document(document: Any, *, now: datetime | None = None) -> Ledger:
    """Normalize a value that has already been parsed from JSON."""
    return _normalize(document, _Notes(), now)


def prepare_upload(body: Any, *, now: datetime | None = None) -> Ledger:
    """Build the ledger to persist from an uploaded body.

    The game client sends either ``{"lastUpdated": ..., "data": {...}}`` or a
    bare ledger object.  The ``data`` envelope is unwrapped, ``lastUpdated``
    is taken from the body when supplied (otherwise the current time) and the
    result is normalized so the stored document is always canonical.
    """
    if not isinstance(body, Mapping):
        document: Any = body
        supplied = None
    else:
        envelope = body.get(ENVELOPE_FIELD)
        document = envelope if isinstance(envelope, (Mapping, list)) else body
        supplied = body.get(LAST_UPDATED_FIELD)

    if isinstance(document, Mapping):
        stamped = dict(document)
    else:
        stamped = {PLAYER_LIST_FIELDS[0]: document if isinstance(document, list) else []}

    if supplied:
        stamped[LAST_UPDATED_FIELD] = supplied
    elif not stamped.get(LAST_UPDATED_FIELD):
        stamped[LAST_UPDATED_FIELD] = _timestamp(now)
    return normalize_document(stamped, now=now)


def serialize(ledger: Ledger) -> str:
    """Render the canonical on-disk form (UTF-8 JSON, 2-space indent)."""
    return json.dumps(ledger.to_dict(), indent=2, ensure_ascii=False)


# ── Document level ────────────────────────────────────────────────────────────


def _normalize(document: Any, notes: _Notes, now: datetime | None) -> Ledger:
    working = _working_object(document)
    raw_players = _resolve_player_list(working, notes)

    players = tuple(
        _normalize_player(entry, f"players[{index}]", notes)
        for index, entry in enumerate(raw_players)
    )
    return Ledger(
        last_updated=_resolve_last_updated(document, working, now),
        players=players,
        notes=tuple(notes.items),
    )


def _working_object(document: Any) -> Any:
    """Prefer a nested ``data`` envelope when it holds an object or array."""
    if isinstance(document, Mapping):
        nested = document.get(ENVELOPE_FIELD)
        if isinstance(nested, (Mapping, list)):
            return nested
    return document


def _resolve_player_list(working: Any, notes: _Notes) -> list[Any]:
    if isinstance(working, Mapping):
        for key in PLAYER_LIST_FIELDS:
            candidate = working.get(key)
            if candidate is None:
                continue
            if isinstance(candidate, list):
                return candidate
            notes.add(key, f"expected an array, got {type(candidate).__name__}; no players read")
            return []
        return []
    if isinstance(working, list):
        return working
    notes.add("$", f"expected an object or array, got {type(working).__name__}")
    return []


def _resolve_last_updated(document: Any, working: Any, now: datetime | None) -> str:
    """Top-level ``lastUpdated`` wins; an unwrapped ``data`` envelope is the fallback."""
    for source in (document, working):
        if isinstance(source, Mapping):
            value = source.get(LAST_UPDATED_FIELD)
            if value:
                return _utf8(value if isinstance(value, str) else str(value))
    return _timestamp(now)


def _timestamp(now: datetime | None) -> str:
    return (now or datetime.now(UTC)).isoformat()


# ── Record level ──────────────────────────────────────────────────────────────


def _normalize_player(entry: Any, path: str, notes: _Notes) -> PlayerRecord:
    if not isinstance(entry, Mapping):
        notes.add(path, f"expected an object, got {type(entry).__name__}; all fields defaulted")
        entry = {}

    username = _resolve_username(entry)
    titles = _string_list(entry, "titles", path, notes, default=(DEFAULT_TITLE,))
    stats = {
        attr: _resolve_int(entry, key, default, path, notes)
        for key, (attr, default) in NUMERIC_DEFAULTS.items()
    }

    return PlayerRecord(
        username=username,
        username_key=username.lower(),
        current_title=_resolve_current_title(entry, titles, path, notes),
        titles=titles,
        inventory=_string_list(entry, "inventory", path, notes, default=()),
        **stats,
    )


def _resolve_username(entry: Mapping[str, Any]) -> str:
    for key in USERNAME_FIELDS:
        value = _scalar_text(entry.get(key))
        if value:
            return value
    return ""


def _resolve_current_title(
    entry: Mapping[str, Any], titles: tuple[str, ...], path: str, notes: _Notes
) -> str:
    explicit = entry.get("currentTitle")
    text = _scalar_text(explicit)
    if text:
        return text
    if explicit is not None and text is None:
        notes.add(f"{path}.currentTitle", f"ignored non-text value {explicit!r}")
    if titles and titles[0]:
        return titles[0]
    return DEFAULT_TITLE


def _resolve_int(
    entry: Mapping[str, Any], key: str, default: int, path: str, notes: _Notes
) -> int:
    value = entry.get(key)
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        notes.add(f"{path}.{key}", f"{value!r} is not a number; using {default}")
        return default
    if isinstance(value, float):
        if not math.isfinite(value):
            notes.add(f"{path}.{key}", f"{value!r} is not finite; using {default}")
            return default
        if not value.is_integer():
            notes.add(f"{path}.{key}", f"{value!r} truncated to {int(value)}")
        return int(value)
    return value


def _string_list(
    entry: Mapping[str, Any],
    key: str,
    path: str,
    notes: _Notes,
    *,
    default: tuple[str, ...],
) -> tuple[str, ...]:
    value = entry.get(key)
    if value is None:
        return default
    if not isinstance(value, list):
        notes.add(f"{path}.{key}", f"expected an array, got {type(value).__name__}")
        return default

    items: list[str] = []
    for index, item in enumerate(value):
        text = _scalar_text(item)
        if text is None:
            notes.add(f"{path}.{key}[{index}]", f"dropped non-text value {item!r}")
            continue
        items.append(text)
    return tuple(items)


def _scalar_text(value: Any) -> str | None:
    """Coerce a JSON scalar to text; containers, null and booleans give None."""
    if isinstance(value, str):
        return _utf8(value)
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float) and math.isfinite(value):
        return str(int(value)) if value.is_integer() else str(value)
    return None


def _utf8(text: str) -> str:
    """Replace lone surrogates (from JSON ``\\udXXX`` escapes) so the text encodes as UTF-8."""
    return text.encode("utf-8", "replace").decode("utf-8")
