"""Ledger sources: where raw ledger bytes come from.

Two strategies share the :class:`LedgerSource` protocol and are picked by
``config.ledger.source``:

``file``
    :class:`LocalFileLedgerSource` reads a JSON file on every call.  When the
    file is missing or unreadable it is **bootstrapped**: a blank document
    (``{"lastUpdated": "Never", "players": []}``) is written to the path and
    served.  Uploads from the game client are persisted here.

``remote``
    :class:`RemoteLedgerSource` fetches a published document over HTTPS and
    keeps the last good result in a :class:`LedgerCache`.  Within the
    freshness window the cached ledger is returned without network access.
    On any fetch failure the stale cached ledger is served, or an empty one
    if nothing was ever fetched.

Failure isolation
-----------------
``load()`` never raises.  Every source failure is logged for operators and
degrades to stale or empty data so the status pages stay up.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import time
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

import requests

from tavern_dashboard.config import LedgerSettings
from tavern_dashboard.ledger.models import (
    NEVER_UPDATED,
    Ledger,
    LedgerReadOnlyError,
    empty_ledger,
)
from tavern_dashboard.ledger.normalizer import normalize, serialize

logger = logging.getLogger(__name__)

BLANK_LEDGER_TEXT = json.dumps({"lastUpdated": NEVER_UPDATED, "players": []}, indent=2)


class LedgerSource(Protocol):
    """Anything that can produce (and optionally persist) a canonical ledger."""

    kind: str

    def load(self) -> Ledger: ...

    def save(self, ledger: Ledger) -> None: ...


def _log_notes(ledger: Ledger, origin: str) -> None:
    if ledger.notes:
        logger.info(
            "ledger: %d field(s) defaulted while reading %s (first: %s)",
            len(ledger.notes),
            origin,
            ledger.notes[0],
        )


# ── Local file ────────────────────────────────────────────────────────────────


class LocalFileLedgerSource:
    """Read the ledger from a JSON file, creating a blank one when absent."""

    kind = "file"

    def __init__(self, path: Path | str):
        self.path = Path(path)

    def load(self) -> Ledger:
        """Read and normalize the file, bootstrapping it first if needed."""
        try:
            raw = self.path.read_bytes()
        except OSError as exc:
            logger.info("ledger: %s unreadable (%s); writing a blank ledger", self.path, exc)
            raw = self.bootstrap().encode("utf-8")

        ledger = normalize(raw)
        _log_notes(ledger, str(self.path))
        return ledger

    def bootstrap(self) -> str:
        """Write the blank ledger document to ``path`` and return its text.

        This runs as a side effect of :meth:`load` when the file cannot be
        read.  A failed write is logged; the blank text is returned either way.
        """
        try:
            _write_atomic(self.path, BLANK_LEDGER_TEXT)
        except OSError as exc:
            logger.warning("ledger: could not create blank ledger at %s: %s", self.path, exc)
        return BLANK_LEDGER_TEXT

    def save(self, ledger: Ledger) -> None:
        """Persist ``ledger`` in canonical form, replacing the file atomically.

        Raises:
            OSError: If the directory or file cannot be written.
        """
        _write_atomic(self.path, serialize(ledger))
        logger.info(
            "ledger: wrote %d player(s) to %s (lastUpdated=%s)",
            len(ledger.players),
            self.path,
            ledger.last_updated,
        )


def _write_atomic(path: Path, text: str) -> None:
    """Write ``text`` to a sibling temp file, then rename over ``path``."""
    path.parent.mkdir(parents=True, exist_ok=True)
    temp_path: Path | None = None
    try:
        with tempfile.NamedTemporaryFile(
            "w", encoding="utf-8", dir=path.parent, suffix=".tmp", delete=False
        ) as handle:
            temp_path = Path(handle.name)
            handle.write(text)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(temp_path, path)
        temp_path = None
    finally:
        if temp_path is not None:
            temp_path.unlink(missing_ok=True)


# ── Remote fetch with cache ───────────────────────────────────────────────────


@dataclass(frozen=True)
class CacheEntry:
    """A ledger and the clock reading taken when it was fetched."""

    ledger: Ledger
    fetched_at: float


class LedgerCache:
    """
    Holds the most recent successfully fetched ledger.

    The entry is replaced wholesale on every store, so concurrent readers
    always see either the old pair or the new one.

    Args:
        freshness_seconds: How long a fetched ledger is served without
            refetching.  ``0`` disables freshness (every request refetches)
            but the entry is still kept as the stale fallback.
        clock: Monotonic time source, injectable for tests.
    """

    def __init__(self, freshness_seconds: float, clock: Callable[[], float] = time.monotonic):
        self.freshness_seconds = max(0.0, float(freshness_seconds))
        self._clock = clock
        self._entry: CacheEntry | None = None

    @property
    def entry(self) -> CacheEntry | None:
        return self._entry

    def fresh(self) -> Ledger | None:
        """Return the cached ledger if it is still inside the freshness window."""
        entry = self._entry
        if entry is None or self.freshness_seconds <= 0:
            return None
        if self._clock() - entry.fetched_at < self.freshness_seconds:
            return entry.ledger
        return None

    def stale(self) -> Ledger | None:
        """Return the cached ledger regardless of age."""
        entry = self._entry
        return entry.ledger if entry is not None else None

    def store(self, ledger: Ledger) -> None:
        self._entry = CacheEntry(ledger=ledger, fetched_at=self._clock())

    def clear(self) -> None:
        self._entry = None


class RemoteLedgerSource:
    """Fetch the ledger from a URL, served through a :class:`LedgerCache`."""

    kind = "remote"

    def __init__(
        self,
        url: str,
        cache: LedgerCache,
        *,
        timeout_seconds: float = 10.0,
        session: requests.Session | None = None,
    ):
        self.url = url
        self.cache = cache
        self.timeout_seconds = timeout_seconds
        self._session = session

    def load(self) -> Ledger:
        """Return the cached ledger when fresh, otherwise refetch.

        Never raises: network errors and non-2xx responses fall back to the
        stale cached ledger, or to an empty ledger when there is none.
        """
        cached = self.cache.fresh()
        if cached is not None:
            return cached

        try:
            raw = self._fetch()
        except requests.exceptions.RequestException as exc:
            return self._fallback(f"request failed: {exc}")
        if raw is None:
            return self._fallback("non-success response")

        ledger = normalize(raw)
        _log_notes(ledger, self.url)
        self.cache.store(ledger)
        return ledger

    def save(self, ledger: Ledger) -> None:
        raise LedgerReadOnlyError(
            f"Remote ledger at {self.url} is read-only; publish changes upstream."
        )

    def _fetch(self) -> bytes | None:
        """GET the document, bypassing intermediate caches.

        Returns:
            The response body, or ``None`` for a non-2xx status.

        Raises:
            requests.exceptions.RequestException: On connection/timeout errors.
        """
        http = self._session or requests
        response = http.get(
            self.url,
            params={"t": int(time.time() * 1000)},
            headers={"Cache-Control": "no-cache"},
            timeout=self.timeout_seconds,
        )
        if response.status_code // 100 != 2:
            logger.warning("ledger: %s returned HTTP %s", self.url, response.status_code)
            return None
        return response.content

    def _fallback(self, reason: str) -> Ledger:
        stale = self.cache.stale()
        if stale is not None:
            logger.warning("ledger: fetch from %s failed (%s); serving cached copy", self.url, reason)
            return stale
        logger.warning("ledger: fetch from %s failed (%s); no cached copy", self.url, reason)
        return empty_ledger()


# ── Factory ───────────────────────────────────────────────────────────────────


def build_ledger_source(settings: LedgerSettings) -> LedgerSource:
    """Create the source selected by ``settings.source``."""
    if settings.source == "remote":
        return RemoteLedgerSource(
            settings.remote_url,
            LedgerCache(settings.freshness_seconds),
            timeout_seconds=settings.timeout_seconds,
        )
    return LocalFileLedgerSource(settings.absolute_path)
