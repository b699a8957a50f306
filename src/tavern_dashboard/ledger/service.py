"""Ledger facade used by the HTTP layer and the CLI."""

from __future__ import annotations

import logging
from typing import Any

from tavern_dashboard.ledger.lookup import find_duplicate_keys, find_player
from tavern_dashboard.ledger.models import Ledger, PlayerRecord
from tavern_dashboard.ledger.normalizer import prepare_upload
from tavern_dashboard.ledger.sources import LedgerSource

logger = logging.getLogger(__name__)


class LedgerService:
    """
    Reads, looks up and replaces the ledger behind a single source.

    One instance lives on ``app.state`` for the lifetime of the app, which
    makes it the owner of the remote source's cache.
    """

    def __init__(self, source: LedgerSource):
        self.source = source
        self._checked: Ledger | None = None
        self._warned: tuple[str, tuple[str, ...]] | None = None

    @property
    def source_kind(self) -> str:
        return self.source.kind

    def get_ledger(self) -> Ledger:
        """Return the current canonical ledger.  Never raises."""
        ledger = self.source.load()
        self._check_duplicates(ledger)
        return ledger

    def find_player(self, username: str) -> PlayerRecord | None:
        """Look ``username`` up case-insensitively; ``None`` when absent."""
        return find_player(self.get_ledger(), username)

    def upsert(self, body: Any) -> Ledger:
        """
        Replace the whole ledger with an uploaded document.

        Raises:
            LedgerReadOnlyError: If the configured source cannot persist.
            OSError: If the local file cannot be written.
        """
        ledger = prepare_upload(body)
        if ledger.notes:
            logger.info("ledger upload: %d field(s) defaulted", len(ledger.notes))
        self._check_duplicates(ledger)
        self.source.save(ledger)
        return ledger

    def _check_duplicates(self, ledger: Ledger) -> None:
        """Warn about duplicate usernames once per distinct ledger, not per request."""
        if ledger is self._checked:
            return
        self._checked = ledger

        duplicates = tuple(find_duplicate_keys(ledger))
        signature = (ledger.last_updated, duplicates)
        if not duplicates or signature == self._warned:
            return
        self._warned = signature
        logger.warning(
            "ledger: duplicate usernames %s; lookups use the first entry",
            ", ".join(duplicates),
        )
