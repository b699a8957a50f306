"""Ledger package: canonical player records and where they come from.

Public surface
--------------
- :func:`normalize`           : raw JSON text/bytes to a canonical :class:`Ledger`.
- :func:`prepare_upload`      : uploaded body to a canonical :class:`Ledger`.
- :func:`serialize`           : canonical on-disk JSON.
- :func:`find_player`         : case-insensitive, first-match lookup.
- :class:`LocalFileLedgerSource`, :class:`RemoteLedgerSource`, :class:`LedgerCache`
- :class:`LedgerService`      : the facade used by routes and the CLI.

Usage example
-------------
::

    from tavern_dashboard.ledger import LedgerService, build_ledger_source
    from tavern_dashboard.config import config

    service = LedgerService(build_ledger_source(config.ledger))
    player = service.find_player("Rex")
    if player is None:
        print("No data for rex yet")
"""

from tavern_dashboard.ledger.lookup import find_duplicate_keys, find_player
from tavern_dashboard.ledger.models import (
    Ledger,
    LedgerError,
    LedgerReadOnlyError,
    NormalizationNote,
    PlayerRecord,
    empty_ledger,
)
from tavern_dashboard.ledger.normalizer import (
    normalize,
    normalize_document,
    prepare_upload,
    serialize,
)
from tavern_dashboard.ledger.service import LedgerService
from tavern_dashboard.ledger.sources import (
    LedgerCache,
    LedgerSource,
    LocalFileLedgerSource,
    RemoteLedgerSource,
    build_ledger_source,
)

__all__ = [
    "Ledger",
    "LedgerCache",
    "LedgerError",
    "LedgerReadOnlyError",
    "LedgerService",
    "LedgerSource",
    "LocalFileLedgerSource",
    "NormalizationNote",
    "PlayerRecord",
    "RemoteLedgerSource",
    "build_ledger_source",
    "empty_ledger",
    "find_duplicate_keys",
    "find_player",
    "normalize",
    "normalize_document",
    "prepare_upload",
    "serialize",
]
