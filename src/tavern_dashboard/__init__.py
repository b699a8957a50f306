"""Tavern Dashboard: patron status cards for a live-streamed tavern.

Viewers log in with Twitch and see their ledger entry (gold, health,
honour, inventory) as recorded by the game client.  The ledger lives in a
JSON document that is either a local file fed by uploads or a remote file
fetched over HTTPS.

Version Management
------------------
``__version__`` is read from the installed package metadata at import time.
The single source of truth is the ``version`` field in ``pyproject.toml``.
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

try:
    __version__: str = version("tavern-dashboard")
except PackageNotFoundError:
    __version__ = "0.3.0"
