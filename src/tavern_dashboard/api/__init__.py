"""HTTP API: ledger queries, uploads, Twitch login and health."""
