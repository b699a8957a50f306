"""
Command-line interface for the Tavern Dashboard.

Provides CLI commands for running and inspecting the dashboard:
- run: Start the web server
- init-ledger: Create a blank local ledger file if none exists
- lookup: Print one patron's record as JSON
- validate: Normalize a ledger file and report what was defaulted

Usage:
    tavern-dashboard run [--host HOST] [--port PORT]
    tavern-dashboard init-ledger [--path PATH]
    tavern-dashboard lookup USERNAME
    tavern-dashboard validate FILE

Environment Variables:
    TAVERN_HOST: Host to bind (default: 0.0.0.0)
    TAVERN_PORT: Port to listen on (default: 3000)
    TAVERN_LEDGER_SOURCE: "file" or "remote"
    TAVERN_LEDGER_PATH: Local ledger file path
"""

import argparse
import json
import sys
from pathlib import Path

from tavern_dashboard.config import config, configure_logging


def cmd_run(args: argparse.Namespace) -> int:
    """
    Run the dashboard web server.

    Returns:
        0 on clean shutdown (Ctrl+C), 1 on startup error
    """
    from tavern_dashboard.api.server import start_server

    configure_logging(config.logging)
    host = getattr(args, "host", None)
    port = getattr(args, "port", None)

    try:
        start_server(host=host, port=port)
        return 0
    except KeyboardInterrupt:
        print("\nServer stopped.")
        return 0
    except Exception as e:
        print(f"Error starting server: {e}", file=sys.stderr)
        return 1


def cmd_init_ledger(args: argparse.Namespace) -> int:
    """
    Create the blank ledger file if it does not exist yet.

    Returns:
        0 on success (including "already exists"), 1 if the file could not
        be written
    """
    from tavern_dashboard.ledger.sources import LocalFileLedgerSource

    path = Path(args.path) if getattr(args, "path", None) else config.ledger.absolute_path
    if path.exists():
        print(f"Ledger already exists at {path}")
        return 0

    LocalFileLedgerSource(path).bootstrap()
    if not path.exists():
        print(f"Error: could not create ledger at {path}", file=sys.stderr)
        return 1
    print(f"Blank ledger created at {path}")
    return 0


def cmd_lookup(args: argparse.Namespace) -> int:
    """
    Print one patron's record from the configured ledger source.

    Returns:
        0 when found, 1 when the patron has no entry
    """
    from tavern_dashboard.ledger import LedgerService, build_ledger_source

    service = LedgerService(build_ledger_source(config.ledger))
    player = service.find_player(args.username)
    if player is None:
        print(f"No data found for {args.username.lower()}", file=sys.stderr)
        return 1
    print(json.dumps(player.to_dict(), indent=2, ensure_ascii=False))
    return 0


def cmd_validate(args: argparse.Namespace) -> int:
    """
    Normalize a ledger file and report defaulted fields and duplicate names.

    The file is never modified.

    Returns:
        0 after reporting, 1 if the file cannot be read
    """
    from tavern_dashboard.ledger import find_duplicate_keys, normalize

    path = Path(args.file)
    try:
        raw = path.read_bytes()
    except OSError as e:
        print(f"Error reading {path}: {e}", file=sys.stderr)
        return 1

    ledger = normalize(raw)
    print(f"Players:      {len(ledger.players)}")
    print(f"Last updated: {ledger.last_updated}")
    print(f"Defaulted:    {len(ledger.notes)} field(s)")
    for note in ledger.notes:
        print(f"  - {note}")
    duplicates = find_duplicate_keys(ledger)
    if duplicates:
        print(f"Duplicate usernames (first entry wins): {', '.join(duplicates)}")
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        prog="tavern-dashboard",
        description="Tavern Dashboard - patron status cards from the tavern ledger",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    run_parser = subparsers.add_parser("run", help="Run the dashboard web server")
    run_parser.add_argument(
        "--host", type=str, help="Host to bind (default: 0.0.0.0, or TAVERN_HOST env var)"
    )
    run_parser.add_argument(
        "--port", "-p", type=int, help="Port to listen on (default: 3000, or TAVERN_PORT env var)"
    )
    run_parser.set_defaults(func=cmd_run)

    init_parser = subparsers.add_parser(
        "init-ledger",
        help="Create a blank local ledger file",
        description="Write {\"lastUpdated\": \"Never\", \"players\": []} if no ledger exists.",
    )
    init_parser.add_argument("--path", type=str, help="Ledger file (default: configured path)")
    init_parser.set_defaults(func=cmd_init_ledger)

    lookup_parser = subparsers.add_parser("lookup", help="Print one patron's record")
    lookup_parser.add_argument("username", help="Patron name (case-insensitive)")
    lookup_parser.set_defaults(func=cmd_lookup)

    validate_parser = subparsers.add_parser(
        "validate", help="Report how a ledger file normalizes"
    )
    validate_parser.add_argument("file", help="Path to a ledger JSON file")
    validate_parser.set_defaults(func=cmd_validate)

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
