"""
Dashboard configuration management.

This module handles loading and accessing dashboard configuration from multiple
sources with a clear priority order:

    1. Environment variables (highest priority) - for hosted deployments
    2. Config file (config/dashboard.ini) - for static deployments
    3. Built-in defaults (lowest priority) - sensible fallbacks

Configuration is loaded once at module import time and cached. The
DashboardConfig dataclass provides typed access to all settings.

Usage:
    from tavern_dashboard.config import config

    print(config.ledger.source)
    print(config.ledger.freshness_seconds)

Environment Variable Mapping:
    TAVERN_HOST                      -> server.host
    TAVERN_PORT                      -> server.port
    TAVERN_LEDGER_SOURCE             -> ledger.source
    TAVERN_LEDGER_PATH               -> ledger.path
    TAVERN_LEDGER_URL                -> ledger.remote_url
    TAVERN_LEDGER_FRESHNESS_SECONDS  -> ledger.freshness_seconds
    TAVERN_LEDGER_TIMEOUT_SECONDS    -> ledger.timeout_seconds
    TAVERN_COOKIE_SECURE             -> session.cookie_secure
    TAVERN_TWITCH_CLIENT_ID          -> twitch.client_id
    TAVERN_TWITCH_CLIENT_SECRET      -> twitch.client_secret
    TAVERN_TWITCH_REDIRECT_URI       -> twitch.redirect_uri
    TAVERN_UPLOAD_TOKEN              -> upload.token
    TAVERN_LOG_LEVEL                 -> logging.level
"""

import configparser
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

# =============================================================================
# PATH CONFIGURATION
# =============================================================================

# Project root directory (contains src/, config/, data/)
PROJECT_ROOT = Path(__file__).parent.parent.parent

CONFIG_DIR = PROJECT_ROOT / "config"
CONFIG_FILE = CONFIG_DIR / "dashboard.ini"
CONFIG_EXAMPLE = CONFIG_DIR / "dashboard.example.ini"

DEFAULT_REMOTE_URL = (
    "https://raw.githubusercontent.com/ukickedmydog/TavernDashboard/main/TavernPlayers.json"
)


# =============================================================================
# CONFIGURATION DATACLASSES
# =============================================================================


@dataclass
class ServerSettings:
    """Network server configuration."""

    host: str = "0.0.0.0"  # nosec B104 - intentional for server binding
    port: int = 3000


@dataclass
class LedgerSettings:
    """Where the ledger comes from and how long a remote copy stays fresh."""

    source: Literal["file", "remote"] = "file"
    path: str = "data/TavernPlayers.json"
    remote_url: str = DEFAULT_REMOTE_URL
    freshness_seconds: float = 15.0  # 0 = refetch on every request
    timeout_seconds: float = 10.0

    @property
    def absolute_path(self) -> Path:
        """Get absolute path to the local ledger file."""
        p = Path(self.path)
        if p.is_absolute():
            return p
        return PROJECT_ROOT / p


@dataclass
class SessionSettings:
    """Login cookie configuration."""

    cookie_name: str = "tavern_session"
    max_age_seconds: int = 60 * 60 * 24
    cookie_secure: bool = True
    same_site: Literal["lax", "strict", "none"] = "none"


@dataclass
class TwitchSettings:
    """Twitch OAuth application credentials."""

    client_id: str = ""
    client_secret: str = ""
    redirect_uri: str = "https://taverndashboard.onrender.com/auth/twitch/callback"
    timeout_seconds: float = 10.0


@dataclass
class UploadSettings:
    """Shared secret for the game client's ledger upload."""

    token: str = ""  # empty = uploads disabled


@dataclass
class LoggingSettings:
    """Logging configuration."""

    level: str = "INFO"
    format: Literal["simple", "detailed"] = "detailed"


@dataclass
class PageSettings:
    """Presentation knobs for the rendered pages."""

    refresh_seconds: int = 15
    channel_url: str = "https://twitch.tv/dogoftheoccult"


@dataclass
class DashboardConfig:
    """
    Complete dashboard configuration.

    Aggregates all settings sections. Access via the module-level `config`
    singleton.
    """

    server: ServerSettings = field(default_factory=ServerSettings)
    ledger: LedgerSettings = field(default_factory=LedgerSettings)
    session: SessionSettings = field(default_factory=SessionSettings)
    twitch: TwitchSettings = field(default_factory=TwitchSettings)
    upload: UploadSettings = field(default_factory=UploadSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)
    page: PageSettings = field(default_factory=PageSettings)

    @property
    def uploads_enabled(self) -> bool:
        """Uploads are accepted only when a token is configured."""
        return bool(self.upload.token)


# =============================================================================
# CONFIGURATION LOADING
# =============================================================================


def _parse_bool(value: str) -> bool:
    """Parse a string value to boolean."""
    return value.lower() in ("true", "yes", "1", "on", "enabled")


def _load_from_ini(parser: configparser.ConfigParser, cfg: DashboardConfig) -> None:
    """Load configuration from parsed INI file into DashboardConfig."""
    if parser.has_section("server"):
        if parser.has_option("server", "host"):
            cfg.server.host = parser.get("server", "host")
        if parser.has_option("server", "port"):
            cfg.server.port = parser.getint("server", "port")

    if parser.has_section("ledger"):
        if parser.has_option("ledger", "source"):
            val = parser.get("ledger", "source").lower()
            if val in ("file", "remote"):
                cfg.ledger.source = val  # type: ignore[assignment]
        if parser.has_option("ledger", "path"):
            cfg.ledger.path = parser.get("ledger", "path")
        if parser.has_option("ledger", "remote_url"):
            cfg.ledger.remote_url = parser.get("ledger", "remote_url")
        if parser.has_option("ledger", "freshness_seconds"):
            cfg.ledger.freshness_seconds = parser.getfloat("ledger", "freshness_seconds")
        if parser.has_option("ledger", "timeout_seconds"):
            cfg.ledger.timeout_seconds = parser.getfloat("ledger", "timeout_seconds")

    if parser.has_section("session"):
        if parser.has_option("session", "cookie_name"):
            cfg.session.cookie_name = parser.get("session", "cookie_name")
        if parser.has_option("session", "max_age_seconds"):
            cfg.session.max_age_seconds = parser.getint("session", "max_age_seconds")
        if parser.has_option("session", "cookie_secure"):
            cfg.session.cookie_secure = _parse_bool(parser.get("session", "cookie_secure"))
        if parser.has_option("session", "same_site"):
            val = parser.get("session", "same_site").lower()
            if val in ("lax", "strict", "none"):
                cfg.session.same_site = val  # type: ignore[assignment]

    if parser.has_section("twitch"):
        if parser.has_option("twitch", "client_id"):
            cfg.twitch.client_id = parser.get("twitch", "client_id")
        if parser.has_option("twitch", "client_secret"):
            cfg.twitch.client_secret = parser.get("twitch", "client_secret")
        if parser.has_option("twitch", "redirect_uri"):
            cfg.twitch.redirect_uri = parser.get("twitch", "redirect_uri")
        if parser.has_option("twitch", "timeout_seconds"):
            cfg.twitch.timeout_seconds = parser.getfloat("twitch", "timeout_seconds")

    if parser.has_section("upload"):
        if parser.has_option("upload", "token"):
            cfg.upload.token = parser.get("upload", "token")

    if parser.has_section("logging"):
        if parser.has_option("logging", "level"):
            cfg.logging.level = parser.get("logging", "level").upper()
        if parser.has_option("logging", "format"):
            val = parser.get("logging", "format").lower()
            if val in ("simple", "detailed"):
                cfg.logging.format = val  # type: ignore[assignment]

    if parser.has_section("page"):
        if parser.has_option("page", "refresh_seconds"):
            cfg.page.refresh_seconds = parser.getint("page", "refresh_seconds")
        if parser.has_option("page", "channel_url"):
            cfg.page.channel_url = parser.get("page", "channel_url")


def _apply_env_overrides(cfg: DashboardConfig) -> None:
    """Apply environment variable overrides to configuration."""
    if env_host := os.getenv("TAVERN_HOST"):
        cfg.server.host = env_host
    if env_port := os.getenv("TAVERN_PORT"):
        cfg.server.port = int(env_port)

    if env_source := os.getenv("TAVERN_LEDGER_SOURCE"):
        if env_source.lower() in ("file", "remote"):
            cfg.ledger.source = env_source.lower()  # type: ignore[assignment]
    if env_path := os.getenv("TAVERN_LEDGER_PATH"):
        cfg.ledger.path = env_path
    if env_url := os.getenv("TAVERN_LEDGER_URL"):
        cfg.ledger.remote_url = env_url
    if env_fresh := os.getenv("TAVERN_LEDGER_FRESHNESS_SECONDS"):
        cfg.ledger.freshness_seconds = float(env_fresh)
    if env_timeout := os.getenv("TAVERN_LEDGER_TIMEOUT_SECONDS"):
        cfg.ledger.timeout_seconds = float(env_timeout)

    if env_secure := os.getenv("TAVERN_COOKIE_SECURE"):
        cfg.session.cookie_secure = _parse_bool(env_secure)

    if env_client_id := os.getenv("TAVERN_TWITCH_CLIENT_ID"):
        cfg.twitch.client_id = env_client_id
    if env_client_secret := os.getenv("TAVERN_TWITCH_CLIENT_SECRET"):
        cfg.twitch.client_secret = env_client_secret
    if env_redirect := os.getenv("TAVERN_TWITCH_REDIRECT_URI"):
        cfg.twitch.redirect_uri = env_redirect

    if env_token := os.getenv("TAVERN_UPLOAD_TOKEN"):
        cfg.upload.token = env_token

    if env_log := os.getenv("TAVERN_LOG_LEVEL"):
        cfg.logging.level = env_log.upper()


def load_config() -> DashboardConfig:
    """
    Load configuration from all sources with proper priority.

    Priority (highest wins):
        1. Environment variables
        2. config/dashboard.ini
        3. config/dashboard.example.ini (fallback for development)
        4. Built-in defaults

    Returns:
        DashboardConfig: Fully populated configuration object.
    """
    cfg = DashboardConfig()

    config_file = None
    if CONFIG_FILE.exists():
        config_file = CONFIG_FILE
    elif CONFIG_EXAMPLE.exists():
        config_file = CONFIG_EXAMPLE

    if config_file:
        parser = configparser.ConfigParser()
        parser.read(config_file)
        _load_from_ini(parser, cfg)

    _apply_env_overrides(cfg)

    return cfg


def reload_config() -> "DashboardConfig":
    """
    Reload configuration from disk and environment.

    This updates the module-level `config` singleton. Apps that were already
    built keep the settings they were created with.

    Returns:
        DashboardConfig: The newly loaded configuration.
    """
    global config
    config = load_config()
    return config


# =============================================================================
# MODULE-LEVEL SINGLETON
# =============================================================================

config = load_config()


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================

_LOG_FORMATS = {
    "simple": "%(levelname)s: %(message)s",
    "detailed": "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
}


def configure_logging(settings: LoggingSettings | None = None) -> None:
    """Apply the configured level and format to the root logger."""
    settings = settings or config.logging
    logging.basicConfig(
        level=getattr(logging, settings.level, logging.INFO),
        format=_LOG_FORMATS.get(settings.format, _LOG_FORMATS["detailed"]),
        force=True,
    )


def get_config_status() -> dict:
    """
    Get configuration status for diagnostics.

    Secrets are reported only as present/absent.
    """
    return {
        "config_file_exists": CONFIG_FILE.exists(),
        "config_file_path": str(CONFIG_FILE),
        "using_example": not CONFIG_FILE.exists() and CONFIG_EXAMPLE.exists(),
        "ledger_source": config.ledger.source,
        "ledger_path": str(config.ledger.absolute_path),
        "freshness_seconds": config.ledger.freshness_seconds,
        "twitch_configured": bool(config.twitch.client_id and config.twitch.client_secret),
        "uploads_enabled": config.uploads_enabled,
    }


# =============================================================================
# TEST HELPERS
# =============================================================================


class use_test_ledger:
    """
    Context manager for pointing the file ledger at a temporary path.

    Usage:
        from tavern_dashboard.config import use_test_ledger

        def test_something(tmp_path):
            with use_test_ledger(tmp_path / "players.json"):
                app = create_app()

    Args:
        ledger_path: Path to the test ledger file
    """

    def __init__(self, ledger_path: Path | str):
        self.ledger_path = Path(ledger_path)
        self.original_path: str | None = None
        self.original_source: str | None = None

    def __enter__(self) -> Path:
        """Point the ledger settings at the test file."""
        self.original_path = config.ledger.path
        self.original_source = config.ledger.source
        config.ledger.path = str(self.ledger_path)
        config.ledger.source = "file"
        return self.ledger_path

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Restore original ledger settings."""
        if self.original_path is not None:
            config.ledger.path = self.original_path
        if self.original_source is not None:
            config.ledger.source = self.original_source  # type: ignore[assignment]
        return None
