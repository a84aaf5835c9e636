"""
Configuration management for tune-resolver.

This module handles loading, validating, and providing access to the
application configuration stored in config.yaml.

The configuration file contains:
    - YouTube Data API key (required)
    - Spotify API credentials (optional, enables Spotify URLs)
    - Suno account cookie (optional, enables the authenticated Suno API)
    - Resolver behaviour (playlist limit, search concurrency, chapter splitting)
    - Optional log directory for file logs

Secrets can also come from the environment (or a .env file), which
takes precedence over the YAML file:
    YOUTUBE_API_KEY, SPOTIFY_CLIENT_ID, SPOTIFY_CLIENT_SECRET, SUNO_COOKIE

Example config.yaml:
    youtube:
      api_key: "your_youtube_data_api_key"

    spotify:
      client_id: "your_client_id_here"
      client_secret: "your_client_secret_here"

    suno:
      cookie: "__client=...; __client_uat=..."

    resolver:
      playlist_limit: 50
      search_concurrency: 4
      split_chapters: false

    logging:
      directory: "~/.local/state/tune-resolver"
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from tune_resolver.core.exceptions import ConfigError


# Default configuration file name (always in current working directory)
CONFIG_FILENAME = "config.yaml"

DEFAULT_PLAYLIST_LIMIT = 50
DEFAULT_SEARCH_CONCURRENCY = 4


@dataclass(frozen=True)
class YouTubeConfig:
    """
    YouTube Data API v3 configuration.

    Attributes:
        api_key: API key from the Google Cloud console with the
                 YouTube Data API v3 enabled.
    """
    api_key: str


@dataclass(frozen=True)
class SpotifyConfig:
    """
    Spotify API credentials configuration.

    These credentials are obtained from the Spotify Developer Dashboard:
    https://developer.spotify.com/dashboard

    Attributes:
        client_id: The Spotify application client ID.
        client_secret: The Spotify application client secret.
    """
    client_id: str
    client_secret: str


@dataclass(frozen=True)
class SunoConfig:
    """
    Suno account configuration.

    Attributes:
        cookie: Raw Cookie header copied from a logged-in suno.com browser
                session. It must contain the Clerk session cookies.
    """
    cookie: str


@dataclass(frozen=True)
class ResolverConfig:
    """
    Resolution behaviour configuration.

    Attributes:
        playlist_limit: Maximum number of tracks taken from a Spotify
                        album, playlist or artist. Default: 50.
        search_concurrency: Maximum simultaneous YouTube searches. Default: 4.
        split_chapters: Default for splitting videos into chapters.
    """
    playlist_limit: int = DEFAULT_PLAYLIST_LIMIT
    search_concurrency: int = DEFAULT_SEARCH_CONCURRENCY
    split_chapters: bool = False


@dataclass(frozen=True)
class Config:
    """
    Complete application configuration.

    Created by load_config() and treated as immutable (frozen dataclass).

    Attributes:
        youtube: YouTube Data API settings.
        spotify: Spotify credentials, or None when Spotify is disabled.
        suno: Suno settings, or None when the Suno API is disabled.
        resolver: Resolution behaviour settings.
        log_directory: Directory for file logs, or None for console only.

    Example:
        config = load_config()
        print(f"Spotify enabled: {config.spotify is not None}")
        print(f"Up to {config.resolver.playlist_limit} tracks per playlist")
    """
    youtube: YouTubeConfig
    spotify: SpotifyConfig | None
    suno: SunoConfig | None
    resolver: ResolverConfig
    log_directory: Path | None = None


def load_config(config_path: Path | None = None) -> Config:
    """
    Load and validate configuration from config.yaml and the environment.

    Args:
        config_path: Optional explicit path to config file.
                     If None, looks for config.yaml in current working directory.
                     A missing default file is allowed when the environment
                     provides YOUTUBE_API_KEY.

    Returns:
        Config: A frozen dataclass containing all configuration values.

    Raises:
        ConfigError: If the config file is unreadable, has invalid YAML syntax,
                     is missing required fields, or contains invalid values.

    Behavior:
        1. Load .env into the process environment (existing vars win)
        2. Read and parse the YAML file if present
        3. Overlay environment secrets on top of the file sections
        4. Validate each section and return a frozen Config
    """
    load_dotenv()

    explicit = config_path is not None
    if config_path is None:
        config_path = Path.cwd() / CONFIG_FILENAME

    raw_config: dict[str, Any] = {}
    if config_path.exists():
        raw_config = _read_yaml(config_path)
    elif explicit:
        raise ConfigError(
            f"Configuration file not found: {config_path}",
            details={"file_path": str(config_path)}
        )

    _apply_environment(raw_config)

    youtube_config = _parse_youtube_config(raw_config.get("youtube"))
    spotify_config = _parse_spotify_config(raw_config.get("spotify"))
    suno_config = _parse_suno_config(raw_config.get("suno"))
    resolver_config = _parse_resolver_config(raw_config.get("resolver"))
    log_directory = _parse_logging_config(raw_config.get("logging"))

    return Config(
        youtube=youtube_config,
        spotify=spotify_config,
        suno=suno_config,
        resolver=resolver_config,
        log_directory=log_directory
    )


def _read_yaml(config_path: Path) -> dict[str, Any]:
    """
    Read a YAML file and return its top-level dictionary.

    Raises:
        ConfigError: If the file cannot be read, is not valid YAML,
                     or does not contain a dictionary.
    """
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            content = f.read()
    except IOError as e:
        raise ConfigError(
            f"Failed to read configuration file: {e}",
            details={"file_path": str(config_path), "original_error": str(e)}
        ) from e

    try:
        raw_config = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigError(
            f"Invalid YAML syntax in configuration file: {e}",
            details={"file_path": str(config_path), "original_error": str(e)}
        ) from e

    if raw_config is None:
        return {}

    if not isinstance(raw_config, dict):
        raise ConfigError(
            "Configuration file must contain a YAML dictionary",
            details={"file_path": str(config_path)}
        )

    for section, value in raw_config.items():
        if value is not None and not isinstance(value, dict):
            raise ConfigError(
                f"Section '{section}' must be a dictionary",
                details={"section": section}
            )

    return raw_config


# (environment variable, section, field)
_ENV_OVERRIDES = (
    ("YOUTUBE_API_KEY", "youtube", "api_key"),
    ("SPOTIFY_CLIENT_ID", "spotify", "client_id"),
    ("SPOTIFY_CLIENT_SECRET", "spotify", "client_secret"),
    ("SUNO_COOKIE", "suno", "cookie"),
)


def _apply_environment(raw_config: dict[str, Any]) -> None:
    """Overlay non-empty environment secrets onto the raw config in place."""
    for env_var, section, field_name in _ENV_OVERRIDES:
        value = os.getenv(env_var)
        if not value:
            continue
        target = raw_config.get(section)
        if target is None:
            target = {}
            raw_config[section] = target
        target[field_name] = value


def _require_string(section: dict[str, Any], field_name: str, prefix: str) -> str:
    value = section.get(field_name, "")
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(
            f"'{prefix}.{field_name}' must be a non-empty string",
            details={"field": f"{prefix}.{field_name}"}
        )
    return value.strip()


def _parse_youtube_config(youtube_section: dict[str, Any] | None) -> YouTubeConfig:
    """
    Parse and validate the YouTube section.

    Raises:
        ConfigError: If the section or api_key is missing.
    """
    if not youtube_section:
        raise ConfigError(
            "Missing required section: 'youtube' (or YOUTUBE_API_KEY)",
            details={"missing_section": "youtube"}
        )
    return YouTubeConfig(api_key=_require_string(youtube_section, "api_key", "youtube"))


def _parse_spotify_config(spotify_section: dict[str, Any] | None) -> SpotifyConfig | None:
    """
    Parse the optional Spotify section.

    Returns:
        SpotifyConfig, or None if the section is absent.

    Raises:
        ConfigError: If the section exists but a credential is missing.
    """
    if not spotify_section:
        return None
    return SpotifyConfig(
        client_id=_require_string(spotify_section, "client_id", "spotify"),
        client_secret=_require_string(spotify_section, "client_secret", "spotify")
    )


def _parse_suno_config(suno_section: dict[str, Any] | None) -> SunoConfig | None:
    if not suno_section:
        return None
    return SunoConfig(cookie=_require_string(suno_section, "cookie", "suno"))


def _parse_resolver_config(resolver_section: dict[str, Any] | None) -> ResolverConfig:
    """
    Parse and validate the resolver section, applying defaults.

    Raises:
        ConfigError: If a numeric field is not a positive integer or
                     split_chapters is not a boolean.
    """
    if not resolver_section:
        return ResolverConfig()

    values: dict[str, Any] = {}
    for field_name in ("playlist_limit", "search_concurrency"):
        raw_value = resolver_section.get(field_name)
        if raw_value is None:
            continue
        # bool is an int subclass; reject it explicitly
        if isinstance(raw_value, bool) or not isinstance(raw_value, int) or raw_value < 1:
            raise ConfigError(
                f"'resolver.{field_name}' must be a positive integer",
                details={"field": f"resolver.{field_name}", "value": raw_value}
            )
        values[field_name] = raw_value

    raw_split = resolver_section.get("split_chapters")
    if raw_split is not None:
        if not isinstance(raw_split, bool):
            raise ConfigError(
                "'resolver.split_chapters' must be true or false",
                details={"field": "resolver.split_chapters", "value": raw_split}
            )
        values["split_chapters"] = raw_split

    return ResolverConfig(**values)


def _parse_logging_config(logging_section: dict[str, Any] | None) -> Path | None:
    """Return the expanded log directory, or None if file logging is off."""
    if not logging_section:
        return None

    directory = logging_section.get("directory")
    if directory is None:
        return None

    if not isinstance(directory, str) or not directory.strip():
        raise ConfigError(
            "'logging.directory' must be a non-empty string or null",
            details={"field": "logging.directory"}
        )

    return Path(directory.strip()).expanduser().resolve()
