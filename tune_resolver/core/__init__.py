"""
Core module for tune-resolver.

This module provides the foundational components used throughout the pipeline:
    - exceptions: Custom exception classes for error handling
    - config: Configuration loading and validation
    - cache: TTL cache with single-flight fetches for upstream lookups
    - logger: Logging system with console and file outputs

Usage:
    from tune_resolver.core import (
        Config, load_config,
        CacheProvider,
        setup_logging, get_logger,
        ResolverError, NotFoundError
    )
"""

from tune_resolver.core.cache import (
    CacheProvider,
    ONE_HOUR_IN_SECONDS,
    ONE_MINUTE_IN_SECONDS,
)
from tune_resolver.core.config import (
    Config,
    ResolverConfig,
    SpotifyConfig,
    SunoConfig,
    YouTubeConfig,
    load_config,
)
from tune_resolver.core.exceptions import (
    AuthError,
    ConfigError,
    InvalidQueryError,
    NotFoundError,
    ResolverError,
    SpotifyError,
    StreamProbeError,
    SunoError,
    UpstreamTimeoutError,
    YouTubeError,
)
from tune_resolver.core.logger import (
    get_logger,
    log_resolution_failure,
    setup_logging,
    shutdown_logging,
)

__all__ = [
    # Cache
    "CacheProvider",
    "ONE_HOUR_IN_SECONDS",
    "ONE_MINUTE_IN_SECONDS",
    # Config
    "Config",
    "YouTubeConfig",
    "SpotifyConfig",
    "SunoConfig",
    "ResolverConfig",
    "load_config",
    # Exceptions
    "ResolverError",
    "ConfigError",
    "InvalidQueryError",
    "NotFoundError",
    "AuthError",
    "UpstreamTimeoutError",
    "StreamProbeError",
    "YouTubeError",
    "SpotifyError",
    "SunoError",
    # Logger
    "setup_logging",
    "shutdown_logging",
    "get_logger",
    "log_resolution_failure",
]
