"""
tune-resolver: Turn song queries and links into playable track descriptors.

This package resolves a user query (search terms, or a YouTube, Spotify,
Suno or raw stream URL) into normalized TrackDescriptors that a playback
layer can stream.

Architecture:
    Every query goes through SourceResolver, which routes it to one branch:

    youtube/: Search, single videos and playlists
        - YouTube Music search through ytmusicapi
        - Video and playlist metadata from the YouTube Data API
        - Optional chapter splitting from video descriptions

    spotify/: Spotify tracks, albums, playlists and artists
        - Client-credentials token with background renewal
        - Each Spotify track is searched on YouTube; misses are counted

    suno/: Suno songs and generation
        - Session/token authentication against the private API
        - Public song page scraping when no session is available
        - Song generation with status polling

    resolver/hls.py: Raw HTTP live streams, probed with ffprobe

Modules:
    core/       - Configuration, cache, logging, exceptions
    youtube/    - YouTube client, chapters and response schemas
    spotify/    - Spotify client, token manager and models
    suno/       - Suno client and models
    resolver/   - Track models, live stream probe, query routing
    utils/      - URL parsing and formatting helpers
    cli.py      - Command-line interface

Usage:
    Command Line:
        tune-resolver resolve "never gonna give you up"
        tune-resolver resolve "https://open.spotify.com/album/..." --limit 20
        tune-resolver suno-generate "calm lofi beat" --wait

    Python API:
        from tune_resolver import load_config, setup_logging
        from tune_resolver.cli import build_resolver

        config = load_config()
        setup_logging(config.log_directory)

        async with await build_resolver(config) as resolver:
            result = await resolver.resolve("https://youtu.be/dQw4w9WgXcQ")
            for track in result.tracks:
                print(track.title, track.length)

Dependencies:
    - aiohttp: YouTube Data API, Suno API and song page requests
    - ytmusicapi: YouTube Music search
    - spotipy: Spotify Web API client
    - ffmpeg-python: ffprobe wrapper for live streams
    - beautifulsoup4: Suno song page parsing
    - rich-click: CLI framework with colors
    - tqdm: Progress-bar friendly console logging
    - pyyaml, python-dotenv: Configuration
"""

__version__ = "0.1.0"
__author__ = "tune-resolver"
__license__ = "MIT"

# Convenience imports for common usage
from tune_resolver.core import (
    CacheProvider,
    Config,
    ConfigError,
    InvalidQueryError,
    NotFoundError,
    ResolverError,
    get_logger,
    load_config,
    setup_logging,
)
from tune_resolver.resolver.models import (
    MediaSource,
    QueuedPlaylist,
    ResolutionResult,
    TrackDescriptor,
)
from tune_resolver.resolver.sources import SourceResolver

__all__ = [
    # Version
    "__version__",
    # Core
    "CacheProvider",
    "Config",
    "load_config",
    "setup_logging",
    "get_logger",
    # Exceptions
    "ResolverError",
    "ConfigError",
    "InvalidQueryError",
    "NotFoundError",
    # Models
    "MediaSource",
    "QueuedPlaylist",
    "TrackDescriptor",
    "ResolutionResult",
    # Resolver
    "SourceResolver",
]
