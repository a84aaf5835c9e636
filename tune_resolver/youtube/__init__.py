"""
YouTube integration module for tune-resolver.

Components:
    - YouTubeClient: search, video and playlist resolution
    - parse_chapters / Chapter: chapter detection from descriptions
    - VideoResource, PlaylistResource, SearchResult: response schemas

Usage:
    from tune_resolver.youtube import YouTubeClient

    youtube = YouTubeClient(api_key, CacheProvider())
    tracks = await youtube.search('"Yellow" "Coldplay"')
"""

from tune_resolver.youtube.chapters import Chapter, parse_chapters, parse_timestamp
from tune_resolver.youtube.client import YouTubeClient
from tune_resolver.youtube.models import (
    PlaylistItemResource,
    PlaylistItemsPage,
    PlaylistResource,
    SearchResult,
    VideoResource,
    parse_iso_duration,
)

__all__ = [
    # Client
    "YouTubeClient",
    # Chapters
    "Chapter",
    "parse_chapters",
    "parse_timestamp",
    # Models
    "SearchResult",
    "VideoResource",
    "PlaylistResource",
    "PlaylistItemResource",
    "PlaylistItemsPage",
    "parse_iso_duration",
]
