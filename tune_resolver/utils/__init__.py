"""
Utility functions for tune-resolver.

This module provides the URL inspection helpers the resolver uses to
route a query, plus small formatting helpers for the CLI:
    - YouTube: extract_video_id, extract_youtube_playlist_id, is_youtube_url
    - Spotify: parse_spotify_uri
    - Suno: extract_suno_song_id, is_suno_url
    - Generic: is_http_url, format_duration

Usage:
    from tune_resolver.utils import parse_spotify_uri, extract_video_id

    uri = parse_spotify_uri("https://open.spotify.com/album/1DFixLWuPkv3KT3TnV35m3")
    # SpotifyUri(type='album', id='1DFixLWuPkv3KT3TnV35m3')
"""

import re
from dataclasses import dataclass
from urllib.parse import parse_qs, urlparse


YOUTUBE_HOSTS = (
    "youtube.com",
    "www.youtube.com",
    "m.youtube.com",
    "music.youtube.com",
    "youtu.be",
    "www.youtube-nocookie.com",
)

SPOTIFY_HOSTS = ("open.spotify.com", "play.spotify.com")

SUNO_HOSTS = ("suno.com", "www.suno.com", "app.suno.ai", "suno.ai", "www.suno.ai")

VIDEO_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{11}$")

# Path prefixes that are followed by a video id: /embed/ID, /shorts/ID...
_VIDEO_PATH_PREFIXES = ("embed", "shorts", "live", "v", "e")


@dataclass(frozen=True)
class SpotifyUri:
    """
    A parsed Spotify link.

    Attributes:
        type: Entity type ("track", "album", "playlist", "artist",
              "episode", "show", "user"...).
        id: Entity id (base62 string).
    """
    type: str
    id: str

    @property
    def uri(self) -> str:
        return f"spotify:{self.type}:{self.id}"


def is_http_url(query: str) -> bool:
    """Check if a query is an absolute http(s) URL."""
    parsed = urlparse(query.strip())
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def _host(url: str) -> str:
    return (urlparse(url.strip()).hostname or "").lower()


def is_youtube_url(url: str) -> bool:
    return is_http_url(url) and _host(url) in YOUTUBE_HOSTS


def is_suno_url(url: str) -> bool:
    return is_http_url(url) and _host(url) in SUNO_HOSTS


def extract_video_id(url_or_id: str) -> str | None:
    """
    Extract the 11-character video id from a YouTube URL or return a bare id.

    Handles:
        - https://www.youtube.com/watch?v=ID&t=42
        - https://youtu.be/ID?si=xxx
        - https://www.youtube.com/embed/ID, /shorts/ID, /live/ID, /v/ID
        - https://music.youtube.com/watch?v=ID
        - ID

    Returns:
        The video id, or None if none can be found.

    Examples:
        extract_video_id("https://youtu.be/dQw4w9WgXcQ")  # "dQw4w9WgXcQ"
        extract_video_id("https://example.com/")          # None
    """
    candidate = url_or_id.strip()
    if VIDEO_ID_PATTERN.match(candidate):
        return candidate

    if not is_http_url(candidate):
        return None

    parsed = urlparse(candidate)
    host = (parsed.hostname or "").lower()
    segments = [s for s in parsed.path.split("/") if s]

    if host == "youtu.be":
        video_id = segments[0] if segments else None
    elif host in YOUTUBE_HOSTS:
        video_id = parse_qs(parsed.query).get("v", [None])[0]
        if video_id is None and len(segments) >= 2 and segments[0] in _VIDEO_PATH_PREFIXES:
            video_id = segments[1]
    else:
        return None

    if video_id and VIDEO_ID_PATTERN.match(video_id):
        return video_id
    return None


def extract_youtube_playlist_id(url: str) -> str | None:
    """
    Return the 'list' query parameter of a YouTube URL, if any.

    Example:
        extract_youtube_playlist_id(
            "https://www.youtube.com/playlist?list=PLx0sYbCqOb8TBPRdmBHs5Iftvv9TPboYG"
        )
        # "PLx0sYbCqOb8TBPRdmBHs5Iftvv9TPboYG"
    """
    if not is_youtube_url(url):
        return None
    list_id = parse_qs(urlparse(url.strip()).query).get("list", [None])[0]
    return list_id or None


def parse_spotify_uri(query: str) -> SpotifyUri | None:
    """
    Parse a Spotify URL or URI.

    Handles various Spotify formats:
        - https://open.spotify.com/track/ID
        - https://open.spotify.com/intl-de/album/ID?si=xxx
        - https://open.spotify.com/user/NAME/playlist/ID
        - spotify:track:ID
        - spotify:user:NAME:playlist:ID

    Returns:
        SpotifyUri, or None if the query is not a Spotify link.

    Examples:
        parse_spotify_uri("spotify:track:4cOdK2wGLETKBW3PvgPWqT")
        # SpotifyUri(type='track', id='4cOdK2wGLETKBW3PvgPWqT')

        parse_spotify_uri("never gonna give you up")
        # None
    """
    query = query.strip()

    if query.startswith("spotify:"):
        parts = [p for p in query.split(":")[1:] if p]
    elif is_http_url(query) and _host(query) in SPOTIFY_HOSTS:
        parts = [p for p in urlparse(query).path.split("/") if p]
        # Localized links carry a leading "intl-xx" segment
        if parts and parts[0].startswith("intl-"):
            parts = parts[1:]
        # Legacy embeds: /embed/track/ID
        if parts and parts[0] == "embed":
            parts = parts[1:]
    else:
        return None

    # Legacy user playlists: user/NAME/playlist/ID
    if len(parts) >= 4 and parts[0] == "user":
        parts = parts[2:]

    if len(parts) < 2 or not parts[1]:
        return None

    return SpotifyUri(type=parts[0], id=parts[1])


def extract_suno_song_id(url: str) -> str | None:
    """
    Return the path segment that follows "/song/" in a Suno URL.

    Example:
        extract_suno_song_id("https://suno.com/song/1a95710f-17fa-41fc-9477-c63f4bafb1f7")
        # "1a95710f-17fa-41fc-9477-c63f4bafb1f7"
    """
    if not is_suno_url(url):
        return None

    segments = [s for s in urlparse(url.strip()).path.split("/") if s]
    for i, segment in enumerate(segments[:-1]):
        if segment == "song":
            return segments[i + 1]
    return None


def format_duration(seconds: int) -> str:
    """
    Format duration in seconds to human-readable string.

    Examples:
        format_duration(225)   # "3:45"
        format_duration(3750)  # "1:02:30"
        format_duration(0)     # "0:00"
    """
    seconds = max(0, int(seconds))
    if seconds < 3600:
        minutes = seconds // 60
        secs = seconds % 60
        return f"{minutes}:{secs:02d}"
    hours = seconds // 3600
    minutes = (seconds % 3600) // 60
    secs = seconds % 60
    return f"{hours}:{minutes:02d}:{secs:02d}"
