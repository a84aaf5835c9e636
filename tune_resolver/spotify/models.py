"""
Data models for Spotify entities.

Spotify results are never queued directly: each track is reduced to a
SpotifyTrack stub (name + first artist) and then searched on YouTube.

Design Decisions:
    - Frozen dataclasses, parsed from the Web API dictionaries at the
      client boundary with from_spotify_api()
    - Removed or local playlist entries have no usable track object and
      parse to None
"""

from dataclasses import dataclass
from typing import Any

from tune_resolver.resolver.models import UNKNOWN_ARTIST


@dataclass(frozen=True)
class SpotifyTrack:
    """
    Minimal description of a Spotify track, used as a YouTube search seed.

    Attributes:
        name: Track title as it appears on Spotify.
              Example: "Bohemian Rhapsody"
        artist: First credited artist.
                Example: "Queen"
    """
    name: str
    artist: str

    @classmethod
    def from_spotify_api(cls, track_data: dict[str, Any] | None) -> "SpotifyTrack | None":
        """
        Create from a Spotify track object (simplified or full).

        Returns:
            SpotifyTrack, or None if the entry has no name (removed,
            unavailable or local-only items inside playlists).
        """
        if not track_data or not track_data.get("name"):
            return None

        artists = track_data.get("artists") or []
        artist = artists[0].get("name") if artists else None

        return cls(
            name=track_data["name"],
            artist=artist or UNKNOWN_ARTIST
        )

    @property
    def search_query(self) -> str:
        """
        YouTube search query for this track.

        Example:
            SpotifyTrack("Yellow", "Coldplay").search_query
            # '"Yellow" "Coldplay"'
        """
        return f'"{self.name}" "{self.artist}"'
