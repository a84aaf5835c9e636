"""
Spotify integration module for tune-resolver.

Spotify links are resolved to SpotifyTrack stubs (name + artist), which
the resolver then searches on YouTube.

Usage:
    from tune_resolver.spotify import SpotifyClient, SpotifyTokenManager

    spotify = SpotifyClient(SpotifyTokenManager(client_id, client_secret))
    await spotify.start()
    track = await spotify.get_track("spotify:track:4cOdK2wGLETKBW3PvgPWqT")
"""

from tune_resolver.spotify.auth import SpotifyTokenManager
from tune_resolver.spotify.client import SpotifyClient
from tune_resolver.spotify.models import SpotifyTrack

__all__ = [
    "SpotifyClient",
    "SpotifyTokenManager",
    "SpotifyTrack",
]
