"""
Spotify API client for tune-resolver.

Wraps spotipy for the four entity types a Spotify link can point at and
reduces every result to SpotifyTrack stubs. spotipy is synchronous, so
each operation runs in a worker thread.

Authentication:
    Client credentials only (public catalog data). The token comes from
    SpotifyTokenManager; the underlying spotipy.Spotify instance is
    rebuilt whenever the manager hands out a new token.

Limits:
    Every collection operation takes a limit and returns at most that
    many tracks, in Spotify order.

Usage:
    client = SpotifyClient(SpotifyTokenManager(client_id, client_secret))
    await client.start()

    tracks, playlist = await client.get_album(
        "https://open.spotify.com/album/1DFixLWuPkv3KT3TnV35m3",
        limit=50
    )
    await client.close()
"""

import asyncio
from typing import Any, Callable

import spotipy

from tune_resolver.core.exceptions import (
    AuthError,
    InvalidQueryError,
    NotFoundError,
    SpotifyError,
)
from tune_resolver.core.logger import get_logger
from tune_resolver.resolver.models import QueuedPlaylist
from tune_resolver.spotify.auth import SpotifyTokenManager
from tune_resolver.spotify.models import SpotifyTrack
from tune_resolver.utils import parse_spotify_uri


logger = get_logger(__name__)


REQUEST_TIMEOUT_SECONDS = 10


class SpotifyClient:
    """
    Async facade over spotipy.

    Attributes:
        _tokens: Token manager supplying the access token.
        _spotify: Cached spotipy instance for _spotify_token.
        _spotify_token: Token _spotify was built with.
    """

    def __init__(self, tokens: SpotifyTokenManager) -> None:
        self._tokens = tokens
        self._spotify: spotipy.Spotify | None = None
        self._spotify_token: str | None = None

    async def start(self) -> None:
        """Obtain the first token and start renewing it."""
        await self._tokens.start()

    async def close(self) -> None:
        await self._tokens.stop()

    # =========================================================================
    # Public Operations
    # =========================================================================

    async def get_track(self, url: str) -> SpotifyTrack:
        """
        Get one track.

        Raises:
            InvalidQueryError: If url is not a Spotify track link.
            NotFoundError: If the track does not exist.
        """
        track_id = _entity_id(url, "track")
        track = await self._run(_fetch_track, track_id, details={"track_id": track_id})
        if track is None:
            raise NotFoundError("Track not found", details={"track_id": track_id})
        return track

    async def get_album(self, url: str, limit: int) -> tuple[list[SpotifyTrack], QueuedPlaylist]:
        """Get up to limit tracks of an album, plus the album as a QueuedPlaylist."""
        album_id = _entity_id(url, "album")
        tracks, title = await self._run(
            _fetch_album, album_id, limit, details={"album_id": album_id}
        )
        return tracks, QueuedPlaylist(title=title, source=album_id)

    async def get_playlist(self, url: str, limit: int) -> tuple[list[SpotifyTrack], QueuedPlaylist]:
        """
        Get up to limit tracks of a playlist, plus the playlist as a
        QueuedPlaylist.

        Removed and local-only entries are skipped and do not count
        towards the limit.
        """
        playlist_id = _entity_id(url, "playlist")
        tracks, title = await self._run(
            _fetch_playlist, playlist_id, limit, details={"playlist_id": playlist_id}
        )
        return tracks, QueuedPlaylist(title=title, source=playlist_id)

    async def get_artist(self, url: str, limit: int) -> list[SpotifyTrack]:
        """Get up to limit of the artist's top tracks."""
        artist_id = _entity_id(url, "artist")
        return await self._run(
            _fetch_artist_top_tracks, artist_id, limit, details={"artist_id": artist_id}
        )

    # =========================================================================
    # Internals
    # =========================================================================

    def _get_spotify(self) -> spotipy.Spotify:
        token = self._tokens.access_token
        if self._spotify is None or token != self._spotify_token:
            self._spotify = spotipy.Spotify(
                auth=token,
                requests_timeout=REQUEST_TIMEOUT_SECONDS
            )
            self._spotify_token = token
        return self._spotify

    async def _run(self, fetch: Callable[..., Any], *args: Any, details: dict) -> Any:
        """
        Run a blocking fetch function in a worker thread.

        Raises:
            AuthError: No valid token, or Spotify answered 401.
            NotFoundError: Spotify answered 404 (or 400 for a bad id).
            SpotifyError: Any other API or network failure.
        """
        spotify = self._get_spotify()
        try:
            return await asyncio.to_thread(fetch, spotify, *args)
        except spotipy.SpotifyException as e:
            raise _map_spotify_exception(e, details) from e
        except OSError as e:
            raise SpotifyError(
                f"Spotify request failed: {e}",
                details={**details, "original_error": str(e)}
            ) from e


def _entity_id(url: str, expected_type: str) -> str:
    uri = parse_spotify_uri(url)
    if uri is None or uri.type != expected_type:
        raise InvalidQueryError(
            f"Not a Spotify {expected_type} link",
            details={"query": url}
        )
    return uri.id


def _map_spotify_exception(e: spotipy.SpotifyException, details: dict) -> Exception:
    details = {**details, "http_status": e.http_status, "original_error": str(e)}

    if e.http_status == 429:
        return SpotifyError(
            "Rate limited by Spotify",
            details=details,
            is_rate_limit=True
        )
    if e.http_status in (400, 404):
        return NotFoundError("Not found on Spotify", details=details)
    if e.http_status == 401:
        return AuthError("Spotify rejected the access token", details=details)
    return SpotifyError(f"Spotify request failed: {e.msg}", details=details)


# =============================================================================
# Blocking fetch functions (run in worker threads)
# =============================================================================

def _fetch_track(spotify: spotipy.Spotify, track_id: str) -> SpotifyTrack | None:
    return SpotifyTrack.from_spotify_api(spotify.track(track_id))


def _collect(
    spotify: spotipy.Spotify,
    page: dict[str, Any] | None,
    limit: int,
    unwrap: Callable[[dict[str, Any]], dict[str, Any] | None]
) -> list[SpotifyTrack]:
    """Walk a paging object with spotify.next() until limit tracks are found."""
    tracks: list[SpotifyTrack] = []

    while page and len(tracks) < limit:
        for item in page.get("items") or []:
            track = SpotifyTrack.from_spotify_api(unwrap(item))
            if track is not None:
                tracks.append(track)
                if len(tracks) == limit:
                    break
        page = spotify.next(page) if page.get("next") and len(tracks) < limit else None

    return tracks


def _fetch_album(spotify: spotipy.Spotify, album_id: str, limit: int) -> tuple[list[SpotifyTrack], str]:
    album = spotify.album(album_id)
    tracks = _collect(spotify, album.get("tracks"), limit, lambda item: item)
    return tracks, album.get("name") or album_id


def _fetch_playlist(
    spotify: spotipy.Spotify,
    playlist_id: str,
    limit: int
) -> tuple[list[SpotifyTrack], str]:
    playlist = spotify.playlist(playlist_id)
    tracks = _collect(
        spotify,
        playlist.get("tracks"),
        limit,
        lambda item: item.get("track") or item.get("item")
    )
    logger.debug(f"Spotify playlist {playlist_id}: {len(tracks)} tracks (limit {limit})")
    return tracks, playlist.get("name") or playlist_id


def _fetch_artist_top_tracks(spotify: spotipy.Spotify, artist_id: str, limit: int) -> list[SpotifyTrack]:
    response = spotify.artist_top_tracks(artist_id)
    tracks = [
        SpotifyTrack.from_spotify_api(track)
        for track in response.get("tracks") or []
    ]
    return [track for track in tracks if track is not None][:limit]
