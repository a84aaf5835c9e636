"""
Query routing for tune-resolver.

SourceResolver is the single entry point of the pipeline: it looks at a
query, picks the branch that understands it and returns a
ResolutionResult.

Routing (first match wins):
    1. Spotify URL or URI          -> Spotify stubs searched on YouTube
    2. Suno URL with /song/<id>    -> one direct-audio track
    3. YouTube URL with ?list=...  -> playlist
       other YouTube URL           -> single video
    4. any other http(s) URL       -> live stream probe
    5. anything else               -> YouTube search

Partial Results:
    A Spotify album or playlist can resolve only some of its tracks on
    YouTube. Misses are logged and counted (not_found_count) rather than
    raised; every other branch either succeeds completely or raises.

Usage:
    resolver = SourceResolver(youtube, spotify=spotify, suno=suno)
    result = await resolver.resolve("https://open.spotify.com/album/...")
    print(format_resolved_message(result.found_count,
                                  result.not_found_count,
                                  result.total_requested))
"""

import asyncio
from dataclasses import replace
from typing import Any

from tqdm import tqdm

from tune_resolver.core.config import DEFAULT_PLAYLIST_LIMIT
from tune_resolver.core.exceptions import (
    AuthError,
    ConfigError,
    InvalidQueryError,
    SunoError,
    UpstreamTimeoutError,
)
from tune_resolver.core.logger import get_logger, log_resolution_failure
from tune_resolver.resolver.hls import DEFAULT_PROBE_TIMEOUT_SECONDS, probe_live_stream
from tune_resolver.resolver.models import (
    MediaSource,
    QueuedPlaylist,
    ResolutionResult,
    TrackDescriptor,
    UNKNOWN_ARTIST,
    UNKNOWN_TITLE,
)
from tune_resolver.spotify.client import SpotifyClient
from tune_resolver.spotify.models import SpotifyTrack
from tune_resolver.suno.client import SunoClient
from tune_resolver.suno.models import AudioInfo, FALLBACK_DURATION_SECONDS, SUNO_CDN_URL
from tune_resolver.utils import (
    extract_suno_song_id,
    extract_youtube_playlist_id,
    is_http_url,
    is_suno_url,
    is_youtube_url,
    parse_spotify_uri,
)
from tune_resolver.youtube.client import YouTubeClient


logger = get_logger(__name__)


class SourceResolver:
    """
    Routes queries to the YouTube, Spotify, Suno and live stream branches.

    Attributes:
        _youtube: YouTube client (always required: Spotify tracks are
                  resolved through YouTube search).
        _spotify: Spotify client, or None if Spotify is not configured.
        _suno: Suno client, or None if Suno is not configured.
        _playlist_limit: Default maximum number of Spotify tracks per query.
        _probe_timeout: Live stream probe deadline in seconds.
        _show_progress: Show a progress bar while Spotify tracks are searched.
    """

    def __init__(
        self,
        youtube: YouTubeClient,
        spotify: SpotifyClient | None = None,
        suno: SunoClient | None = None,
        playlist_limit: int = DEFAULT_PLAYLIST_LIMIT,
        probe_timeout: float = DEFAULT_PROBE_TIMEOUT_SECONDS,
        show_progress: bool = False
    ) -> None:
        self._youtube = youtube
        self._spotify = spotify
        self._suno = suno
        self._playlist_limit = playlist_limit
        self._probe_timeout = probe_timeout
        self._show_progress = show_progress

    async def __aenter__(self) -> "SourceResolver":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Close every client owned by this resolver."""
        await self._youtube.close()
        if self._spotify is not None:
            await self._spotify.close()
        if self._suno is not None:
            await self._suno.close()

    async def resolve(
        self,
        query: str,
        split_chapters: bool = False,
        playlist_limit: int | None = None
    ) -> ResolutionResult:
        """
        Resolve a query or URL into playable tracks.

        Args:
            query: Search terms or a YouTube/Spotify/Suno/stream URL.
            split_chapters: Expand YouTube videos with chapters into one
                            track per chapter.
            playlist_limit: Maximum number of Spotify tracks to resolve;
                            defaults to the resolver's playlist_limit.

        Returns:
            ResolutionResult with tracks in upstream order.

        Raises:
            InvalidQueryError: Empty query, non-positive limit, or a URL
                               that cannot be parsed.
            ConfigError: Spotify/Suno query without that client configured.
            NotFoundError: Nothing matched (single-item lookups).
            ResolverError: Any other upstream failure.
        """
        query = query.strip()
        if not query:
            raise InvalidQueryError("Empty query")

        limit = self._playlist_limit if playlist_limit is None else playlist_limit
        if limit <= 0:
            raise InvalidQueryError(
                "Playlist limit must be positive",
                details={"playlist_limit": limit}
            )

        if parse_spotify_uri(query) is not None:
            logger.debug(f"Routing to Spotify: {query}")
            return await self.spotify_source(query, limit, split_chapters)

        if is_suno_url(query) and extract_suno_song_id(query) is not None:
            logger.debug(f"Routing to Suno: {query}")
            return ResolutionResult.complete([await self.suno_source(query)])

        if is_youtube_url(query):
            list_id = extract_youtube_playlist_id(query)
            if list_id is not None:
                logger.debug(f"Routing to YouTube playlist {list_id}")
                return ResolutionResult.complete(
                    await self.youtube_playlist(list_id, split_chapters)
                )
            logger.debug(f"Routing to YouTube video: {query}")
            return ResolutionResult.complete(await self.youtube_video(query, split_chapters))

        if is_http_url(query):
            logger.debug(f"Routing to live stream probe: {query}")
            return ResolutionResult.complete([await self.http_live_stream(query)])

        logger.debug(f"Routing to YouTube search: {query}")
        return ResolutionResult.complete(await self.youtube_video_search(query, split_chapters))

    # =========================================================================
    # YouTube
    # =========================================================================

    async def youtube_video_search(self, query: str, split_chapters: bool = False) -> list[TrackDescriptor]:
        return await self._youtube.search(query, split_chapters)

    async def youtube_video(self, url: str, split_chapters: bool = False) -> list[TrackDescriptor]:
        return await self._youtube.get_video(url, split_chapters)

    async def youtube_playlist(self, list_id: str, split_chapters: bool = False) -> list[TrackDescriptor]:
        return await self._youtube.get_playlist(list_id, split_chapters)

    # =========================================================================
    # Spotify
    # =========================================================================

    async def spotify_source(
        self,
        url: str,
        playlist_limit: int,
        split_chapters: bool = False
    ) -> ResolutionResult:
        """
        Resolve a Spotify link by searching each of its tracks on YouTube.

        Tracks, albums, playlists and artists (top tracks) are supported.
        Other entity types (episodes, shows...) give an empty result.
        """
        spotify = self._require_spotify()

        uri = parse_spotify_uri(url)
        if uri is None:
            raise InvalidQueryError("Not a Spotify link", details={"query": url})

        playlist: QueuedPlaylist | None = None
        if uri.type == "track":
            stubs = [await spotify.get_track(url)]
        elif uri.type == "album":
            stubs, playlist = await spotify.get_album(url, playlist_limit)
        elif uri.type == "playlist":
            stubs, playlist = await spotify.get_playlist(url, playlist_limit)
        elif uri.type == "artist":
            stubs = await spotify.get_artist(url, playlist_limit)
        else:
            logger.warning(f"Unsupported Spotify link type '{uri.type}': {url}")
            return ResolutionResult()

        return await self._spotify_to_youtube(stubs, split_chapters, playlist, source=url)

    async def _spotify_to_youtube(
        self,
        stubs: list[SpotifyTrack],
        split_chapters: bool,
        playlist: QueuedPlaylist | None,
        source: str
    ) -> ResolutionResult:
        """
        Search every stub on YouTube concurrently.

        Concurrency is bounded by the YouTube client's search slots.
        """
        searches = [
            asyncio.ensure_future(self._youtube.search(stub.search_query, split_chapters))
            for stub in stubs
        ]
        with tqdm(
            total=len(searches),
            desc="Searching YouTube",
            unit="track",
            disable=not self._show_progress or len(searches) < 2
        ) as progress:
            for search in searches:
                search.add_done_callback(lambda _: progress.update(1))
            results = await asyncio.gather(*searches, return_exceptions=True)

        tracks: list[TrackDescriptor] = []
        not_found = 0

        for stub, result in zip(stubs, results):
            if isinstance(result, Exception):
                not_found += 1
                log_resolution_failure(
                    logger,
                    query=stub.search_query,
                    reason=str(result),
                    source=source
                )
                continue
            if isinstance(result, BaseException):
                raise result

            for track in result:
                tracks.append(replace(track, playlist=playlist) if playlist else track)

        if not_found:
            logger.info(f"{len(stubs) - not_found} of {len(stubs)} Spotify tracks found on YouTube")

        return ResolutionResult(
            tracks=tuple(tracks),
            not_found_count=not_found,
            total_requested=len(stubs)
        )

    def _require_spotify(self) -> SpotifyClient:
        if self._spotify is None:
            raise ConfigError(
                "Spotify is not configured. Set spotify.client_id and "
                "spotify.client_secret in config.yaml."
            )
        return self._spotify

    # =========================================================================
    # Suno
    # =========================================================================

    async def suno_source(self, url: str) -> TrackDescriptor:
        """
        Resolve a Suno song URL to a direct-audio track.

        The account feed is used when the Suno client is authenticated;
        otherwise, or if the feed fails, the public song page is scraped.

        Raises:
            InvalidQueryError: If the URL has no /song/<id> segment.
            ConfigError: If no Suno client is configured.
        """
        song_id = extract_suno_song_id(url)
        if song_id is None:
            raise InvalidQueryError(
                "Suno URL does not contain a song id",
                details={"query": url}
            )

        if self._suno is None:
            raise ConfigError("Suno is not configured")

        audio: AudioInfo | None = None
        if self._suno.is_authenticated:
            try:
                clips = await self._suno.get([song_id])
                audio = next((clip for clip in clips if clip.id == song_id), None)
            except (AuthError, SunoError, UpstreamTimeoutError) as e:
                logger.warning(f"Suno feed lookup failed for {song_id}, using song page: {e.message}")

        if audio is None:
            page = await self._suno.get_song_page_metadata(song_id)
            audio = page.to_audio_info()

        return _suno_descriptor(audio)

    # =========================================================================
    # Live Streams
    # =========================================================================

    async def http_live_stream(self, url: str) -> TrackDescriptor:
        return await probe_live_stream(url, timeout=self._probe_timeout)


def _suno_descriptor(audio: AudioInfo) -> TrackDescriptor:
    if audio.duration_seconds is not None:
        length = int(audio.duration_seconds)
    else:
        length = FALLBACK_DURATION_SECONDS

    return TrackDescriptor(
        source=MediaSource.HLS,
        url=audio.audio_url or SUNO_CDN_URL.format(song_id=audio.id),
        title=audio.title or UNKNOWN_TITLE,
        artist=audio.display_name or audio.model_name or UNKNOWN_ARTIST,
        length=length,
        is_live=False,
        thumbnail_url=audio.image_url
    )
