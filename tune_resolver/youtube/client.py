"""
YouTube client for tune-resolver.

Resolves YouTube search terms, video URLs and playlist URLs into
TrackDescriptors.

Backends:
    - Text search: YouTube Music search through ytmusicapi. The library
      is synchronous, so every call runs in a worker thread. At most
      max_concurrent_searches searches run at once.
    - Metadata: YouTube Data API v3 (videos, playlists, playlistItems)
      over aiohttp, authenticated with an API key.

Caching:
    Every upstream call goes through the shared CacheProvider:
        - search results and video details: 1 hour
        - playlist metadata and playlist item pages: 1 minute

Playlist Enumeration:
    Pages of 50 items are fetched one after the other (each page needs the
    previous page's token). As soon as a page arrives, the video details
    for its ids are requested in the background, so detail lookups overlap
    with paging. Items without details (deleted or private videos) are
    dropped, as are all items of a page whose detail lookup failed.

Usage:
    async with YouTubeClient(api_key, CacheProvider()) as youtube:
        tracks = await youtube.search("never gonna give you up")
        tracks = await youtube.get_playlist("PL...", split_chapters=True)
"""

import asyncio
from dataclasses import replace
from typing import Any

import aiohttp
from ytmusicapi import YTMusic

from tune_resolver.core.cache import CacheProvider, ONE_HOUR_IN_SECONDS, ONE_MINUTE_IN_SECONDS
from tune_resolver.core.exceptions import (
    InvalidQueryError,
    NotFoundError,
    UpstreamTimeoutError,
    YouTubeError,
)
from tune_resolver.core.logger import get_logger
from tune_resolver.resolver.models import (
    MediaSource,
    QueuedPlaylist,
    TrackDescriptor,
    UNKNOWN_ARTIST,
    UNKNOWN_TITLE,
)
from tune_resolver.utils import extract_video_id
from tune_resolver.youtube.chapters import parse_chapters
from tune_resolver.youtube.models import (
    PlaylistItemsPage,
    PlaylistResource,
    SearchResult,
    VideoResource,
)


logger = get_logger(__name__)


YOUTUBE_API_BASE_URL = "https://www.googleapis.com/youtube/v3/"

# playlistItems.list and videos.list both cap maxResults at 50
PLAYLIST_PAGE_SIZE = 50

# Number of results requested per text search
SEARCH_RESULT_LIMIT = 10

DEFAULT_MAX_CONCURRENT_SEARCHES = 4

REQUEST_TIMEOUT_SECONDS = 10

# errors[].reason values that mean the API key is out of quota
QUOTA_ERROR_REASONS = ("quotaExceeded", "dailyLimitExceeded", "rateLimitExceeded")


class YouTubeClient:
    """
    Async client for YouTube search and the YouTube Data API.

    Attributes:
        _api_key: YouTube Data API v3 key.
        _cache: Shared CacheProvider.
        _session: aiohttp session, created on first request if not given.
        _owns_session: True if close() must close _session.
        _ytmusic: ytmusicapi client, created on first search if not given.
        _search_slots: Semaphore bounding concurrent searches.
    """

    def __init__(
        self,
        api_key: str,
        cache: CacheProvider,
        session: aiohttp.ClientSession | None = None,
        ytmusic: YTMusic | None = None,
        max_concurrent_searches: int = DEFAULT_MAX_CONCURRENT_SEARCHES
    ) -> None:
        self._api_key = api_key
        self._cache = cache
        self._session = session
        self._owns_session = session is None
        self._ytmusic = ytmusic
        self._search_slots = asyncio.Semaphore(max_concurrent_searches)

    async def __aenter__(self) -> "YouTubeClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the HTTP session if this client created it."""
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None

    # =========================================================================
    # Public Operations
    # =========================================================================

    async def search(self, query: str, split_chapters: bool = False) -> list[TrackDescriptor]:
        """
        Resolve a free-text query to the first matching video.

        Args:
            query: Search terms, e.g. '"Song Title" "Artist"'.
            split_chapters: Expand the video into chapter sub-tracks when
                            its description lists chapters.

        Returns:
            One descriptor, or one per chapter.

        Raises:
            NotFoundError: If the search returned no video-like result.
            YouTubeError: If the search backend or the Data API failed.
        """
        async with self._search_slots:
            raw_results = await self._cache.wrap(
                self._run_search,
                query,
                expires_in=ONE_HOUR_IN_SECONDS
            )

        results = [SearchResult.from_ytmusic_result(r) for r in raw_results]
        first_video = next((r for r in results if r.is_video), None)

        if first_video is None:
            raise NotFoundError(
                "No video found",
                details={"query": query}
            )

        logger.debug(f"Search '{query}' matched {first_video.video_id} ({first_video.title})")
        return await self.get_video(first_video.video_id, split_chapters)

    async def get_video(self, url: str, split_chapters: bool = False) -> list[TrackDescriptor]:
        """
        Resolve a video URL (any YouTube URL form) or bare video id.

        Raises:
            InvalidQueryError: If no video id can be extracted.
            NotFoundError: If the video does not exist or is private.
        """
        video_id = extract_video_id(url)
        if video_id is None:
            raise InvalidQueryError(
                "Could not extract a video id",
                details={"query": url}
            )

        videos = await self._cache.wrap(
            self._list_videos,
            [video_id],
            expires_in=ONE_HOUR_IN_SECONDS
        )
        if not videos:
            raise NotFoundError(
                "Video not found",
                details={"video_id": video_id}
            )

        video = videos[0]
        return self._expand(self._to_descriptor(video), video, split_chapters)

    async def get_playlist(self, list_id: str, split_chapters: bool = False) -> list[TrackDescriptor]:
        """
        Resolve every available video of a playlist.

        Args:
            list_id: Playlist id (the 'list' URL parameter).
            split_chapters: Expand each video into chapter sub-tracks.

        Returns:
            Descriptors in playlist order, each carrying a QueuedPlaylist
            back reference. Unavailable items are left out.

        Raises:
            NotFoundError: If the playlist does not exist or is private.
            YouTubeError: If a playlist page could not be fetched.
        """
        playlists = await self._cache.wrap(
            self._list_playlists,
            list_id,
            expires_in=ONE_MINUTE_IN_SECONDS
        )
        if not playlists:
            raise NotFoundError(
                "Playlist not found",
                details={"playlist_id": list_id}
            )

        playlist = playlists[0]
        queued_playlist = QueuedPlaylist(title=playlist.title, source=playlist.playlist_id)

        pages: list[PlaylistItemsPage] = []
        detail_tasks: list[asyncio.Future] = []
        fetched = 0
        page_token: str | None = None

        try:
            while fetched < playlist.item_count:
                page = await self._cache.wrap(
                    self._list_playlist_items,
                    list_id,
                    page_token,
                    expires_in=ONE_MINUTE_IN_SECONDS
                )
                if not page.items:
                    break

                pages.append(page)
                detail_tasks.append(
                    asyncio.ensure_future(self._page_details(page))
                )
                fetched += len(page.items)

                page_token = page.next_page_token
                if page_token is None:
                    break
        except BaseException:
            for task in detail_tasks:
                task.cancel()
            await asyncio.gather(*detail_tasks, return_exceptions=True)
            raise

        details = await asyncio.gather(*detail_tasks, return_exceptions=True)

        tracks: list[TrackDescriptor] = []
        for page, result in zip(pages, details):
            if isinstance(result, BaseException):
                logger.warning(
                    f"Dropping {len(page.items)} items of playlist {list_id}: "
                    f"video details unavailable ({result})"
                )
                continue

            for item in page.items:
                video = result.get(item.video_id)
                if video is None:
                    logger.debug(f"Dropping unavailable playlist item {item.video_id or item.item_id}")
                    continue
                base = replace(self._to_descriptor(video), playlist=queued_playlist)
                tracks.extend(self._expand(base, video, split_chapters))

        logger.debug(
            f"Playlist '{playlist.title}': {len(tracks)} tracks from "
            f"{fetched}/{playlist.item_count} items"
        )
        return tracks

    # =========================================================================
    # Descriptor Mapping
    # =========================================================================

    @staticmethod
    def _to_descriptor(video: VideoResource) -> TrackDescriptor:
        return TrackDescriptor(
            source=MediaSource.YOUTUBE,
            url=video.video_id,
            title=video.title or UNKNOWN_TITLE,
            artist=video.channel_title or UNKNOWN_ARTIST,
            length=0 if video.is_live else video.duration_seconds,
            is_live=video.is_live,
            thumbnail_url=video.thumbnail_url
        )

    @staticmethod
    def _expand(
        base: TrackDescriptor,
        video: VideoResource,
        split_chapters: bool
    ) -> list[TrackDescriptor]:
        """Return [base], or one descriptor per chapter when splitting applies."""
        if not split_chapters or base.is_live:
            return [base]

        chapters = parse_chapters(video.description, base.length)
        if not chapters:
            return [base]

        return [
            replace(
                base,
                title=f"{chapter.name} ({base.title})",
                offset=chapter.offset,
                length=chapter.length
            )
            for chapter in chapters
        ]

    # =========================================================================
    # Upstream Calls (cached by the public operations)
    # =========================================================================

    async def _run_search(self, query: str) -> list[dict[str, Any]]:
        try:
            return await asyncio.to_thread(self._search_blocking, query)
        except Exception as e:
            raise YouTubeError(
                f"YouTube search failed: {e}",
                details={"query": query, "original_error": str(e)}
            ) from e

    def _search_blocking(self, query: str) -> list[dict[str, Any]]:
        if self._ytmusic is None:
            self._ytmusic = YTMusic(language="en")
        return self._ytmusic.search(query, limit=SEARCH_RESULT_LIMIT) or []

    async def _list_videos(self, video_ids: list[str]) -> list[VideoResource]:
        response = await self._api_get(
            "videos",
            part="id,snippet,contentDetails",
            id=",".join(video_ids),
            maxResults=PLAYLIST_PAGE_SIZE
        )
        return [VideoResource.from_api(item) for item in response.get("items") or []]

    async def _list_playlists(self, list_id: str) -> list[PlaylistResource]:
        response = await self._api_get(
            "playlists",
            part="id,snippet,contentDetails",
            id=list_id
        )
        return [PlaylistResource.from_api(item) for item in response.get("items") or []]

    async def _list_playlist_items(self, list_id: str, page_token: str | None) -> PlaylistItemsPage:
        response = await self._api_get(
            "playlistItems",
            part="id,contentDetails",
            playlistId=list_id,
            maxResults=PLAYLIST_PAGE_SIZE,
            pageToken=page_token
        )
        return PlaylistItemsPage.from_api(response)

    async def _page_details(self, page: PlaylistItemsPage) -> dict[str, VideoResource]:
        """Video details for one playlist page, keyed by video id."""
        video_ids = [item.video_id for item in page.items if item.video_id]
        if not video_ids:
            return {}

        videos = await self._cache.wrap(
            self._list_videos,
            video_ids,
            expires_in=ONE_HOUR_IN_SECONDS
        )
        return {video.video_id: video for video in videos}

    async def _api_get(self, resource: str, **params: Any) -> dict[str, Any]:
        """
        GET a Data API resource and return the decoded JSON body.

        None-valued parameters are left out of the query string.

        Raises:
            UpstreamTimeoutError: If the request timed out.
            YouTubeError: On HTTP errors (is_quota_error for quota
                          exhaustion) and connection failures.
        """
        query = {key: value for key, value in params.items() if value is not None}
        query["key"] = self._api_key

        if self._session is None:
            self._session = aiohttp.ClientSession()

        try:
            async with self._session.get(
                YOUTUBE_API_BASE_URL + resource,
                params=query,
                timeout=aiohttp.ClientTimeout(total=REQUEST_TIMEOUT_SECONDS)
            ) as response:
                if response.status >= 400:
                    try:
                        body = await response.json(content_type=None)
                    except ValueError:
                        body = {}
                    raise _api_error(resource, response.status, body)
                return await response.json()
        except asyncio.TimeoutError as e:
            raise UpstreamTimeoutError(
                f"YouTube API request timed out: {resource}",
                details={"resource": resource}
            ) from e
        except aiohttp.ClientError as e:
            raise YouTubeError(
                f"YouTube API request failed: {resource}",
                details={"resource": resource, "original_error": str(e)}
            ) from e


def _api_error(resource: str, status: int, body: Any) -> YouTubeError:
    """Build the YouTubeError for an HTTP error response of the Data API."""
    error = body.get("error") if isinstance(body, dict) else None
    error = error if isinstance(error, dict) else {}
    reasons = [
        entry.get("reason")
        for entry in error.get("errors") or []
        if isinstance(entry, dict)
    ]
    is_quota_error = status == 403 and any(r in QUOTA_ERROR_REASONS for r in reasons)

    if is_quota_error:
        message = "YouTube API quota exceeded"
    else:
        message = f"YouTube API request failed: {resource} (HTTP {status})"

    return YouTubeError(
        message,
        details={
            "resource": resource,
            "status": status,
            "reasons": reasons,
            "original_error": error.get("message"),
        },
        is_quota_error=is_quota_error
    )
