"""
Response schemas for YouTube search and the YouTube Data API v3.

Upstream JSON is parsed into these frozen dataclasses at the client
boundary, so the rest of the pipeline never touches raw dictionaries.

Schemas:
    - SearchResult: one item of a YouTube Music text search (ytmusicapi)
    - VideoResource: one item of videos.list
    - PlaylistResource: one item of playlists.list
    - PlaylistItemResource: one item of playlistItems.list
    - PlaylistItemsPage: one page of playlistItems.list
"""

import re
from dataclasses import dataclass
from typing import Any


# Result types of a search that point at a single playable video
VIDEO_RESULT_TYPES = ("video", "song")

_ISO_DURATION_PATTERN = re.compile(
    r"^P(?:(?P<days>\d+)D)?"
    r"(?:T(?:(?P<hours>\d+)H)?(?:(?P<minutes>\d+)M)?(?:(?P<seconds>\d+(?:\.\d+)?)S)?)?$"
)


def parse_iso_duration(duration: str | None) -> int:
    """
    Parse an ISO 8601 duration string to whole seconds.

    Args:
        duration: Duration as returned in contentDetails.duration,
                  e.g. "PT3M33S", "PT1H2M15S", "P1DT2S", or None.

    Returns:
        Duration in seconds, or 0 if missing or unparseable
        (live streams report "P0D").

    Examples:
        "PT3M33S" -> 213
        "PT1H2M15S" -> 3735
        None -> 0
    """
    if not duration:
        return 0

    match = _ISO_DURATION_PATTERN.match(duration.strip())
    if match is None:
        return 0

    parts = match.groupdict()
    days = int(parts["days"] or 0)
    hours = int(parts["hours"] or 0)
    minutes = int(parts["minutes"] or 0)
    seconds = float(parts["seconds"] or 0)

    return int(days * 86400 + hours * 3600 + minutes * 60 + seconds)


def _thumbnail_url(snippet: dict[str, Any], size: str = "medium") -> str | None:
    thumbnails = snippet.get("thumbnails") or {}
    thumbnail = thumbnails.get(size) or thumbnails.get("default") or {}
    return thumbnail.get("url") or None


@dataclass(frozen=True)
class SearchResult:
    """
    One item of a YouTube Music text search.

    Attributes:
        result_type: "video", "song", "artist", "playlist", "album"...
        video_id: Video id for video-like results, None otherwise.
        title: Result title, if any.
    """
    result_type: str
    video_id: str | None = None
    title: str | None = None

    @classmethod
    def from_ytmusic_result(cls, result: dict[str, Any]) -> "SearchResult":
        """Create from one dictionary of YTMusic.search()."""
        return cls(
            result_type=str(result.get("resultType") or ""),
            video_id=result.get("videoId") or None,
            title=result.get("title") or None
        )

    @property
    def is_video(self) -> bool:
        return self.result_type in VIDEO_RESULT_TYPES and bool(self.video_id)

    @property
    def url(self) -> str:
        return f"https://www.youtube.com/watch?v={self.video_id}"


@dataclass(frozen=True)
class VideoResource:
    """
    One video from videos.list (part=id,snippet,contentDetails).

    Attributes:
        video_id: 11-character video id.
        title: Video title, None if the snippet is missing.
        channel_title: Uploading channel name.
        description: Full video description (chapters are read from it).
        duration_seconds: contentDetails.duration in seconds.
        live_broadcast_content: "live", "upcoming" or "none".
        thumbnail_url: Medium thumbnail URL.
    """
    video_id: str
    title: str | None
    channel_title: str | None
    description: str | None
    duration_seconds: int
    live_broadcast_content: str
    thumbnail_url: str | None

    @classmethod
    def from_api(cls, item: dict[str, Any]) -> "VideoResource":
        snippet = item.get("snippet") or {}
        content_details = item.get("contentDetails") or {}
        return cls(
            video_id=str(item.get("id") or ""),
            title=snippet.get("title"),
            channel_title=snippet.get("channelTitle"),
            description=snippet.get("description"),
            duration_seconds=parse_iso_duration(content_details.get("duration")),
            live_broadcast_content=snippet.get("liveBroadcastContent") or "none",
            thumbnail_url=_thumbnail_url(snippet)
        )

    @property
    def is_live(self) -> bool:
        return self.live_broadcast_content == "live"


@dataclass(frozen=True)
class PlaylistResource:
    """
    One playlist from playlists.list (part=id,snippet,contentDetails).

    Attributes:
        playlist_id: Playlist id ("PL...").
        title: Playlist title.
        item_count: Number of items the API reports for the playlist.
    """
    playlist_id: str
    title: str
    item_count: int

    @classmethod
    def from_api(cls, item: dict[str, Any]) -> "PlaylistResource":
        snippet = item.get("snippet") or {}
        content_details = item.get("contentDetails") or {}
        return cls(
            playlist_id=str(item.get("id") or ""),
            title=snippet.get("title") or "",
            item_count=int(content_details.get("itemCount") or 0)
        )


@dataclass(frozen=True)
class PlaylistItemResource:
    """
    One entry of a playlist. Carries no duration or live status.

    Attributes:
        item_id: Playlist item id.
        video_id: Id of the video the entry points at ("" if missing).
    """
    item_id: str
    video_id: str

    @classmethod
    def from_api(cls, item: dict[str, Any]) -> "PlaylistItemResource":
        content_details = item.get("contentDetails") or {}
        return cls(
            item_id=str(item.get("id") or ""),
            video_id=str(content_details.get("videoId") or "")
        )


@dataclass(frozen=True)
class PlaylistItemsPage:
    """One page of playlistItems.list."""
    items: tuple[PlaylistItemResource, ...]
    next_page_token: str | None

    @classmethod
    def from_api(cls, response: dict[str, Any]) -> "PlaylistItemsPage":
        return cls(
            items=tuple(
                PlaylistItemResource.from_api(item)
                for item in response.get("items") or []
            ),
            next_page_token=response.get("nextPageToken") or None
        )
