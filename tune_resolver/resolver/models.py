"""
Data models shared by every resolution branch.

TrackDescriptor is the unit the pipeline produces: a normalized,
source-agnostic description of something the playback layer can stream.
Spotify results are materialized as YouTube entries and Suno results as
direct-URL entries, so only two MediaSource kinds exist.

Design Decisions:
    - All dataclasses are frozen (immutable); variants such as chapter
      sub-tracks are derived with dataclasses.replace()
    - QueuedPlaylist is a display-only back reference, never an owner
"""

from dataclasses import dataclass, field
from enum import Enum


UNKNOWN_TITLE = "Unknown title"
UNKNOWN_ARTIST = "Unknown artist"


class MediaSource(str, Enum):
    """Final playable source kind of a TrackDescriptor."""
    YOUTUBE = "youtube"
    HLS = "hls"


@dataclass(frozen=True)
class QueuedPlaylist:
    """
    Reference to the playlist or album a track was resolved from.

    Attributes:
        title: Display name of the playlist/album.
        source: Upstream identifier (YouTube playlist id, Spotify album id...).
    """
    title: str
    source: str


@dataclass(frozen=True)
class TrackDescriptor:
    """
    Immutable description of one playable track.

    Attributes:
        source: MediaSource.YOUTUBE or MediaSource.HLS.
        title: Display title. Defaults to "Unknown title".
        artist: Display artist. Defaults to "Unknown artist".
        url: YouTube video id, or a direct media URL for HLS entries.
        length: Duration in seconds; 0 for live/indeterminate streams.
        offset: Start offset in seconds within the media. Non-zero only
                for chapter sub-tracks.
        is_live: Whether the media is a live stream.
        thumbnail_url: Optional display image.
        playlist: Originating playlist, or None when resolved standalone.

    Example:
        track = TrackDescriptor(
            source=MediaSource.YOUTUBE,
            title="Never Gonna Give You Up",
            artist="Rick Astley",
            url="dQw4w9WgXcQ",
            length=213
        )
    """
    source: MediaSource
    url: str
    title: str = UNKNOWN_TITLE
    artist: str = UNKNOWN_ARTIST
    length: int = 0
    offset: int = 0
    is_live: bool = False
    thumbnail_url: str | None = None
    playlist: QueuedPlaylist | None = None

    def __post_init__(self) -> None:
        if self.length < 0:
            raise ValueError(f"Track length must be >= 0, got {self.length}")
        if self.offset < 0:
            raise ValueError(f"Track offset must be >= 0, got {self.offset}")
        if not self.is_live and not self.url:
            raise ValueError("A track that is not live needs a url")


@dataclass(frozen=True)
class ResolutionResult:
    """
    Outcome of resolving one query.

    Attributes:
        tracks: Resolved descriptors, in upstream order.
        not_found_count: Requested items that could not be resolved.
        total_requested: Items the query expanded to before resolution.

    A Spotify album of 15 tracks with 3 misses gives
    not_found_count=3, total_requested=15 ("12 of 15 found").
    """
    tracks: tuple[TrackDescriptor, ...] = field(default_factory=tuple)
    not_found_count: int = 0
    total_requested: int = 0

    @classmethod
    def complete(cls, tracks: list[TrackDescriptor]) -> "ResolutionResult":
        """Result for a branch with no partial failures."""
        return cls(
            tracks=tuple(tracks),
            not_found_count=0,
            total_requested=len(tracks)
        )

    @property
    def found_count(self) -> int:
        return self.total_requested - self.not_found_count

    @property
    def is_partial(self) -> bool:
        """True when some, but not all, requested items were resolved."""
        return 0 < self.not_found_count < self.total_requested
