"""
Track models and query routing for tune-resolver.

The models and the live stream prober are exported here. SourceResolver
lives in tune_resolver.resolver.sources, which depends on every client
package; the client packages in turn import the models from here.
"""

from tune_resolver.resolver.hls import probe_live_stream
from tune_resolver.resolver.models import (
    MediaSource,
    QueuedPlaylist,
    ResolutionResult,
    TrackDescriptor,
    UNKNOWN_ARTIST,
    UNKNOWN_TITLE,
)

__all__ = [
    "MediaSource",
    "QueuedPlaylist",
    "TrackDescriptor",
    "ResolutionResult",
    "UNKNOWN_TITLE",
    "UNKNOWN_ARTIST",
    "probe_live_stream",
]
