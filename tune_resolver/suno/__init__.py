"""
Suno integration module for tune-resolver.

Usage:
    from tune_resolver.suno import SunoClient

    suno = await SunoClient(cookie).init()
    clips = await suno.get(["1a95710f-17fa-41fc-9477-c63f4bafb1f7"])
"""

from tune_resolver.suno.client import SunoClient
from tune_resolver.suno.models import (
    AudioInfo,
    ClipStatus,
    CreditsInfo,
    GeneratedLyrics,
    SessionState,
    SongPageMetadata,
)

__all__ = [
    "SunoClient",
    "AudioInfo",
    "ClipStatus",
    "CreditsInfo",
    "GeneratedLyrics",
    "SessionState",
    "SongPageMetadata",
]
