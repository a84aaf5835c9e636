"""
Data models for the Suno API.

Design Decisions:
    - Feed and clip JSON is parsed into frozen dataclasses at the client
      boundary; generation metadata is flattened out of the nested
      "metadata" object
    - Unknown clip statuses ("submitted", ...) are read as QUEUED so
      polling keeps waiting on them
    - SessionState is the only mutable model: it belongs to one
      SunoClient and changes on every token renewal
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any


SUNO_CDN_URL = "https://cdn1.suno.ai/{song_id}.mp3"

# Substituted when a song page does not expose these values
FALLBACK_DURATION_SECONDS = 120
FALLBACK_CREATED_AT = "2021-10-10T00:00:00Z"


class ClipStatus(str, Enum):
    """Generation status of a clip."""
    QUEUED = "queued"
    STREAMING = "streaming"
    COMPLETE = "complete"
    ERROR = "error"

    @classmethod
    def _missing_(cls, value: object) -> "ClipStatus":
        return cls.QUEUED


def _parse_duration(value: Any) -> float | None:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def parse_lyrics(prompt: str | None) -> str:
    """Drop blank lines from a lyrics prompt."""
    if not prompt:
        return ""
    return "\n".join(line for line in prompt.split("\n") if line.strip())


@dataclass(frozen=True)
class AudioInfo:
    """
    One generated clip, as reported by the feed, clip and generate endpoints.

    Attributes:
        id: Clip id (UUID).
        status: Generation status.
        model_name: Model used, e.g. "chirp-v3".
        created_at: ISO-8601 creation time.
        title: Song title, if any.
        audio_url: Playable audio URL once streaming/complete.
        image_url: Cover image URL.
        video_url: Rendered video URL.
        duration_seconds: Audio length, None while generating.
        lyric: Lyrics with blank lines removed.
        prompt: Raw lyrics/prompt text.
        gpt_description_prompt: Description used for non-custom generation.
        tags: Style tags.
        type: Generation type ("gen", "concat"...).
        display_name: Name of the creating user.
        error_message: Failure reason when status is ERROR.
    """
    id: str
    status: ClipStatus = ClipStatus.QUEUED
    model_name: str = ""
    created_at: str = ""
    title: str | None = None
    audio_url: str | None = None
    image_url: str | None = None
    video_url: str | None = None
    duration_seconds: float | None = None
    lyric: str = ""
    prompt: str | None = None
    gpt_description_prompt: str | None = None
    tags: str | None = None
    type: str | None = None
    display_name: str | None = None
    error_message: str | None = None

    @classmethod
    def from_api(cls, clip: dict[str, Any]) -> "AudioInfo":
        metadata = clip.get("metadata") or {}
        return cls(
            id=str(clip.get("id") or ""),
            status=ClipStatus(clip.get("status")),
            model_name=clip.get("model_name") or "",
            created_at=clip.get("created_at") or "",
            title=clip.get("title") or None,
            audio_url=clip.get("audio_url") or None,
            image_url=clip.get("image_url") or None,
            video_url=clip.get("video_url") or None,
            duration_seconds=_parse_duration(metadata.get("duration")),
            lyric=parse_lyrics(metadata.get("prompt")),
            prompt=metadata.get("prompt"),
            gpt_description_prompt=metadata.get("gpt_description_prompt"),
            tags=metadata.get("tags"),
            type=metadata.get("type"),
            display_name=clip.get("display_name") or None,
            error_message=metadata.get("error_message")
        )

    @property
    def is_ready(self) -> bool:
        """True once audio can be streamed."""
        return self.status in (ClipStatus.STREAMING, ClipStatus.COMPLETE)

    @property
    def is_failed(self) -> bool:
        return self.status == ClipStatus.ERROR


@dataclass(frozen=True)
class SongPageMetadata:
    """
    Metadata scraped from a public song page (https://suno.com/song/<id>).

    Attributes:
        song_id: Song id from the URL.
        title: Song title (page title before " by ").
        author: Creator name (page title after " by ", without " | Suno").
        image_url: og:image content, if present.
    """
    song_id: str
    title: str | None
    author: str | None
    image_url: str | None

    def to_audio_info(self) -> AudioInfo:
        """
        AudioInfo for a song known only from its page.

        The page carries no duration or creation time, so fixed
        placeholders are used; the audio URL is the public CDN location.
        """
        return AudioInfo(
            id=self.song_id,
            status=ClipStatus.COMPLETE,
            model_name=self.author or "",
            created_at=FALLBACK_CREATED_AT,
            title=self.title,
            audio_url=SUNO_CDN_URL.format(song_id=self.song_id),
            image_url=self.image_url,
            duration_seconds=FALLBACK_DURATION_SECONDS,
            display_name=self.author
        )


@dataclass(frozen=True)
class GeneratedLyrics:
    """Result of a lyrics generation request."""
    id: str
    status: str
    title: str | None = None
    text: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "GeneratedLyrics":
        return cls(
            id=str(data.get("id") or ""),
            status=data.get("status") or "",
            title=data.get("title") or None,
            text=data.get("text") or None
        )

    @property
    def is_complete(self) -> bool:
        return self.status == "complete"


@dataclass(frozen=True)
class CreditsInfo:
    """
    Account billing summary from /api/billing/info/.

    Attributes:
        credits_left: Remaining credits (total_credits_left).
        period: Billing period identifier.
        monthly_limit: Credits granted per month.
        monthly_usage: Credits used this month.
    """
    credits_left: int
    period: str | None
    monthly_limit: int
    monthly_usage: int

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "CreditsInfo":
        return cls(
            credits_left=int(data.get("total_credits_left") or 0),
            period=data.get("period"),
            monthly_limit=int(data.get("monthly_limit") or 0),
            monthly_usage=int(data.get("monthly_usage") or 0)
        )


@dataclass
class SessionState:
    """
    Authentication state of one SunoClient.

    Attributes:
        session_id: Clerk session id, set by session bootstrap.
        bearer_token: Current JWT, set by every token renewal.
        token_renewed_at: Clock time of the last renewal.
    """
    session_id: str | None = None
    bearer_token: str | None = None
    token_renewed_at: float | None = None
