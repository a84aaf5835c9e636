"""Test configuration and fixtures"""

import asyncio
import threading
import time

import pytest

from tune_resolver.core.cache import CacheProvider


class FakeClock:
    """Manual clock; sleep() advances time instead of waiting."""

    def __init__(self, start: float = 0.0):
        self.now = start
        self.sleeps = []

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds
        await asyncio.sleep(0)


@pytest.fixture
def fake_clock():
    """Clock starting at 0 whose sleep() only advances time"""
    return FakeClock()


@pytest.fixture
def cache(fake_clock):
    """Empty cache driven by the fake clock"""
    return CacheProvider(clock=fake_clock)


@pytest.fixture
def make_video_item():
    """Factory for videos.list items"""

    def _make(
        video_id,
        title="Test Video",
        channel="Test Channel",
        duration="PT3M30S",
        description="",
        live="none"
    ):
        return {
            "id": video_id,
            "snippet": {
                "title": title,
                "channelTitle": channel,
                "description": description,
                "liveBroadcastContent": live,
                "thumbnails": {
                    "default": {"url": f"https://i.ytimg.com/vi/{video_id}/default.jpg"},
                    "medium": {"url": f"https://i.ytimg.com/vi/{video_id}/mqdefault.jpg"},
                },
            },
            "contentDetails": {"duration": duration},
        }

    return _make


@pytest.fixture
def make_clip():
    """Factory for Suno feed clips"""

    def _make(clip_id, status="queued", audio_url=None, duration=None):
        return {
            "id": clip_id,
            "title": f"Clip {clip_id}",
            "status": status,
            "model_name": "chirp-v3",
            "created_at": "2024-05-01T12:00:00Z",
            "audio_url": audio_url,
            "image_url": f"https://cdn1.suno.ai/image_{clip_id}.png",
            "metadata": {
                "prompt": "line one\n\nline two",
                "tags": "lofi",
                "duration": duration,
            },
        }

    return _make


class BlockingSearch:
    """Blocking stand-in for YTMusic.search that records peak concurrency."""

    def __init__(self, delay: float = 0.05):
        self.delay = delay
        self.active = 0
        self.peak = 0
        self.calls = 0
        self._lock = threading.Lock()

    def __call__(self, query, limit=None):
        with self._lock:
            self.active += 1
            self.calls += 1
            self.peak = max(self.peak, self.active)
            video_id = f"vid{self.calls:08d}"
        try:
            time.sleep(self.delay)
        finally:
            with self._lock:
                self.active -= 1
        return [{"resultType": "video", "videoId": video_id, "title": query}]


@pytest.fixture
def blocking_search():
    """Search backend that blocks its worker thread for a moment"""
    return BlockingSearch()
