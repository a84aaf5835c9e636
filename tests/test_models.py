# tests/test_models.py
"""Test track models and logging helpers"""

import logging
from dataclasses import replace

import pytest

from tune_resolver.core.exceptions import InvalidQueryError, ResolverError, YouTubeError
from tune_resolver.core.logger import (
    format_resolved_message,
    log_resolution_failure,
    setup_logging,
    shutdown_logging,
)
from tune_resolver.resolver.models import MediaSource, ResolutionResult, TrackDescriptor


class TestTrackDescriptor:
    """Test TrackDescriptor validation"""

    def test_defaults(self):
        track = TrackDescriptor(source=MediaSource.YOUTUBE, url="dQw4w9WgXcQ")

        assert track.title == "Unknown title"
        assert track.artist == "Unknown artist"
        assert track.length == 0
        assert track.offset == 0
        assert track.playlist is None

    def test_negative_length(self):
        with pytest.raises(ValueError):
            TrackDescriptor(source=MediaSource.YOUTUBE, url="x", length=-1)

    def test_negative_offset(self):
        with pytest.raises(ValueError):
            TrackDescriptor(source=MediaSource.YOUTUBE, url="x", offset=-5)

    def test_url_required_unless_live(self):
        with pytest.raises(ValueError):
            TrackDescriptor(source=MediaSource.HLS, url="")

        assert TrackDescriptor(source=MediaSource.HLS, url="", is_live=True).is_live

    def test_replace_revalidates(self):
        track = TrackDescriptor(source=MediaSource.YOUTUBE, url="x", length=100)

        with pytest.raises(ValueError):
            replace(track, offset=-1)


class TestResolutionResult:
    """Test ResolutionResult counters"""

    def test_complete(self):
        tracks = [TrackDescriptor(source=MediaSource.YOUTUBE, url=str(i)) for i in range(3)]

        result = ResolutionResult.complete(tracks)

        assert result.found_count == 3
        assert result.total_requested == 3
        assert not result.is_partial

    def test_partial(self):
        result = ResolutionResult(tracks=(), not_found_count=3, total_requested=15)

        assert result.found_count == 12
        assert result.is_partial

    def test_nothing_found_is_not_partial(self):
        result = ResolutionResult(tracks=(), not_found_count=4, total_requested=4)

        assert result.found_count == 0
        assert not result.is_partial


class TestExceptions:
    """Test the exception hierarchy"""

    def test_details_default(self):
        error = YouTubeError("quota", is_quota_error=True)

        assert isinstance(error, ResolverError)
        assert error.details == {}
        assert str(error) == "quota"

    def test_invalid_query_is_value_error(self):
        assert issubclass(InvalidQueryError, ValueError)


class TestLogging:
    """Test logging helpers"""

    def test_format_resolved_message(self):
        assert "12 tracks" in format_resolved_message(12, 3, 15)
        assert "12 of 15" in format_resolved_message(12, 3, 15)
        assert "found" not in format_resolved_message(1, 0, 1)
        assert "1 track" in format_resolved_message(1, 0, 1)

    def test_log_files(self, tmp_path):
        setup_logging(tmp_path)
        try:
            logger = logging.getLogger("tune_resolver.test")
            logger.info("just info")
            logger.error("something broke")
            log_resolution_failure(
                logger,
                query='"Song" "Artist"',
                reason="No video found",
                source="https://open.spotify.com/album/abc"
            )
        finally:
            shutdown_logging()

        full_log = next(tmp_path.glob("log_full_*.log")).read_text(encoding="utf-8")
        errors_log = next(tmp_path.glob("log_errors_*.log")).read_text(encoding="utf-8")
        failures = next(tmp_path.glob("resolution_failures_*.log")).read_text(encoding="utf-8")

        assert "just info" in full_log
        assert "something broke" in errors_log
        assert "just info" not in errors_log
        assert failures == (
            '"Song" "Artist"\n'
            "https://open.spotify.com/album/abc - No video found\n\n"
        )
