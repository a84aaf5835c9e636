# tests/test_cli.py
"""Test the command-line interface"""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from click.testing import CliRunner

from tune_resolver.cli import cli
from tune_resolver.core.config import Config, ResolverConfig, YouTubeConfig
from tune_resolver.core.exceptions import AuthError, ConfigError, NotFoundError
from tune_resolver.resolver.models import MediaSource, ResolutionResult, TrackDescriptor


@pytest.fixture
def config():
    return Config(
        youtube=YouTubeConfig(api_key="yt-key"),
        spotify=None,
        suno=None,
        resolver=ResolverConfig()
    )


@pytest.fixture
def resolver():
    mock = MagicMock()
    mock.__aenter__ = AsyncMock(return_value=mock)
    mock.__aexit__ = AsyncMock(return_value=None)
    mock.resolve = AsyncMock()
    return mock


def invoke(args, config, resolver):
    runner = CliRunner()
    with patch("tune_resolver.cli.load_config", return_value=config), \
            patch("tune_resolver.cli.build_resolver", AsyncMock(return_value=resolver)):
        return runner.invoke(cli, args)


class TestResolveCommand:
    """Test `tune-resolver resolve`"""

    def test_prints_tracks(self, config, resolver):
        resolver.resolve.return_value = ResolutionResult(
            tracks=(
                TrackDescriptor(source=MediaSource.YOUTUBE, url="a", title="Intro",
                                artist="Band", length=180),
                TrackDescriptor(source=MediaSource.YOUTUBE, url="a", title="Outro",
                                artist="Band", length=60, offset=180),
            ),
            not_found_count=1,
            total_requested=3
        )

        result = invoke(["resolve", "some album"], config, resolver)

        assert result.exit_code == 0
        assert "1. Intro - Band [3:00]" in result.output
        assert "2. Outro - Band [1:00] @ 3:00" in result.output
        assert "2 of 3" in result.output
        resolver.resolve.assert_awaited_once_with("some album", split_chapters=False, playlist_limit=None)

    def test_json_output(self, config, resolver):
        resolver.resolve.return_value = ResolutionResult.complete([
            TrackDescriptor(source=MediaSource.HLS, url="https://radio.example/live", is_live=True)
        ])

        result = invoke(["resolve", "https://radio.example/live", "--json"], config, resolver)

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["tracks"][0]["source"] == "hls"
        assert data["tracks"][0]["is_live"] is True
        assert data["total_requested"] == 1

    def test_split_and_limit_options(self, config, resolver):
        resolver.resolve.return_value = ResolutionResult()

        invoke(["resolve", "query", "--split", "--limit", "5"], config, resolver)

        resolver.resolve.assert_awaited_once_with("query", split_chapters=True, playlist_limit=5)

    def test_limit_must_be_positive(self, config, resolver):
        result = invoke(["resolve", "query", "--limit", "0"], config, resolver)

        assert result.exit_code == 2
        resolver.resolve.assert_not_called()

    @pytest.mark.parametrize("error, exit_code", [
        (NotFoundError("No video found"), 2),
        (AuthError("token rejected"), 3),
        (ConfigError("Spotify is not configured"), 1),
    ])
    def test_error_exit_codes(self, config, resolver, error, exit_code):
        resolver.resolve.side_effect = error

        result = invoke(["resolve", "query"], config, resolver)

        assert result.exit_code == exit_code

    def test_invalid_configuration(self, resolver):
        runner = CliRunner()
        with patch("tune_resolver.cli.load_config", side_effect=ConfigError("Missing youtube")):
            result = runner.invoke(cli, ["resolve", "query"])

        assert result.exit_code == 1
        assert "Configuration error: Missing youtube" in result.output


class TestSunoCommands:
    """Test the Suno commands"""

    def test_suno_not_configured(self, config, resolver):
        result = invoke(["suno-credits"], config, resolver)

        assert result.exit_code == 1
        assert "Suno is not configured" in result.output
