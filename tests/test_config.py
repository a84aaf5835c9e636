# tests/test_config.py
"""Test configuration loading and validation"""

from unittest.mock import patch

import pytest

from tune_resolver.core.config import load_config
from tune_resolver.core.exceptions import ConfigError


ENV_VARS = ("YOUTUBE_API_KEY", "SPOTIFY_CLIENT_ID", "SPOTIFY_CLIENT_SECRET", "SUNO_COOKIE")


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """No secrets from the real environment or a .env file"""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    with patch("tune_resolver.core.config.load_dotenv"):
        yield


def write_config(tmp_path, content):
    config_path = tmp_path / "config.yaml"
    config_path.write_text(content, encoding="utf-8")
    return config_path


class TestLoadConfig:
    """Test load_config()"""

    def test_minimal_config(self, tmp_path):
        """Only the YouTube key is required; everything else has defaults"""
        config = load_config(write_config(tmp_path, 'youtube:\n  api_key: "yt-key"\n'))

        assert config.youtube.api_key == "yt-key"
        assert config.spotify is None
        assert config.suno is None
        assert config.resolver.playlist_limit == 50
        assert config.resolver.search_concurrency == 4
        assert config.resolver.split_chapters is False
        assert config.log_directory is None

    def test_full_config(self, tmp_path):
        config = load_config(write_config(tmp_path, f"""
youtube:
  api_key: "yt-key"
spotify:
  client_id: "id"
  client_secret: "secret"
suno:
  cookie: "__client=abc"
resolver:
  playlist_limit: 20
  search_concurrency: 2
  split_chapters: true
logging:
  directory: "{tmp_path / 'logs'}"
"""))

        assert config.spotify.client_id == "id"
        assert config.suno.cookie == "__client=abc"
        assert config.resolver.playlist_limit == 20
        assert config.resolver.split_chapters is True
        assert config.log_directory == (tmp_path / "logs").resolve()

    def test_environment_overrides_file(self, tmp_path, monkeypatch):
        monkeypatch.setenv("YOUTUBE_API_KEY", "env-key")
        monkeypatch.setenv("SUNO_COOKIE", "__client=env")

        config = load_config(write_config(tmp_path, 'youtube:\n  api_key: "file-key"\n'))

        assert config.youtube.api_key == "env-key"
        assert config.suno.cookie == "__client=env"

    def test_environment_only(self, tmp_path, monkeypatch):
        """Without config.yaml in the working directory, env secrets suffice"""
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("YOUTUBE_API_KEY", "env-key")

        config = load_config()

        assert config.youtube.api_key == "env-key"

    def test_missing_youtube_key(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)

        with pytest.raises(ConfigError, match="youtube"):
            load_config()

    def test_explicit_path_must_exist(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            load_config(tmp_path / "missing.yaml")

    def test_partial_spotify_section(self, tmp_path):
        with pytest.raises(ConfigError, match="spotify.client_secret"):
            load_config(write_config(tmp_path, """
youtube:
  api_key: "yt-key"
spotify:
  client_id: "id"
"""))

    @pytest.mark.parametrize("value", ["0", "-5", "ten", "true"])
    def test_invalid_playlist_limit(self, tmp_path, value):
        with pytest.raises(ConfigError, match="playlist_limit"):
            load_config(write_config(
                tmp_path,
                f'youtube:\n  api_key: "k"\nresolver:\n  playlist_limit: {value}\n'
            ))

    def test_invalid_split_chapters(self, tmp_path):
        with pytest.raises(ConfigError, match="split_chapters"):
            load_config(write_config(
                tmp_path,
                'youtube:\n  api_key: "k"\nresolver:\n  split_chapters: "sometimes"\n'
            ))

    def test_invalid_yaml(self, tmp_path):
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_config(write_config(tmp_path, "youtube: [unclosed\n"))

    def test_section_must_be_mapping(self, tmp_path):
        with pytest.raises(ConfigError, match="must be a dictionary"):
            load_config(write_config(tmp_path, 'youtube: "just a string"\n'))

    def test_empty_file_uses_environment(self, tmp_path, monkeypatch):
        monkeypatch.setenv("YOUTUBE_API_KEY", "env-key")

        config = load_config(write_config(tmp_path, ""))

        assert config.youtube.api_key == "env-key"
        assert config.log_directory is None
