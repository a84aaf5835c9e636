# tests/test_suno_client.py
"""Test the Suno session, generation polling and song page scraping"""

import asyncio
from unittest.mock import AsyncMock, Mock

import pytest

from tune_resolver.core.exceptions import AuthError, NotFoundError, SunoError, UpstreamTimeoutError
from tune_resolver.suno.client import SunoClient, _clips, _split_page_title
from tune_resolver.suno.models import (
    AudioInfo,
    ClipStatus,
    CreditsInfo,
    SongPageMetadata,
    parse_lyrics,
)


SONG_PAGE_HTML = """<!DOCTYPE html>
<html>
<head>
<title>Midnight Drive by nightowl | Suno</title>
<meta property="og:image" content="https://cdn1.suno.ai/image_large_abc.jpeg">
</head>
<body><div id="root"></div></body>
</html>"""


@pytest.fixture
def suno(fake_clock):
    """Client with a cookie, a fake clock and no real HTTP"""
    return SunoClient("__client=abc", session=Mock(), clock=fake_clock, sleep=fake_clock.sleep)


@pytest.fixture
def authenticated(suno):
    """Client that already holds a session; token renewal is mocked"""
    suno.state.session_id = "sess_1"
    suno.state.bearer_token = "jwt-1"
    suno.keep_alive = AsyncMock()
    return suno


def batch(make_clip, *statuses):
    return [
        AudioInfo.from_api(make_clip(f"clip-{i}", status=status))
        for i, status in enumerate(statuses)
    ]


class TestSession:
    """Test session bootstrap and token renewal"""

    @pytest.mark.asyncio
    async def test_init_without_cookie(self):
        client = SunoClient(None, session=Mock())

        with pytest.raises(AuthError):
            await client.init()

    @pytest.mark.asyncio
    async def test_init_without_active_session(self, suno):
        suno._request = AsyncMock(return_value={"response": {"last_active_session_id": None}})

        with pytest.raises(AuthError, match="cookie"):
            await suno.init()

        assert suno.state.session_id is None

    @pytest.mark.asyncio
    async def test_init_acquires_session_and_token(self, fake_clock):
        long_wait = asyncio.Event()

        async def sleep(seconds):
            await long_wait.wait()

        client = SunoClient("__client=abc", session=Mock(), clock=fake_clock, sleep=sleep)
        client._request = AsyncMock(side_effect=[
            {"response": {"last_active_session_id": "sess_1"}},
            {"jwt": "jwt-1"},
        ])

        await client.init()

        assert client.state.session_id == "sess_1"
        assert client.state.bearer_token == "jwt-1"
        assert client.is_authenticated
        token_call = client._request.call_args_list[1]
        assert token_call.args[1].endswith("/v1/client/sessions/sess_1/tokens")

        await client.close()

    @pytest.mark.asyncio
    async def test_keep_alive_before_bootstrap(self, suno):
        with pytest.raises(AuthError):
            await suno.keep_alive()

    @pytest.mark.asyncio
    async def test_keep_alive_without_token(self, suno):
        suno.state.session_id = "sess_1"
        suno._request = AsyncMock(return_value={"object": "token"})

        with pytest.raises(AuthError):
            await suno.keep_alive()

    @pytest.mark.asyncio
    async def test_rejected_call_rebootstraps_once(self, authenticated):
        """A 401 triggers one re-bootstrap and one retry"""
        authenticated._bootstrap = AsyncMock()
        authenticated._request = AsyncMock(side_effect=[
            AuthError("rejected"),
            {"total_credits_left": 40, "period": "2024-05", "monthly_limit": 50, "monthly_usage": 10},
        ])

        credits = await authenticated.get_credits()

        assert credits.credits_left == 40
        authenticated._bootstrap.assert_awaited_once()
        assert authenticated._request.call_count == 2

    @pytest.mark.asyncio
    async def test_second_rejection_raises(self, authenticated):
        authenticated._bootstrap = AsyncMock()
        authenticated._request = AsyncMock(side_effect=AuthError("rejected"))

        with pytest.raises(AuthError):
            await authenticated.get_credits()

        authenticated._bootstrap.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_privileged_call_without_session(self, suno):
        suno._request = AsyncMock()

        with pytest.raises(AuthError):
            await suno.get_credits()

        suno._request.assert_not_called()


class TestWaitForClips:
    """Test generation polling"""

    @pytest.mark.asyncio
    async def test_returns_when_all_ready(self, authenticated, make_clip, fake_clock):
        """Streaming and complete clips both count as ready"""
        initial = batch(make_clip, "queued", "queued")
        authenticated.get = AsyncMock(side_effect=[
            batch(make_clip, "queued", "queued"),
            batch(make_clip, "complete", "streaming"),
        ])

        clips = await authenticated.wait_for_clips(initial)

        assert [c.status for c in clips] == [ClipStatus.COMPLETE, ClipStatus.STREAMING]
        assert authenticated.get.call_count == 2
        authenticated.get.assert_called_with(["clip-0", "clip-1"])
        assert fake_clock.sleeps[0] == 5
        assert 3 <= fake_clock.sleeps[1] <= 6

    @pytest.mark.asyncio
    async def test_budget_expiry_returns_last_batch(self, authenticated, make_clip, fake_clock):
        """Polling stops at the budget and returns the partial batch"""
        initial = batch(make_clip, "queued", "queued")
        authenticated.get = AsyncMock(return_value=batch(make_clip, "complete", "queued"))

        clips = await authenticated.wait_for_clips(initial, budget=100)

        assert [c.status for c in clips] == [ClipStatus.COMPLETE, ClipStatus.QUEUED]
        assert 12 <= authenticated.get.call_count <= 24
        assert fake_clock.now == pytest.approx(100)

    @pytest.mark.asyncio
    async def test_all_failed_returns_early(self, authenticated, make_clip):
        initial = batch(make_clip, "queued", "queued")
        authenticated.get = AsyncMock(return_value=batch(make_clip, "error", "error"))

        clips = await authenticated.wait_for_clips(initial)

        assert all(c.is_failed for c in clips)
        assert authenticated.get.call_count == 1

    @pytest.mark.asyncio
    async def test_mixed_failure_keeps_polling(self, authenticated, make_clip):
        initial = batch(make_clip, "queued", "queued")
        authenticated.get = AsyncMock(side_effect=[
            batch(make_clip, "error", "queued"),
            batch(make_clip, "error", "complete"),
            batch(make_clip, "complete", "complete"),
        ])

        clips = await authenticated.wait_for_clips(initial)

        assert all(c.is_ready for c in clips)
        assert authenticated.get.call_count == 3

    @pytest.mark.asyncio
    async def test_feed_timeout_is_retried(self, authenticated, make_clip):
        initial = batch(make_clip, "queued")
        authenticated.get = AsyncMock(side_effect=[
            UpstreamTimeoutError("feed timed out"),
            batch(make_clip, "complete"),
        ])

        clips = await authenticated.wait_for_clips(initial)

        assert clips[0].is_ready
        assert authenticated.get.call_count == 2

    @pytest.mark.asyncio
    async def test_cancel_returns_initial_batch(self, authenticated, make_clip):
        initial = batch(make_clip, "queued", "queued")
        authenticated.get = AsyncMock()
        cancel = asyncio.Event()
        cancel.set()

        clips = await authenticated.wait_for_clips(initial, cancel=cancel)

        assert clips == initial
        authenticated.get.assert_not_called()

    @pytest.mark.asyncio
    async def test_cancel_interrupts_poll_interval(self, fake_clock, make_clip):
        """Setting cancel ends a pending pause instead of waiting it out"""

        async def sleep(seconds):
            fake_clock.sleeps.append(seconds)
            if seconds != 5:
                await asyncio.Event().wait()

        client = SunoClient("__client=abc", session=Mock(), clock=fake_clock, sleep=sleep)
        client.state.session_id = "sess_1"
        client.keep_alive = AsyncMock()
        polled = batch(make_clip, "complete", "queued")
        client.get = AsyncMock(return_value=polled)
        cancel = asyncio.Event()

        task = asyncio.create_task(
            client.wait_for_clips(batch(make_clip, "queued", "queued"), cancel=cancel)
        )
        while len(fake_clock.sleeps) < 2:
            await asyncio.sleep(0)
        cancel.set()

        clips = await asyncio.wait_for(task, timeout=1)

        assert clips == polled
        assert client.get.call_count == 1
        client.keep_alive.assert_not_called()

    @pytest.mark.asyncio
    async def test_token_renewed_between_polls(self, authenticated, make_clip, fake_clock):
        initial = batch(make_clip, "queued")
        authenticated.get = AsyncMock(side_effect=[
            batch(make_clip, "queued"),
            batch(make_clip, "complete"),
        ])

        await authenticated.wait_for_clips(initial)

        authenticated.keep_alive.assert_awaited_once_with()
        assert 1 <= fake_clock.sleeps[2] <= 2


class TestGeneration:
    """Test generation requests"""

    @pytest.mark.asyncio
    async def test_generate_payload(self, authenticated, make_clip):
        authenticated._privileged_request = AsyncMock(return_value={
            "clips": [make_clip("clip-0"), make_clip("clip-1")]
        })

        clips = await authenticated.generate("a calm lofi beat", make_instrumental=True)

        assert [c.id for c in clips] == ["clip-0", "clip-1"]
        args, kwargs = authenticated._privileged_request.call_args
        assert args == ("POST", "/api/generate/v2/")
        assert kwargs["json"] == {
            "make_instrumental": True,
            "mv": "chirp-v3-5",
            "prompt": "",
            "gpt_description_prompt": "a calm lofi beat",
        }

    @pytest.mark.asyncio
    async def test_custom_generate_payload(self, authenticated, make_clip):
        authenticated._privileged_request = AsyncMock(return_value=[make_clip("clip-0")])

        await authenticated.custom_generate("[Verse]\nla la", tags="pop", title="Song")

        payload = authenticated._privileged_request.call_args.kwargs["json"]
        assert payload["prompt"] == "[Verse]\nla la"
        assert payload["tags"] == "pop"
        assert payload["title"] == "Song"
        assert "gpt_description_prompt" not in payload

    @pytest.mark.asyncio
    async def test_generate_and_wait(self, authenticated, make_clip):
        authenticated._privileged_request = AsyncMock(return_value=[make_clip("clip-0")])
        authenticated.wait_for_clips = AsyncMock(return_value=batch(make_clip, "complete"))

        clips = await authenticated.generate("beat", wait_audio=True)

        assert clips[0].is_ready
        authenticated.wait_for_clips.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_generate_lyrics_polls(self, authenticated, fake_clock):
        authenticated._privileged_request = AsyncMock(side_effect=[
            {"id": "lyr-1", "status": "running"},
            {"id": "lyr-1", "status": "running"},
            {"id": "lyr-1", "status": "complete", "title": "Rain", "text": "drops"},
        ])

        lyrics = await authenticated.generate_lyrics("rain")

        assert lyrics.is_complete
        assert lyrics.text == "drops"
        assert fake_clock.sleeps == [2]

    @pytest.mark.asyncio
    async def test_generate_lyrics_timeout(self, authenticated):
        authenticated._privileged_request = AsyncMock(return_value={"id": "lyr-1", "status": "running"})

        with pytest.raises(UpstreamTimeoutError):
            await authenticated.generate_lyrics("rain")

    @pytest.mark.asyncio
    async def test_feed_ids(self, authenticated, make_clip):
        authenticated._privileged_request = AsyncMock(return_value=[make_clip("a"), make_clip("b")])

        clips = await authenticated.get(["a", "b"])

        assert [c.id for c in clips] == ["a", "b"]
        kwargs = authenticated._privileged_request.call_args.kwargs
        assert kwargs["params"] == {"ids": "a,b"}
        assert kwargs["timeout"] == 3

    @pytest.mark.asyncio
    async def test_extend_audio_payload(self, authenticated, make_clip):
        authenticated._privileged_request = AsyncMock(return_value={"clips": [make_clip("ext-0")]})

        clips = await authenticated.extend_audio("clip-0", prompt="[Bridge]", continue_at="00:30")

        assert [c.id for c in clips] == ["ext-0"]
        payload = authenticated._privileged_request.call_args.kwargs["json"]
        assert payload["continue_clip_id"] == "clip-0"
        assert payload["continue_at"] == "00:30"
        assert payload["prompt"] == "[Bridge]"

    @pytest.mark.asyncio
    async def test_concatenate(self, authenticated, make_clip):
        authenticated._privileged_request = AsyncMock(return_value=make_clip("full", status="complete"))

        clip = await authenticated.concatenate("ext-0")

        assert clip.id == "full"
        args, kwargs = authenticated._privileged_request.call_args
        assert args == ("POST", "/api/generate/concat/v2/")
        assert kwargs["json"] == {"clip_id": "ext-0"}

    @pytest.mark.asyncio
    async def test_get_clip(self, authenticated, make_clip):
        authenticated._privileged_request = AsyncMock(return_value=make_clip("clip-7"))

        clip = await authenticated.get_clip("clip-7")

        assert clip.id == "clip-7"
        authenticated._privileged_request.assert_awaited_once_with("GET", "/api/clip/clip-7")


class TestSongPage:
    """Test public song page scraping"""

    @pytest.mark.asyncio
    async def test_metadata(self, suno):
        suno._request = AsyncMock(return_value=SONG_PAGE_HTML)

        metadata = await suno.get_song_page_metadata("abc")

        assert metadata == SongPageMetadata(
            song_id="abc",
            title="Midnight Drive",
            author="nightowl",
            image_url="https://cdn1.suno.ai/image_large_abc.jpeg"
        )
        assert suno._request.call_args.kwargs["authenticated"] is False

    @pytest.mark.asyncio
    async def test_missing_page(self, suno):
        suno._request = AsyncMock(side_effect=SunoError("gone", status_code=404))

        with pytest.raises(NotFoundError):
            await suno.get_song_page_metadata("abc")

    @pytest.mark.asyncio
    async def test_other_errors_propagate(self, suno):
        suno._request = AsyncMock(side_effect=SunoError("boom", status_code=500))

        with pytest.raises(SunoError):
            await suno.get_song_page_metadata("abc")

    def test_split_page_title(self):
        assert _split_page_title("Midnight Drive by nightowl | Suno") == ("Midnight Drive", "nightowl")
        assert _split_page_title("Stand by me by someone | Suno") == ("Stand by me", "someone")
        assert _split_page_title("Suno") == ("Suno", None)
        assert _split_page_title("") == (None, None)

    def test_to_audio_info(self):
        info = SongPageMetadata("abc", "Midnight Drive", "nightowl", None).to_audio_info()

        assert info.audio_url == "https://cdn1.suno.ai/abc.mp3"
        assert info.duration_seconds == 120
        assert info.display_name == "nightowl"
        assert info.is_ready


class TestModels:
    """Test Suno response parsing"""

    def test_audio_info_flattens_metadata(self, make_clip):
        info = AudioInfo.from_api(make_clip("abc", status="complete",
                                            audio_url="https://cdn1.suno.ai/abc.mp3", duration=95.5))

        assert info.status == ClipStatus.COMPLETE
        assert info.duration_seconds == 95.5
        assert info.tags == "lofi"
        assert info.lyric == "line one\nline two"

    def test_unknown_status_is_queued(self, make_clip):
        info = AudioInfo.from_api(make_clip("abc", status="submitted"))

        assert info.status == ClipStatus.QUEUED
        assert not info.is_ready
        assert not info.is_failed

    def test_parse_lyrics(self):
        assert parse_lyrics("a\n\n  \nb") == "a\nb"
        assert parse_lyrics(None) == ""

    def test_credits(self):
        credits = CreditsInfo.from_api({"total_credits_left": "25", "monthly_limit": 50})

        assert credits.credits_left == 25
        assert credits.monthly_usage == 0

    def test_clips_shapes(self):
        assert _clips([{"id": "a"}, "junk"]) == [{"id": "a"}]
        assert _clips({"clips": [{"id": "b"}]}) == [{"id": "b"}]
        assert _clips({"detail": "error"}) == []
