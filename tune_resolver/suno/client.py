"""
Suno API client for tune-resolver.

Talks to the private Suno studio API with the session of a logged-in
account (its browser cookie), and scrapes public song pages.

Authentication Flow:
    1. Session bootstrap: GET clerk /v1/client with the account cookie.
       The response names the last active session; without one the
       cookie is stale and AuthError is raised.
    2. Token renewal: POST clerk /v1/client/sessions/{sid}/tokens returns
       a short-lived JWT sent as "Authorization: Bearer" on studio calls.
    3. The token is renewed before every privileged call and, in the
       background, every token_refresh_interval seconds.
    4. A privileged call answered with 401 triggers one full
       re-bootstrap and one retry. A second failure raises AuthError.

Generation Polling:
    generate(..., wait_audio=True) waits 5s, then polls the feed every
    3-6s (random) for up to 100s, renewing the token between polls. It
    returns as soon as every clip is streaming/complete, or every clip
    has failed. When the budget runs out, or the cancel event is set,
    the last observed batch is returned; callers check each clip's status.

Usage:
    async with SunoClient(cookie) as suno:
        await suno.init()
        clips = await suno.generate("a calm lofi beat", wait_audio=True)
        credits = await suno.get_credits()
"""

import asyncio
import random
import time
from typing import Any, Awaitable, Callable

import aiohttp
from bs4 import BeautifulSoup

from tune_resolver.core.exceptions import (
    AuthError,
    NotFoundError,
    SunoError,
    UpstreamTimeoutError,
)
from tune_resolver.core.logger import get_logger
from tune_resolver.suno.models import (
    AudioInfo,
    CreditsInfo,
    GeneratedLyrics,
    SessionState,
    SongPageMetadata,
)


logger = get_logger(__name__)


SUNO_BASE_URL = "https://studio-api.suno.ai"
CLERK_BASE_URL = "https://clerk.suno.com"
CLERK_JS_VERSION = "4.73.3"
SONG_PAGE_URL = "https://suno.com/song/{song_id}"

DEFAULT_MODEL = "chirp-v3-5"

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
)

# Request timeouts (seconds)
REQUEST_TIMEOUT_SECONDS = 10
FEED_TIMEOUT_SECONDS = 3

# Generation polling (seconds)
INITIAL_GENERATION_WAIT = 5
GENERATION_BUDGET_SECONDS = 100
POLL_INTERVAL_MIN = 3
POLL_INTERVAL_MAX = 6

# Lyrics polling (seconds)
LYRICS_POLL_INTERVAL = 2
LYRICS_BUDGET_SECONDS = 60

DEFAULT_TOKEN_REFRESH_INTERVAL = 50


class SunoClient:
    """
    Session-authenticated Suno client.

    States:
        Unauthenticated -> (bootstrap) SessionAcquired -> (renewal)
        TokenActive, renewed again before every privileged call.

    Attributes:
        _cookie: Account cookie sent to clerk and the studio API. None
                 limits the client to public song pages.
        _state: SessionState (session id, bearer token, renewal time).
        _session: aiohttp session, created on first request if not given.
        _owns_session: True if close() must close _session.
        _token_refresh_interval: Seconds between background renewals.
        _refresh_task: Background renewal task, started by init().
        _clock: Monotonic time source, injectable for tests.
        _sleep: Async sleep, injectable for tests.
    """

    def __init__(
        self,
        cookie: str | None,
        session: aiohttp.ClientSession | None = None,
        token_refresh_interval: float = DEFAULT_TOKEN_REFRESH_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep
    ) -> None:
        self._cookie = cookie
        self._state = SessionState()
        self._session = session
        self._owns_session = session is None
        self._token_refresh_interval = token_refresh_interval
        self._refresh_task: asyncio.Task | None = None
        self._clock = clock
        self._sleep = sleep

    async def __aenter__(self) -> "SunoClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_authenticated(self) -> bool:
        return self._state.session_id is not None and self._state.bearer_token is not None

    # =========================================================================
    # Session Lifecycle
    # =========================================================================

    async def init(self) -> "SunoClient":
        """
        Bootstrap the session, obtain a token and start background renewal.

        Raises:
            AuthError: If the cookie has no active session.
        """
        if not self._cookie:
            raise AuthError("No Suno cookie configured (suno.cookie or SUNO_COOKIE)")
        await self._bootstrap()
        if self._refresh_task is None or self._refresh_task.done():
            self._refresh_task = asyncio.create_task(self._refresh_loop())
        return self

    async def keep_alive(self, wait: bool = False) -> None:
        """
        Renew the session token.

        Args:
            wait: Pause 1-2s after renewal, giving the new token time to
                  become valid upstream.

        Raises:
            AuthError: If no session has been bootstrapped, or the
                       renewal returned no token.
        """
        session_id = self._state.session_id
        if session_id is None:
            raise AuthError("Suno session id is not set. Cannot renew token.")

        data = await self._request(
            "POST",
            f"{CLERK_BASE_URL}/v1/client/sessions/{session_id}/tokens",
            params={"_clerk_js_version": CLERK_JS_VERSION},
            authenticated=False
        )
        token = data.get("jwt") if isinstance(data, dict) else None
        if not token:
            raise AuthError(
                "Suno token renewal returned no token",
                details={"session_id": session_id}
            )

        self._state.bearer_token = token
        self._state.token_renewed_at = self._clock()
        logger.debug("Suno session token renewed")

        if wait:
            await self._sleep(random.uniform(1, 2))

    async def close(self) -> None:
        """Cancel background renewal and close an owned HTTP session."""
        if self._refresh_task is not None:
            self._refresh_task.cancel()
            try:
                await self._refresh_task
            except asyncio.CancelledError:
                pass
            self._refresh_task = None

        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None

    async def _bootstrap(self) -> None:
        data = await self._request(
            "GET",
            f"{CLERK_BASE_URL}/v1/client",
            params={"_clerk_js_version": CLERK_JS_VERSION},
            authenticated=False
        )
        response = data.get("response") if isinstance(data, dict) else None
        session_id = response.get("last_active_session_id") if isinstance(response, dict) else None

        if not session_id:
            raise AuthError(
                "Failed to get a Suno session id. The suno.cookie value "
                "may need to be updated."
            )

        self._state.session_id = session_id
        await self.keep_alive()

    async def _refresh_loop(self) -> None:
        while True:
            await self._sleep(self._token_refresh_interval)
            try:
                await self.keep_alive()
            except (AuthError, SunoError, UpstreamTimeoutError) as e:
                logger.warning(f"Background Suno token renewal failed: {e.message}")

    # =========================================================================
    # Generation
    # =========================================================================

    async def generate(
        self,
        prompt: str,
        make_instrumental: bool = False,
        model: str | None = None,
        wait_audio: bool = False,
        cancel: asyncio.Event | None = None
    ) -> list[AudioInfo]:
        """
        Generate songs from a description prompt.

        Args:
            prompt: Description of the song ("an upbeat synthwave track").
            make_instrumental: Generate without vocals.
            model: Model version, defaults to DEFAULT_MODEL.
            wait_audio: Poll until the audio is ready (see module docstring).
            cancel: Event that stops polling early when set.

        Returns:
            The generated clips. With wait_audio, check each clip's status:
            a clip can still be queued when the polling budget ran out.
        """
        return await self._generate_songs(
            prompt,
            is_custom=False,
            make_instrumental=make_instrumental,
            model=model,
            wait_audio=wait_audio,
            cancel=cancel
        )

    async def custom_generate(
        self,
        prompt: str,
        tags: str,
        title: str,
        make_instrumental: bool = False,
        model: str | None = None,
        wait_audio: bool = False,
        cancel: asyncio.Event | None = None
    ) -> list[AudioInfo]:
        """Generate songs from explicit lyrics, style tags and title."""
        return await self._generate_songs(
            prompt,
            is_custom=True,
            tags=tags,
            title=title,
            make_instrumental=make_instrumental,
            model=model,
            wait_audio=wait_audio,
            cancel=cancel
        )

    async def _generate_songs(
        self,
        prompt: str,
        is_custom: bool,
        tags: str | None = None,
        title: str | None = None,
        make_instrumental: bool = False,
        model: str | None = None,
        wait_audio: bool = False,
        cancel: asyncio.Event | None = None
    ) -> list[AudioInfo]:
        payload: dict[str, Any] = {
            "make_instrumental": bool(make_instrumental),
            "mv": model or DEFAULT_MODEL,
            "prompt": "",
        }
        if is_custom:
            payload["tags"] = tags
            payload["title"] = title
            payload["prompt"] = prompt
        else:
            payload["gpt_description_prompt"] = prompt

        started = self._clock()
        data = await self._privileged_request(
            "POST",
            "/api/generate/v2/",
            json=payload,
            timeout=REQUEST_TIMEOUT_SECONDS
        )
        clips = [AudioInfo.from_api(clip) for clip in _clips(data)]
        logger.info(f"Suno generation submitted: {', '.join(c.id for c in clips)}")

        if wait_audio:
            clips = await self.wait_for_clips(clips, cancel=cancel)
            logger.debug(f"Suno generation waited {self._clock() - started:.1f}s")

        return clips

    async def wait_for_clips(
        self,
        clips: list[AudioInfo],
        budget: float = GENERATION_BUDGET_SECONDS,
        cancel: asyncio.Event | None = None
    ) -> list[AudioInfo]:
        """
        Poll the feed until the clips are ready, failed, or the budget ends.

        Args:
            clips: Clips as returned by the generate endpoint.
            budget: Polling budget in seconds, counted from the call.
            cancel: Event that stops polling early when set.

        Returns:
            The first batch in which every clip is ready or every clip
            failed; otherwise the last observed batch.
        """
        song_ids = [clip.id for clip in clips]
        deadline = self._clock() + budget
        last_batch = clips

        await self._pause(INITIAL_GENERATION_WAIT, deadline, cancel)

        while self._clock() < deadline:
            if cancel is not None and cancel.is_set():
                logger.info("Suno polling cancelled; returning last observed status")
                return last_batch

            try:
                batch = await self.get(song_ids)
            except UpstreamTimeoutError:
                logger.warning("Suno feed timed out while polling, retrying")
                batch = []

            if batch:
                if all(a.is_ready for a in batch) or all(a.is_failed for a in batch):
                    return batch
                last_batch = batch

            await self._pause(random.uniform(POLL_INTERVAL_MIN, POLL_INTERVAL_MAX), deadline, cancel)
            if self._clock() >= deadline or (cancel is not None and cancel.is_set()):
                continue

            # The renewed token needs a moment before upstream accepts it
            await self.keep_alive()
            await self._pause(random.uniform(1, 2), deadline, cancel)

        logger.warning(
            f"Suno generation not finished after {budget:.0f}s; "
            f"returning last observed status for {len(last_batch)} clips"
        )
        return last_batch

    async def concatenate(self, clip_id: str) -> AudioInfo:
        """Generate the whole song from an extended clip."""
        data = await self._privileged_request(
            "POST",
            "/api/generate/concat/v2/",
            json={"clip_id": clip_id},
            timeout=REQUEST_TIMEOUT_SECONDS
        )
        return AudioInfo.from_api(data)

    async def extend_audio(
        self,
        audio_id: str,
        prompt: str = "",
        continue_at: str = "0",
        tags: str = "",
        title: str = "",
        model: str | None = None
    ) -> list[AudioInfo]:
        """
        Extend an existing clip.

        Args:
            audio_id: Clip to extend.
            prompt: Lyrics for the extension.
            continue_at: Where to continue from ("00:30"); "0" means the end.
            tags: Style of music.
            title: Title of the extended song.
            model: Model version, defaults to DEFAULT_MODEL.
        """
        data = await self._privileged_request(
            "POST",
            "/api/generate/v2/",
            json={
                "continue_clip_id": audio_id,
                "continue_at": continue_at,
                "mv": model or DEFAULT_MODEL,
                "prompt": prompt,
                "tags": tags,
                "title": title,
            },
            timeout=REQUEST_TIMEOUT_SECONDS
        )
        return [AudioInfo.from_api(clip) for clip in _clips(data)]

    async def generate_lyrics(self, prompt: str) -> GeneratedLyrics:
        """
        Generate lyrics and wait for them.

        Raises:
            UpstreamTimeoutError: If the lyrics are not complete within
                                  LYRICS_BUDGET_SECONDS.
        """
        data = await self._privileged_request(
            "POST",
            "/api/generate/lyrics/",
            json={"prompt": prompt}
        )
        generate_id = data.get("id") if isinstance(data, dict) else None
        if not generate_id:
            raise SunoError("Lyrics generation returned no id", details={"prompt": prompt})

        deadline = self._clock() + LYRICS_BUDGET_SECONDS
        while True:
            lyrics = GeneratedLyrics.from_api(
                await self._privileged_request("GET", f"/api/generate/lyrics/{generate_id}")
            )
            if lyrics.is_complete:
                return lyrics
            if self._clock() >= deadline:
                raise UpstreamTimeoutError(
                    "Lyrics generation did not complete in time",
                    details={"id": generate_id, "status": lyrics.status}
                )
            await self._sleep(LYRICS_POLL_INTERVAL)

    # =========================================================================
    # Lookups
    # =========================================================================

    async def get(self, song_ids: list[str] | None = None) -> list[AudioInfo]:
        """
        Get clips from the account feed.

        Args:
            song_ids: Clip ids to fetch; None returns the latest feed page.

        Raises:
            UpstreamTimeoutError: If the feed did not answer within 3s.
        """
        params = {"ids": ",".join(song_ids)} if song_ids else None
        data = await self._privileged_request(
            "GET",
            "/api/feed/",
            params=params,
            timeout=FEED_TIMEOUT_SECONDS
        )
        return [AudioInfo.from_api(clip) for clip in _clips(data)]

    async def get_clip(self, clip_id: str) -> AudioInfo:
        data = await self._privileged_request("GET", f"/api/clip/{clip_id}")
        return AudioInfo.from_api(data)

    async def get_credits(self) -> CreditsInfo:
        data = await self._privileged_request("GET", "/api/billing/info/")
        return CreditsInfo.from_api(data)

    async def get_song_page_metadata(self, song_id: str) -> SongPageMetadata:
        """
        Scrape title, author and cover image from a public song page.

        Needs no authentication.

        Raises:
            NotFoundError: If the page does not exist.
            SunoError: If the page could not be fetched.
        """
        url = SONG_PAGE_URL.format(song_id=song_id)
        try:
            html = await self._request("GET", url, authenticated=False, as_text=True)
        except SunoError as e:
            if e.status_code == 404:
                raise NotFoundError("Suno song not found", details={"song_id": song_id}) from e
            raise

        soup = BeautifulSoup(html, "html.parser")
        raw_title = soup.title.get_text(strip=True) if soup.title else ""
        title, author = _split_page_title(raw_title)

        image = soup.find("meta", attrs={"property": "og:image"})
        image_url = image.get("content") if image else None

        return SongPageMetadata(
            song_id=song_id,
            title=title,
            author=author,
            image_url=image_url or None
        )

    async def _pause(
        self,
        seconds: float,
        deadline: float,
        cancel: asyncio.Event | None
    ) -> None:
        """Sleep, ending early at the deadline or when cancel is set."""
        seconds = min(seconds, deadline - self._clock())
        if seconds <= 0:
            return
        if cancel is None:
            await self._sleep(seconds)
            return

        sleeper = asyncio.ensure_future(self._sleep(seconds))
        cancelled = asyncio.ensure_future(cancel.wait())
        try:
            await asyncio.wait({sleeper, cancelled}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            sleeper.cancel()
            cancelled.cancel()

    # =========================================================================
    # HTTP
    # =========================================================================

    async def _privileged_request(self, method: str, path: str, **kwargs: Any) -> Any:
        """
        Renew the token, then call the studio API.

        A 401 (or a failed renewal) on an initialized client causes one
        re-bootstrap and one retry.
        """
        try:
            await self.keep_alive()
            return await self._request(method, SUNO_BASE_URL + path, **kwargs)
        except AuthError:
            if self._state.session_id is None:
                raise
            logger.warning("Suno rejected the session, re-authenticating")
            self._state.bearer_token = None
            await self._bootstrap()
            return await self._request(method, SUNO_BASE_URL + path, **kwargs)

    async def _request(
        self,
        method: str,
        url: str,
        json: Any = None,
        params: dict[str, str] | None = None,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
        authenticated: bool = True,
        as_text: bool = False
    ) -> Any:
        headers = {"User-Agent": USER_AGENT}
        if self._cookie and (authenticated or url.startswith(CLERK_BASE_URL)):
            headers["Cookie"] = self._cookie
        if authenticated and self._state.bearer_token:
            headers["Authorization"] = f"Bearer {self._state.bearer_token}"

        if self._session is None:
            self._session = aiohttp.ClientSession()

        try:
            async with self._session.request(
                method,
                url,
                json=json,
                params=params,
                headers=headers,
                timeout=aiohttp.ClientTimeout(total=timeout)
            ) as response:
                if response.status == 401:
                    raise AuthError(
                        "Suno rejected the credentials",
                        details={"url": url, "status": 401}
                    )
                if response.status >= 400:
                    body = await response.text()
                    raise SunoError(
                        f"Suno request failed (HTTP {response.status})",
                        details={"url": url, "body": body[:500]},
                        status_code=response.status
                    )
                if as_text:
                    return await response.text()
                return await response.json(content_type=None)
        except asyncio.TimeoutError as e:
            raise UpstreamTimeoutError(
                f"Suno request timed out after {timeout}s",
                details={"url": url}
            ) from e
        except aiohttp.ClientError as e:
            raise SunoError(
                f"Suno request failed: {e}",
                details={"url": url, "original_error": str(e)}
            ) from e


def _clips(data: Any) -> list[dict[str, Any]]:
    """Clip list of a feed/generate response (bare list or {"clips": [...]})."""
    if isinstance(data, dict):
        data = data.get("clips")
    if not isinstance(data, list):
        return []
    return [clip for clip in data if isinstance(clip, dict)]


def _split_page_title(raw_title: str) -> tuple[str | None, str | None]:
    """
    Split a song page title into (title, author).

    Example:
        _split_page_title("Midnight Drive by someone | Suno")
        # ("Midnight Drive", "someone")
    """
    text = raw_title.strip()
    if text.endswith("| Suno"):
        text = text[: -len("| Suno")].strip()

    title, separator, author = text.rpartition(" by ")
    if not separator:
        return (text or None), None
    return (title.strip() or None), (author.strip() or None)
