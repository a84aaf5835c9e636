"""
Spotify client-credentials token lifecycle.

SpotifyTokenManager obtains an application access token with the
client-credentials grant and keeps it fresh from a background task.

Lifecycle:
    1. start(): first grant (up to 5 attempts, exponential backoff with
       jitter). Raises AuthError if every attempt fails.
    2. A background task sleeps for half of the reported expires_in,
       then repeats the grant.
    3. If a renewal exhausts its attempts, the failure is logged and
       renewal stops. The current token stays usable until it expires;
       after that access_token raises AuthError.
    4. stop(): cancels the background task.

Usage:
    tokens = SpotifyTokenManager(client_id, client_secret)
    await tokens.start()
    token = tokens.access_token
    ...
    await tokens.stop()
"""

import asyncio
import random
import time
from typing import Any, Awaitable, Callable

from spotipy.oauth2 import SpotifyClientCredentials

from tune_resolver.core.exceptions import AuthError
from tune_resolver.core.logger import get_logger


logger = get_logger(__name__)


# Attempts per grant before giving up
MAX_GRANT_ATTEMPTS = 5

# Base delay between attempts (seconds), doubled on every attempt
GRANT_RETRY_DELAY_BASE = 1.0

GRANT_RETRY_DELAY_MAX = 30.0

# Jitter factor (±30%) applied to every retry delay
GRANT_RETRY_JITTER_FACTOR = 0.3


class SpotifyTokenManager:
    """
    Owns the Spotify application token and its renewal task.

    Attributes:
        _credentials: spotipy SpotifyClientCredentials used for the grant.
        _token: Current access token, or None.
        _expires_at: Clock time at which _token expires.
        _refresh_task: Background renewal task, or None.
        _clock: Time source (time.time), injectable for tests.
        _sleep: Async sleep, injectable for tests.
    """

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        credentials: SpotifyClientCredentials | None = None,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep
    ) -> None:
        self._credentials = credentials or SpotifyClientCredentials(
            client_id=client_id,
            client_secret=client_secret
        )
        self._token: str | None = None
        self._expires_at = 0.0
        self._refresh_task: asyncio.Task | None = None
        self._clock = clock
        self._sleep = sleep

    @property
    def access_token(self) -> str:
        """
        The current access token.

        Raises:
            AuthError: If no grant succeeded yet, or the token expired
                       and could not be renewed.
        """
        if self._token is None or self._clock() >= self._expires_at:
            raise AuthError(
                "No valid Spotify access token. Check spotify.client_id "
                "and spotify.client_secret.",
                details={"expires_at": self._expires_at}
            )
        return self._token

    @property
    def is_running(self) -> bool:
        return self._refresh_task is not None and not self._refresh_task.done()

    async def start(self) -> None:
        """
        Perform the first grant and start the renewal task.

        Raises:
            AuthError: If every grant attempt failed.
        """
        expires_in = await self._grant_with_retry()
        if self._refresh_task is None or self._refresh_task.done():
            self._refresh_task = asyncio.create_task(self._refresh_loop(expires_in))

    async def stop(self) -> None:
        """Cancel the renewal task. The held token is kept."""
        if self._refresh_task is None:
            return
        self._refresh_task.cancel()
        try:
            await self._refresh_task
        except asyncio.CancelledError:
            pass
        self._refresh_task = None

    async def _refresh_loop(self, expires_in: float) -> None:
        while True:
            await self._sleep(expires_in / 2)
            try:
                expires_in = await self._grant_with_retry()
            except AuthError as e:
                logger.error(f"Spotify token renewal stopped: {e.message}")
                return

    async def _grant_with_retry(self) -> float:
        """
        Run the client-credentials grant, retrying failed attempts.

        Returns:
            The new token's expires_in, in seconds.

        Raises:
            AuthError: After MAX_GRANT_ATTEMPTS failures.
        """
        last_exception: Exception | None = None

        for attempt in range(MAX_GRANT_ATTEMPTS):
            try:
                token_info = await asyncio.to_thread(
                    self._credentials.get_access_token,
                    as_dict=True,
                    check_cache=False
                )
                expires_in = float(token_info.get("expires_in") or 3600)
                self._token = token_info["access_token"]
                self._expires_at = self._clock() + expires_in
                logger.debug(f"Spotify access token renewed (expires in {expires_in:.0f}s)")
                return expires_in
            except Exception as e:
                last_exception = e
                if attempt == MAX_GRANT_ATTEMPTS - 1:
                    break

                base_delay = min(GRANT_RETRY_DELAY_BASE * (2 ** attempt), GRANT_RETRY_DELAY_MAX)
                jitter = base_delay * GRANT_RETRY_JITTER_FACTOR * (2 * random.random() - 1)
                delay = max(0.1, base_delay + jitter)
                logger.warning(
                    f"Spotify token grant attempt {attempt + 1}/{MAX_GRANT_ATTEMPTS} "
                    f"failed: {e}. Retrying in {delay:.1f}s"
                )
                await self._sleep(delay)

        raise AuthError(
            f"Spotify token grant failed after {MAX_GRANT_ATTEMPTS} attempts",
            details={"original_error": str(last_exception)}
        ) from last_exception
