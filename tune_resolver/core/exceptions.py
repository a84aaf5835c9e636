"""
Exception classes for tune-resolver.

This module defines all custom exceptions used throughout the resolution
pipeline. Each exception carries a human-readable message plus a details
dictionary so callers can log context without parsing strings.

Exception Hierarchy:
    ResolverError (base)
        ConfigError - Configuration file issues
        InvalidQueryError - Query/URL that cannot be routed or parsed
        NotFoundError - No search result, video, playlist or song
        AuthError - Missing or rejected credentials (Spotify, Suno)
        UpstreamTimeoutError - Probe or polling exceeded its time budget
        StreamProbeError - Media inspection of a live stream failed
        YouTubeError - YouTube Data API / search issues
        SpotifyError - Spotify Web API issues
        SunoError - Suno API issues

Partial failures (some tracks of a Spotify album not found on YouTube) are
not exceptions: they are reported as counts on ResolutionResult.
"""


class ResolverError(Exception):
    """
    Base exception for all tune-resolver errors.

    All custom exceptions in this project inherit from this class,
    allowing callers to catch every resolution failure with a single
    except clause.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary with additional context (e.g., query, URL).

    Example:
        try:
            result = await resolver.resolve(query)
        except ResolverError as e:
            logger.error(f"Resolution failed: {e.message}")
            if e.details:
                logger.debug(f"Details: {e.details}")
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        """
        Initialize the base exception.

        Args:
            message: Human-readable error description shown to the user.
            details: Optional dictionary containing additional context.
                     Common keys include:
                     - 'query': The query or URL being resolved
                     - 'video_id' / 'playlist_id' / 'song_id'
                     - 'original_error': The underlying exception message
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return the error message for display."""
        return self.message


class ConfigError(ResolverError):
    """
    Raised when there's an issue with the configuration.

    This is a CRITICAL error that should stop program execution.

    Common causes:
        - config.yaml not found or invalid YAML
        - Required fields missing (youtube.api_key)
        - Invalid field values (e.g., non-positive playlist limit)
        - A Spotify/Suno query while that client is not configured
    """
    pass


class InvalidQueryError(ResolverError, ValueError):
    """
    Raised when a query looks like a supported URL but cannot be parsed.

    Example:
        raise InvalidQueryError(
            "Suno URL does not contain a song id",
            details={'query': 'https://suno.com/playlist/abc'}
        )
    """
    pass


class NotFoundError(ResolverError):
    """
    Raised when the upstream has no match for a lookup.

    Surfaced to the caller for single-item lookups (search, single video,
    playlist metadata). Swallowed and counted for batch enumerations
    (playlist items, Spotify fan-out).

    Example:
        raise NotFoundError(
            "No video found",
            details={'query': 'some obscure song'}
        )
    """
    pass


class AuthError(ResolverError):
    """
    Raised when credentials are missing, stale or rejected.

    This is fatal for the affected client instance until its credentials
    are refreshed externally (new cookie, new client secret).

    Common causes:
        - Suno session endpoint returned no active session (stale cookie)
        - Suno token renewal attempted before session bootstrap
        - Spotify client-credentials grant failed after all retries
        - Spotify token expired and could not be renewed
    """
    pass


class UpstreamTimeoutError(ResolverError):
    """
    Raised when a request, probe or polling loop exceeds its time budget.

    For HLS probing this is a hard failure. Suno generation polling treats
    budget expiry as a soft failure and returns the last observed batch
    instead of raising.
    """
    pass


class StreamProbeError(ResolverError):
    """
    Raised when media inspection of a raw HTTP stream fails.

    The caller decides whether to retry or report.
    """
    pass


class YouTubeError(ResolverError):
    """
    Raised when the YouTube Data API or the search backend fails.

    Attributes:
        is_quota_error: True if the API key ran out of daily quota.
                        Retrying before the quota resets is pointless.

    Example:
        raise YouTubeError(
            "YouTube API request failed: videos",
            details={'status': 500, 'resource': 'videos'}
        )
    """

    def __init__(
        self,
        message: str,
        details: dict | None = None,
        is_quota_error: bool = False
    ) -> None:
        """
        Initialize YouTube error with the quota flag.

        Args:
            message: Human-readable error description.
            details: Optional dictionary with additional context.
            is_quota_error: Set to True when the API reports quotaExceeded
                            or dailyLimitExceeded.
        """
        super().__init__(message, details)
        self.is_quota_error = is_quota_error


class SpotifyError(ResolverError):
    """
    Raised when there's an issue with the Spotify API.

    Attributes:
        is_rate_limit: True if this is a rate limit error (HTTP 429).

    Example:
        raise SpotifyError(
            "Failed to fetch playlist",
            details={'url': url, 'http_status': 500}
        )
    """

    def __init__(
        self,
        message: str,
        details: dict | None = None,
        is_rate_limit: bool = False
    ) -> None:
        """
        Initialize Spotify error with the rate limit flag.

        Args:
            message: Human-readable error description.
            details: Optional dictionary with additional context.
            is_rate_limit: Set to True if this is a rate limit error.
        """
        super().__init__(message, details)
        self.is_rate_limit = is_rate_limit


class SunoError(ResolverError):
    """
    Raised when a Suno API request fails for reasons other than auth.

    Attributes:
        status_code: HTTP status code returned by Suno, if any.
    """

    def __init__(
        self,
        message: str,
        details: dict | None = None,
        status_code: int | None = None
    ) -> None:
        super().__init__(message, details)
        self.status_code = status_code
