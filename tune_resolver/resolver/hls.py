"""
Live stream probing for raw HTTP(S) media URLs.

Any URL that is not YouTube, Spotify or Suno is treated as a live
stream (HLS playlist, Icecast/Shoutcast radio...). Before it is queued,
ffprobe must be able to open it.
"""

import asyncio
import subprocess

import ffmpeg

from tune_resolver.core.exceptions import StreamProbeError, UpstreamTimeoutError
from tune_resolver.core.logger import get_logger
from tune_resolver.resolver.models import MediaSource, TrackDescriptor


logger = get_logger(__name__)


DEFAULT_PROBE_TIMEOUT_SECONDS = 10


async def probe_live_stream(url: str, timeout: float = DEFAULT_PROBE_TIMEOUT_SECONDS) -> TrackDescriptor:
    """
    Probe a media URL and describe it as a live track.

    Args:
        url: The stream URL.
        timeout: Probe deadline in seconds.

    Returns:
        A live HLS descriptor whose title and artist are the URL.

    Raises:
        UpstreamTimeoutError: If ffprobe did not answer within timeout.
        StreamProbeError: If ffprobe could not open the stream, or is
                          not installed.
    """
    try:
        await asyncio.wait_for(
            asyncio.to_thread(ffmpeg.probe, url, timeout=timeout),
            timeout=timeout
        )
    except (asyncio.TimeoutError, subprocess.TimeoutExpired) as e:
        raise UpstreamTimeoutError(
            f"Stream probe timed out after {timeout}s",
            details={"url": url}
        ) from e
    except ffmpeg.Error as e:
        stderr = e.stderr.decode(errors="replace") if e.stderr else ""
        raise StreamProbeError(
            "Could not open stream",
            details={"url": url, "original_error": stderr.strip()[-500:]}
        ) from e
    except FileNotFoundError as e:
        raise StreamProbeError(
            "ffprobe not found. Install ffmpeg to play raw streams.",
            details={"url": url}
        ) from e

    logger.debug(f"Probed live stream {url}")

    return TrackDescriptor(
        source=MediaSource.HLS,
        url=url,
        title=url,
        artist=url,
        length=0,
        offset=0,
        is_live=True
    )
