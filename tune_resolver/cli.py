"""
Command-line interface for tune-resolver.

This module implements the CLI using Click, with rich-click for the
help and error colors.

Commands:
    tune-resolver resolve <query>              Resolve a query or URL to tracks
    tune-resolver suno-generate <prompt>       Generate songs on Suno
    tune-resolver suno-credits                 Show remaining Suno credits

Usage:
    # Search YouTube
    tune-resolver resolve "never gonna give you up"

    # Spotify album, at most 20 tracks, as JSON
    tune-resolver resolve "https://open.spotify.com/album/..." --limit 20 --json

    # Full-album video split into its chapters
    tune-resolver resolve "https://www.youtube.com/watch?v=..." --split

    # Generate and wait for the audio
    tune-resolver suno-generate "calm lofi beat for studying" --wait

Configuration:
    Reads config.yaml from the current directory (or --config) and the
    environment / .env file. Only youtube.api_key is required; Spotify
    and Suno features need their own credentials.

Exit Codes:
    1 - configuration error or unexpected error
    2 - nothing found
    3 - authentication error
    4 - any other resolution error
    130 - interrupted
"""

import asyncio
import json
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Any, Callable, Coroutine

import rich_click as click

click.rich_click.USE_RICH_MARKUP = True
click.rich_click.SHOW_ARGUMENTS = True
click.rich_click.GROUP_ARGUMENTS_OPTIONS = True
click.rich_click.STYLE_ERRORS_SUGGESTION = "magenta italic"
click.rich_click.MAX_WIDTH = 100

from tune_resolver import __version__
from tune_resolver.core import (
    AuthError,
    CacheProvider,
    Config,
    ConfigError,
    NotFoundError,
    ResolverError,
    get_logger,
    load_config,
    setup_logging,
    shutdown_logging,
)
from tune_resolver.core.logger import format_resolved_message
from tune_resolver.resolver.models import ResolutionResult
from tune_resolver.resolver.sources import SourceResolver
from tune_resolver.spotify import SpotifyClient, SpotifyTokenManager
from tune_resolver.suno import AudioInfo, SunoClient
from tune_resolver.utils import format_duration
from tune_resolver.youtube import YouTubeClient

logger = get_logger(__name__)


@click.group()
@click.option(
    "--config", "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    metavar="<config.yaml>",
    help="Configuration file (default: ./config.yaml)"
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Show debug output on the console"
)
@click.version_option(__version__, prog_name="tune-resolver")
@click.pass_context
def cli(ctx: click.Context, config_path: Path | None, verbose: bool) -> None:
    """
    tune-resolver: Turn queries and links into playable tracks.

    Understands YouTube searches, videos and playlists, Spotify tracks,
    albums, playlists and artists, Suno songs, and raw HTTP live streams.
    """
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["verbose"] = verbose


@cli.command()
@click.argument("query")
@click.option(
    "--split/--no-split",
    default=None,
    help="Split videos with chapters into one track per chapter"
)
@click.option(
    "--limit",
    type=click.IntRange(min=1),
    default=None,
    help="Maximum number of Spotify tracks to resolve"
)
@click.option(
    "--json", "as_json",
    is_flag=True,
    help="Print the tracks as JSON"
)
@click.pass_context
def resolve(
    ctx: click.Context,
    query: str,
    split: bool | None,
    limit: int | None,
    as_json: bool
) -> None:
    """Resolve a search query or URL into tracks."""

    async def run(config: Config) -> None:
        resolver = await build_resolver(config)
        async with resolver:
            result = await resolver.resolve(
                query,
                split_chapters=config.resolver.split_chapters if split is None else split,
                playlist_limit=limit
            )
        _print_result(result, as_json)

    _run(ctx, run)


@cli.command("suno-generate")
@click.argument("prompt")
@click.option("--tags", default=None, help="Style tags (enables custom mode)")
@click.option("--title", default=None, help="Song title (enables custom mode)")
@click.option("--instrumental", is_flag=True, help="Generate without vocals")
@click.option("--wait", is_flag=True, help="Wait until the audio is ready")
@click.pass_context
def suno_generate(
    ctx: click.Context,
    prompt: str,
    tags: str | None,
    title: str | None,
    instrumental: bool,
    wait: bool
) -> None:
    """
    Generate songs on Suno.

    Without --tags/--title the prompt is a description of the song;
    with either of them the prompt is used as lyrics.
    """

    async def run(config: Config) -> None:
        async with await _authenticated_suno(config) as suno:
            if tags is not None or title is not None:
                clips = await suno.custom_generate(
                    prompt,
                    tags=tags or "",
                    title=title or "",
                    make_instrumental=instrumental,
                    wait_audio=wait
                )
            else:
                clips = await suno.generate(
                    prompt,
                    make_instrumental=instrumental,
                    wait_audio=wait
                )
        for clip in clips:
            click.echo(_format_clip(clip))

    _run(ctx, run)


@cli.command("suno-credits")
@click.pass_context
def suno_credits(ctx: click.Context) -> None:
    """Show the remaining Suno credits."""

    async def run(config: Config) -> None:
        async with await _authenticated_suno(config) as suno:
            credits = await suno.get_credits()
        click.echo(f"Credits left: {credits.credits_left}")
        click.echo(f"Monthly usage: {credits.monthly_usage}/{credits.monthly_limit}")
        if credits.period:
            click.echo(f"Period: {credits.period}")

    _run(ctx, run)


# =============================================================================
# Wiring
# =============================================================================

async def build_resolver(config: Config) -> SourceResolver:
    """
    Construct a SourceResolver and its clients from the configuration.

    Spotify is started only when configured. The Suno client is always
    created (public song pages need no account); it is authenticated
    only when a cookie is configured, and a failed authentication
    leaves it in page-scraping mode.

    Raises:
        AuthError: If Spotify is configured but no token can be obtained.
    """
    youtube = YouTubeClient(
        config.youtube.api_key,
        CacheProvider(),
        max_concurrent_searches=config.resolver.search_concurrency
    )

    spotify: SpotifyClient | None = None
    if config.spotify is not None:
        spotify = SpotifyClient(
            SpotifyTokenManager(config.spotify.client_id, config.spotify.client_secret)
        )
        await spotify.start()

    suno = SunoClient(config.suno.cookie if config.suno is not None else None)
    if config.suno is not None:
        try:
            await suno.init()
        except ResolverError as e:
            logger.warning(f"Suno login failed, using public song pages only: {e.message}")

    return SourceResolver(
        youtube,
        spotify=spotify,
        suno=suno,
        playlist_limit=config.resolver.playlist_limit,
        show_progress=True
    )


async def _authenticated_suno(config: Config) -> SunoClient:
    if config.suno is None:
        raise ConfigError(
            "Suno is not configured. Set suno.cookie in config.yaml or SUNO_COOKIE."
        )
    suno = SunoClient(config.suno.cookie)
    try:
        return await suno.init()
    except BaseException:
        await suno.close()
        raise


def _run(ctx: click.Context, main: Callable[[Config], Coroutine[Any, Any, None]]) -> None:
    """
    Load configuration, set up logging and run an async command.

    Maps errors to exit codes (see module docstring).
    """
    try:
        config = load_config(ctx.obj["config_path"])
        setup_logging(config.log_directory, verbose=ctx.obj["verbose"])
        logger.debug("tune-resolver starting")

        asyncio.run(main(config))

    except ConfigError as e:
        click.echo(f"Configuration error: {e.message}", err=True)
        sys.exit(1)

    except NotFoundError as e:
        click.echo(f"Not found: {e.message}", err=True)
        logger.debug(f"Not found: {e.details}")
        sys.exit(2)

    except AuthError as e:
        click.echo(f"Authentication error: {e.message}", err=True)
        logger.error(f"Authentication error: {e.message}", exc_info=True)
        sys.exit(3)

    except ResolverError as e:
        click.echo(f"Error: {e.message}", err=True)
        logger.error(f"Error: {e.message}", exc_info=True)
        sys.exit(4)

    except KeyboardInterrupt:
        click.echo("\nInterrupted by user", err=True)
        logger.info("Interrupted by user")
        sys.exit(130)

    except Exception as e:
        click.echo(f"Unexpected error: {e}", err=True)
        logger.exception("Unexpected error")
        sys.exit(1)

    finally:
        shutdown_logging()


# =============================================================================
# Output
# =============================================================================

def _print_result(result: ResolutionResult, as_json: bool) -> None:
    if as_json:
        click.echo(json.dumps(
            {
                "tracks": [asdict(track) for track in result.tracks],
                "not_found_count": result.not_found_count,
                "total_requested": result.total_requested,
            },
            indent=2
        ))
        return

    for i, track in enumerate(result.tracks, 1):
        length = "live" if track.is_live else format_duration(track.length)
        line = f"{i:>3}. {track.title} - {track.artist} [{length}]"
        if track.offset:
            line += f" @ {format_duration(track.offset)}"
        click.echo(line)

    click.echo(format_resolved_message(
        len(result.tracks),
        result.not_found_count,
        result.total_requested
    ))


def _format_clip(clip: AudioInfo) -> str:
    status = clip.status.value
    line = f"{clip.id}  [{status}]  {clip.title or '(untitled)'}"
    if clip.audio_url:
        line += f"  {clip.audio_url}"
    if clip.error_message:
        line += f"  ({clip.error_message})"
    return line


def main() -> None:
    """
    Entry point for the CLI.

    This function is called when running `tune-resolver` from the
    command line. It invokes the Click CLI group.
    """
    cli()


if __name__ == "__main__":
    main()
