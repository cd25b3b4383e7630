# nowfmt/cli.py
"""Command line entry point for nowfmt."""
from contextlib import contextmanager
from dataclasses import dataclass
from functools import partial
from typing import Iterator, Optional

import click

from . import __version__, players
from .debug import debug_log, enable_debug
from .dump import metadata_json, metadata_text_lines
from .errors import NowfmtError, SnapshotError
from .models import STATUS_PAUSED, STATUS_PLAYING, NowPlaying
from .template import Engine
from .watch import DEFAULT_INTERVAL_MS, ProgressTracker, emit_output, watch

VERBOSE = "verbose"
NORMAL = "normal"
QUIET = "quiet"

FORMAT_HELP = """Render FORMAT against the current player's metadata.

FORMAT is a template such as "{{artistsString}} - {{title}}". Besides plain
fields, three helpers are available:

\b
  {{join ", " artists albumArtists}}   join values, skipping missing ones
  {{or title url "Unknown"}}           first value that is present
  {{#or title}}fallback{{/or}}         render the block if nothing is present
  {{time positionInSeconds lengthInSeconds}}
                                       format seconds as MM:SS or HH:MM:SS
"""


@dataclass(frozen=True)
class Settings:
    verbosity: str = NORMAL
    player: Optional[str] = None

    @property
    def player_label(self) -> str:
        return self.player or "the active player"


@contextmanager
def _reported_errors() -> Iterator[None]:
    try:
        yield
    except NowfmtError as e:
        debug_log(f"{type(e).__name__}: {e}")
        raise click.ClickException(str(e)) from e


def parse_interval(value: Optional[str]) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return DEFAULT_INTERVAL_MS


@click.group()
@click.version_option(__version__, prog_name="nowfmt")
@click.option("-v", "--verbose", is_flag=True, help="Turns on verbose output.")
@click.option("-q", "--quiet", is_flag=True, help="Output as little as possible.")
@click.option(
    "-p",
    "--player",
    metavar="NAME",
    envvar="NOWFMT_PLAYER",
    default=None,
    help="Tries to control player with given name.",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, quiet: bool, player: Optional[str]) -> None:
    """Inspect and control media players, or format what they are playing."""
    if quiet:
        verbosity = QUIET
    elif verbose:
        verbosity = VERBOSE
        enable_debug()
    else:
        verbosity = NORMAL
    ctx.obj = Settings(verbosity=verbosity, player=player)


def _describe(name: str, np: NowPlaying) -> str:
    title = np.title or "Unknown title"
    artist = ", ".join(np.artists) if np.artists else "Unknown artist"
    if np.playback_status == STATUS_PLAYING:
        return f"{name}\t- Playing {title} by {artist}"
    if np.playback_status == STATUS_PAUSED:
        return f"{name}\t- Paused on {title} by {artist}"
    return f"{name}\t- Not currently playing anything"


def _describe_player(name: str) -> str:
    try:
        np = players.get_now_playing(name)
    except SnapshotError as e:
        debug_log(f"Could not read {name}: {e}")
        return f"{name}\t- Unavailable"
    return _describe(name, np)


@cli.command("list")
@click.pass_obj
def list_command(settings: Settings) -> None:
    """List running players."""
    with _reported_errors():
        names = players.list_players()
        if not names:
            if settings.verbosity == VERBOSE:
                click.echo("No players found.", err=True)
            return

        if settings.verbosity == VERBOSE:
            click.echo("Found players:", err=True)
        for name in names:
            if settings.verbosity == VERBOSE:
                click.echo(_describe_player(name))
            else:
                click.echo(name)


def _basic_command(settings: Settings, command: str, label: str) -> None:
    with _reported_errors():
        accepted = players.send_command(command, settings.player)

    if accepted:
        if settings.verbosity == VERBOSE:
            click.echo(f"{label} command sent to {settings.player_label}", err=True)
    elif settings.verbosity != QUIET:
        click.echo(
            f"{label} command not sent to {settings.player_label} as player does not accept it.",
            err=True,
        )


def _register_basic_command(command: str, label: str, about: str) -> None:
    @click.pass_obj
    def run(settings: Settings) -> None:
        _basic_command(settings, command, label)

    run.__doc__ = about
    cli.command(command)(run)


_register_basic_command("play", "Play", "Resume current media.")
_register_basic_command("pause", "Pause", "Pause current media.")
_register_basic_command("toggle-pause", "Play/Pause", "Pause if playing, or play if paused.")
_register_basic_command("next", "Next", "Skip to next media.")
_register_basic_command("previous", "Previous", "Go back to previous media.")


@cli.command()
@click.option("--json/--text", "as_json", default=False, help="Print metadata as JSON or as text (default).")
@click.pass_obj
def metadata(settings: Settings, as_json: bool) -> None:
    """Print metadata about the current media."""
    with _reported_errors():
        np = players.get_now_playing(settings.player)

    if as_json:
        click.echo(metadata_json(np))
    else:
        for line in metadata_text_lines(np):
            click.echo(line)


@cli.command("format", help=FORMAT_HELP)
@click.option(
    "-w",
    "--watch",
    "watching",
    is_flag=True,
    help="Keep running, outputting the template every time any metadata changes.",
)
@click.option(
    "-i",
    "--watch-interval",
    metavar="MILLISECONDS",
    default=str(DEFAULT_INTERVAL_MS),
    show_default=True,
    help="Rerender at around this rate when watching.",
)
@click.argument("template_source", metavar="FORMAT")
@click.pass_obj
def format_command(settings: Settings, watching: bool, watch_interval: str, template_source: str) -> None:
    with _reported_errors():
        engine = Engine()
        template = engine.compile(template_source)

        if not watching:
            np = players.get_now_playing(settings.player)
            emit_output(engine.render(template, np.to_context()))
            return

        interval = parse_interval(watch_interval)
        debug_log(f"Watching {settings.player_label} every {interval}ms")
        tracker = ProgressTracker(partial(players.get_now_playing, settings.player), interval)
        watch(engine, template, tracker)


def main() -> None:
    cli(prog_name="nowfmt")
