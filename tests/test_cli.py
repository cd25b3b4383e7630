from __future__ import annotations

from typing import Iterator, List, Optional

import pytest
from click.testing import CliRunner

import nowfmt.players as players
from nowfmt.cli import cli, parse_interval
from nowfmt.errors import SnapshotError
from nowfmt.models import NowPlaying


@pytest.fixture
def snapshot(monkeypatch: pytest.MonkeyPatch, now_playing: NowPlaying) -> List[Optional[str]]:
    requested: List[Optional[str]] = []

    def fake(player_name: Optional[str] = None) -> NowPlaying:
        requested.append(player_name)
        return now_playing

    monkeypatch.setattr(players, "get_now_playing", fake)
    return requested


def test_format_renders_once(runner: CliRunner, snapshot: List[Optional[str]]) -> None:
    result = runner.invoke(cli, ["format", "{{artistsString}} - {{title}} ({{time positionInSeconds}})"])

    assert result.exit_code == 0, result.output
    assert result.output == "Artist A, Artist B - Song (01:05)\n"
    assert snapshot == [None]


def test_format_keeps_escape_codes(runner: CliRunner, snapshot: List[Optional[str]]) -> None:
    result = runner.invoke(cli, ["format", "\x1b[1m{{title}}\x1b[0m"])

    assert result.exit_code == 0, result.output
    assert result.output == "\x1b[1mSong\x1b[0m\n"


def test_watch_keeps_escape_codes(runner: CliRunner, monkeypatch: pytest.MonkeyPatch) -> None:
    titles: Iterator[str] = iter(["One"])

    def fetch(player_name: Optional[str] = None) -> NowPlaying:
        try:
            return NowPlaying(player_name="vlc", title=next(titles))
        except StopIteration:
            raise SnapshotError("Player vanished") from None

    monkeypatch.setattr(players, "get_now_playing", fetch)
    result = runner.invoke(cli, ["format", "-w", "-i", "0", "\x1b[32m{{title}}\x1b[0m"])

    assert result.output.startswith("\x1b[32mOne\x1b[0m\n")


def test_player_option_and_env(runner: CliRunner, snapshot: List[Optional[str]]) -> None:
    runner.invoke(cli, ["-p", "vlc", "format", "{{title}}"])
    runner.invoke(cli, ["format", "{{title}}"], env={"NOWFMT_PLAYER": "mpd"})

    assert snapshot == ["vlc", "mpd"]


def test_template_errors_exit_non_zero(runner: CliRunner, snapshot: List[Optional[str]]) -> None:
    result = runner.invoke(cli, ["format", "{{#or title}}never closed"])

    assert result.exit_code == 1
    assert "Unclosed block {{#or}}" in result.output
    assert "(at line 1, column 1)" in result.output
    assert snapshot == []


def test_render_errors_exit_non_zero(runner: CliRunner, snapshot: List[Optional[str]]) -> None:
    result = runner.invoke(cli, ["format", '{{upper "x"}}'])

    assert result.exit_code == 1
    assert "Helper not defined: upper" in result.output


def test_snapshot_errors_exit_non_zero(runner: CliRunner, monkeypatch: pytest.MonkeyPatch) -> None:
    def missing(player_name: Optional[str] = None) -> NowPlaying:
        raise SnapshotError("Could not find any player")

    monkeypatch.setattr(players, "get_now_playing", missing)
    result = runner.invoke(cli, ["format", "{{title}}"])

    assert result.exit_code == 1
    assert "Could not find any player" in result.output


def test_watch_prints_only_changes(runner: CliRunner, monkeypatch: pytest.MonkeyPatch) -> None:
    titles: Iterator[str] = iter(["One", "One", "Two", "Two", "One"])

    def fetch(player_name: Optional[str] = None) -> NowPlaying:
        try:
            return NowPlaying(player_name="vlc", title=next(titles))
        except StopIteration:
            raise SnapshotError("Player vanished") from None

    monkeypatch.setattr(players, "get_now_playing", fetch)
    result = runner.invoke(cli, ["format", "--watch", "--watch-interval", "0", "{{title}}"])

    assert result.exit_code == 1
    assert result.output.startswith("One\nTwo\nOne\n")
    assert "Player vanished" in result.output


@pytest.mark.parametrize(("value", "expected"), [("100", 100), ("soon", 250), (None, 250)])
def test_parse_interval(value: Optional[str], expected: int) -> None:
    assert parse_interval(value) == expected


def test_metadata_text_and_json(runner: CliRunner, snapshot: List[Optional[str]]) -> None:
    text = runner.invoke(cli, ["metadata"])
    as_json = runner.invoke(cli, ["metadata", "--json"])

    assert text.exit_code == 0
    assert "Title        \tSong" in text.output
    assert as_json.exit_code == 0
    assert as_json.output.startswith("{")
    assert '"title": "Song"' in as_json.output


def test_list_players(runner: CliRunner, monkeypatch: pytest.MonkeyPatch, snapshot: List[Optional[str]]) -> None:
    monkeypatch.setattr(players, "list_players", lambda: ["spotify", "vlc"])

    plain = runner.invoke(cli, ["list"])
    verbose = runner.invoke(cli, ["-v", "list"])

    assert plain.output == "spotify\nvlc\n"
    assert "spotify\t- Playing Song by Artist A, Artist B" in verbose.output
    assert snapshot == ["spotify", "vlc"]


def test_list_survives_an_unresponsive_player(
    runner: CliRunner, monkeypatch: pytest.MonkeyPatch, now_playing: NowPlaying
) -> None:
    def fetch(player_name: Optional[str] = None) -> NowPlaying:
        if player_name == "vlc":
            raise SnapshotError("playerctl did not answer within 2.0s")
        return now_playing

    monkeypatch.setattr(players, "list_players", lambda: ["vlc", "spotify"])
    monkeypatch.setattr(players, "get_now_playing", fetch)
    result = runner.invoke(cli, ["-v", "list"])

    assert result.exit_code == 0, result.output
    assert "vlc\t- Unavailable" in result.output
    assert "spotify\t- Playing Song by Artist A, Artist B" in result.output


def test_basic_commands(runner: CliRunner, monkeypatch: pytest.MonkeyPatch) -> None:
    sent = []

    def send(command: str, player_name: Optional[str] = None) -> bool:
        sent.append((command, player_name))
        return command != "next"

    monkeypatch.setattr(players, "send_command", send)

    assert runner.invoke(cli, ["-p", "vlc", "toggle-pause"]).output == ""
    rejected = runner.invoke(cli, ["next"])
    quiet = runner.invoke(cli, ["-q", "next"])

    assert sent == [("toggle-pause", "vlc"), ("next", None), ("next", None)]
    assert rejected.exit_code == 0
    assert "Next command not sent to the active player as player does not accept it." in rejected.output
    assert quiet.output == ""
