from __future__ import annotations

import pytest
from click.testing import CliRunner

import nowfmt.debug as debug
from nowfmt.models import LOOP_PLAYLIST, STATUS_PLAYING, NowPlaying
from nowfmt.template import Engine


@pytest.fixture(autouse=True)
def _quiet_debug(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep --verbose in one test from turning on debug output in the next."""

    monkeypatch.setattr(debug, "_DEBUG", False)


@pytest.fixture
def engine() -> Engine:
    return Engine()


@pytest.fixture
def runner() -> CliRunner:
    """Provide a Click runner configured for CLI smoke tests."""

    return CliRunner()


@pytest.fixture
def now_playing() -> NowPlaying:
    return NowPlaying(
        player_name="spotify",
        playback_status=STATUS_PLAYING,
        track_id="spotify:track:1",
        title="Song",
        album_name="Album",
        artists=("Artist A", "Artist B"),
        album_artists=("Artist A",),
        track_number=3,
        disc_number=1,
        length_us=245_500_000,
        position_us=65_900_000,
        loop_status=LOOP_PLAYLIST,
        shuffle=False,
        volume=0.5,
        extra={"xesam:comment": "live"},
    )
