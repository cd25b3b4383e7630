from __future__ import annotations

import pytest

import nowfmt.music_linux as music_linux
import nowfmt.music_macos as music_macos
import nowfmt.music_windows as music_windows
import nowfmt.players as players
from nowfmt.errors import SnapshotError


def test_backend_follows_platform() -> None:
    assert players.get_backend("linux") is music_linux
    assert players.get_backend("darwin") is music_macos


def test_windows_needs_winsdk(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(music_windows, "MediaManager", None)
    with pytest.raises(SnapshotError, match="winsdk"):
        players.get_backend("win32")


def test_unsupported_platform() -> None:
    with pytest.raises(SnapshotError, match="Unsupported platform: sunos5"):
        players.get_backend("sunos5")


def test_unknown_command_is_rejected() -> None:
    with pytest.raises(ValueError):
        players.send_command("rewind")
