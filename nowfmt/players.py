# nowfmt/players.py
import sys
from types import ModuleType
from typing import List, Optional

from .errors import SnapshotError
from .models import NowPlaying

COMMANDS = ("play", "pause", "toggle-pause", "next", "previous")


def get_backend(platform: str = sys.platform) -> ModuleType:
    if platform == "win32":
        from . import music_windows

        if not music_windows.available():
            raise SnapshotError("Missing Windows dependency (winsdk).")
        return music_windows
    if platform == "darwin":
        from . import music_macos

        return music_macos
    if platform.startswith("linux") or platform.startswith("freebsd"):
        from . import music_linux

        return music_linux
    raise SnapshotError(f"Unsupported platform: {platform}")


def get_now_playing(player_name: Optional[str] = None) -> NowPlaying:
    return get_backend().get_now_playing(player_name)


def list_players() -> List[str]:
    return get_backend().list_players()


def send_command(command: str, player_name: Optional[str] = None) -> bool:
    if command not in COMMANDS:
        raise ValueError(f"Unknown command: {command}")
    return get_backend().send_command(command, player_name)
