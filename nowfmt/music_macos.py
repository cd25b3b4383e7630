# nowfmt/music_macos.py
import subprocess
from typing import List, Optional

from .debug import debug_log
from .errors import SnapshotError
from .models import (
    LOOP_NONE,
    LOOP_PLAYLIST,
    LOOP_TRACK,
    MICROSECONDS,
    NowPlaying,
    STATUS_PAUSED,
    STATUS_PLAYING,
    STATUS_STOPPED,
)

PLAYER_NAME = "Music"
OSASCRIPT_TIMEOUT_SECONDS = 3.0

# Fields are separated by ASCII 31 so titles may contain "|"
SNAPSHOT_SCRIPT = r'''
tell application "Music"
    if it is not running then
        return "OK=0"
    end if

    set sep to (character id 31)
    set ps to (player state as string)
    set tShuffle to (shuffle enabled as string)
    set tRepeat to (song repeat as string)
    set tVolume to (sound volume as string)

    if ps is "stopped" then
        return "STOPPED" & sep & tShuffle & sep & tRepeat & sep & tVolume
    end if

    set t to current track
    set tName to (name of t as string)
    set tArtist to (artist of t as string)
    set tAlbum to (album of t as string)
    set tAlbumArtist to (album artist of t as string)
    set tDur to (duration of t as string)
    set tPos to (player position as string)
    set tNumber to (track number of t as string)
    set tDisc to (disc number of t as string)
    set tRating to (rating of t as string)
    set tId to (persistent ID of t as string)

    return "OK=1" & sep & ps & sep & tName & sep & tArtist & sep & tAlbum & sep & tAlbumArtist & sep & tDur & sep & tPos & sep & tNumber & sep & tDisc & sep & tRating & sep & tId & sep & tShuffle & sep & tRepeat & sep & tVolume
end tell
'''

_STATUSES = {"playing": STATUS_PLAYING, "paused": STATUS_PAUSED, "stopped": STATUS_STOPPED}
_REPEATS = {"off": LOOP_NONE, "one": LOOP_TRACK, "all": LOOP_PLAYLIST}

_COMMANDS = {
    "play": "play",
    "pause": "pause",
    "toggle-pause": "playpause",
    "next": "next track",
    "previous": "previous track",
}


def _osascript(script: str) -> str:
    try:
        return subprocess.check_output(
            ["osascript", "-e", script],
            text=True,
            stderr=subprocess.PIPE,
            timeout=OSASCRIPT_TIMEOUT_SECONDS,
        ).strip()
    except FileNotFoundError as e:
        raise SnapshotError("osascript is not available") from e
    except subprocess.TimeoutExpired as e:
        raise SnapshotError("Music did not answer in time") from e
    except subprocess.CalledProcessError as e:
        debug_log(f"osascript failed: {(e.stderr or '').strip()}")
        raise SnapshotError(f"Could not talk to {PLAYER_NAME}: {(e.stderr or '').strip()}") from e


def to_float(v: str) -> Optional[float]:
    # AppleScript follows the system locale for decimals
    try:
        return float(v.replace(",", "."))
    except ValueError:
        return None


def to_int(v: str) -> Optional[int]:
    value = to_float(v)
    return None if value is None else int(value)


def _seconds_to_us(v: str) -> Optional[int]:
    seconds = to_float(v)
    if seconds is None or seconds < 0:
        return None
    return int(round(seconds * MICROSECONDS))


def _volume(v: str) -> Optional[float]:
    value = to_float(v)
    return None if value is None else value / 100.0


def _shuffle(v: str) -> Optional[bool]:
    return {"true": True, "false": False}.get(v.strip().lower())


def parse_snapshot(out: str) -> NowPlaying:
    if out == "OK=0" or not out:
        raise SnapshotError(f"{PLAYER_NAME} is not running")

    parts = out.split("\x1f")

    if parts[0] == "STOPPED":
        parts += [""] * (4 - len(parts))
        return NowPlaying(
            player_name=PLAYER_NAME,
            playback_status=STATUS_STOPPED,
            shuffle=_shuffle(parts[1]),
            loop_status=_REPEATS.get(parts[2]),
            volume=_volume(parts[3]),
        )

    if parts[0] != "OK=1" or len(parts) < 15:
        raise SnapshotError(f"Unexpected reply from {PLAYER_NAME}: {out[:80]!r}")

    (_, state, title, artist, album, album_artist, duration, position,
     number, disc, rating, track_id, shuffle, repeat, volume) = parts[:15]

    extra = {}
    user_rating = to_float(rating)
    if user_rating is not None:
        extra["xesam:userRating"] = user_rating / 100.0

    return NowPlaying(
        player_name=PLAYER_NAME,
        playback_status=_STATUSES.get(state, STATUS_STOPPED),
        track_id=track_id or None,
        title=title or None,
        album_name=album or None,
        artists=(artist,) if artist else None,
        album_artists=(album_artist,) if album_artist else None,
        track_number=to_int(number) or None,
        disc_number=to_int(disc) or None,
        length_us=_seconds_to_us(duration),
        position_us=_seconds_to_us(position),
        loop_status=_REPEATS.get(repeat),
        shuffle=_shuffle(shuffle),
        volume=_volume(volume),
        extra=extra,
    )


def _check_player_name(player_name: Optional[str]) -> None:
    if player_name and player_name.casefold() not in {"music", "apple music"}:
        raise SnapshotError(f'Could not find any player with name "{player_name}"')


def get_now_playing(player_name: Optional[str] = None) -> NowPlaying:
    _check_player_name(player_name)
    return parse_snapshot(_osascript(SNAPSHOT_SCRIPT))


def list_players() -> List[str]:
    out = _osascript(f'application "{PLAYER_NAME}" is running')
    return [PLAYER_NAME] if out == "true" else []


def send_command(command: str, player_name: Optional[str] = None) -> bool:
    _check_player_name(player_name)
    if not list_players():
        raise SnapshotError("Could not find any player")
    try:
        _osascript(f'tell application "{PLAYER_NAME}" to {_COMMANDS[command]}')
    except SnapshotError as e:
        debug_log(f"{command} rejected: {e}")
        return False
    return True
