# nowfmt/music_linux.py
import subprocess
from typing import Dict, List, Optional

from .debug import debug_log
from .errors import SnapshotError
from .models import NowPlaying, STATUS_STOPPED

PLAYERCTL = "playerctl"
PLAYERCTL_TIMEOUT_SECONDS = 2.0

# (line key, playerctl format variable)
_FIELDS = (
    ("player", "playerName"),
    ("status", "status"),
    ("loop", "loop"),
    ("shuffle", "shuffle"),
    ("volume", "volume"),
    ("position", "position"),
    ("trackid", "mpris:trackid"),
    ("length", "mpris:length"),
    ("artUrl", "mpris:artUrl"),
    ("title", "xesam:title"),
    ("album", "xesam:album"),
    ("artist", "xesam:artist"),
    ("albumArtist", "xesam:albumArtist"),
    ("trackNumber", "xesam:trackNumber"),
    ("discNumber", "xesam:discNumber"),
    ("autoRating", "xesam:autoRating"),
    ("url", "xesam:url"),
)
METADATA_FORMAT = "\n".join(f"{key}:{{{{{var}}}}}" for key, var in _FIELDS)
_KNOWN_KEYS = frozenset(var for _, var in _FIELDS if ":" in var)

_COMMANDS = {
    "play": "play",
    "pause": "pause",
    "toggle-pause": "play-pause",
    "next": "next",
    "previous": "previous",
}


def _playerctl(args: List[str], player: Optional[str] = None) -> subprocess.CompletedProcess:
    cmd = [PLAYERCTL]
    if player:
        cmd.append(f"--player={player}")
    cmd.extend(args)
    debug_log("Running " + " ".join(arg for arg in cmd if "\n" not in arg))

    try:
        return subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            timeout=PLAYERCTL_TIMEOUT_SECONDS,
        )
    except FileNotFoundError as e:
        raise SnapshotError("playerctl is not installed or not on PATH") from e
    except subprocess.TimeoutExpired as e:
        raise SnapshotError(f"playerctl did not answer within {PLAYERCTL_TIMEOUT_SECONDS}s") from e


def _to_int(value: str) -> Optional[int]:
    try:
        return int(value)
    except ValueError:
        pass
    try:
        return int(float(value))
    except ValueError:
        return None


def _to_float(value: str) -> Optional[float]:
    try:
        return float(value)
    except ValueError:
        return None


def _to_bool(value: str) -> Optional[bool]:
    lowered = value.strip().lower()
    if lowered in {"true", "on"}:
        return True
    if lowered in {"false", "off"}:
        return False
    return None


def parse_format_output(text: str) -> Dict[str, str]:
    fields = {}
    for line in text.splitlines():
        key, sep, value = line.partition(":")
        if sep and value.strip():
            fields[key.strip()] = value.strip()
    return fields


def parse_metadata_listing(text: str) -> Dict[str, object]:
    """Parse plain ``playerctl metadata`` output into vendor-specific fields.

    Lines look like ``<player> <key> <value>``. Keys already covered by the
    named snapshot fields are skipped; repeated keys collect into a tuple.
    """
    extra: Dict[str, object] = {}
    for line in text.splitlines():
        parts = line.split(None, 2)
        if len(parts) < 3:
            continue
        _, key, value = parts
        if key in _KNOWN_KEYS:
            continue
        if key in extra:
            previous = extra[key]
            extra[key] = (previous if isinstance(previous, tuple) else (previous,)) + (value,)
        else:
            extra[key] = value
    return extra


def build_now_playing(fields: Dict[str, str], extra: Optional[Dict[str, object]] = None) -> NowPlaying:
    def text(key: str) -> Optional[str]:
        return fields.get(key) or None

    def number(key: str) -> Optional[int]:
        value = fields.get(key)
        return _to_int(value) if value else None

    def real(key: str) -> Optional[float]:
        value = fields.get(key)
        return _to_float(value) if value else None

    artist = text("artist")
    album_artist = text("albumArtist")
    shuffle = fields.get("shuffle")

    return NowPlaying(
        player_name=fields.get("player", ""),
        playback_status=fields.get("status", STATUS_STOPPED),
        track_id=text("trackid"),
        title=text("title"),
        album_name=text("album"),
        # playerctl flattens lists to "a, b"
        artists=(artist,) if artist else None,
        album_artists=(album_artist,) if album_artist else None,
        track_number=number("trackNumber"),
        disc_number=number("discNumber"),
        auto_rating=real("autoRating"),
        art_url=text("artUrl"),
        url=text("url"),
        length_us=number("length"),
        position_us=number("position"),
        loop_status=text("loop"),
        shuffle=_to_bool(shuffle) if shuffle else None,
        volume=real("volume"),
        extra=extra or {},
    )


def list_players() -> List[str]:
    result = _playerctl(["--list-all"])
    if result.returncode != 0:
        return []
    return [line.strip() for line in result.stdout.splitlines() if line.strip()]


def _resolve_player(player_name: Optional[str]) -> Optional[str]:
    if not player_name:
        return None
    wanted = player_name.casefold()
    for name in list_players():
        # instances look like "vlc.instance1234"
        if name.casefold() == wanted or name.split(".", 1)[0].casefold() == wanted:
            return name
    raise SnapshotError(f'Could not find any player with name "{player_name}"')


def _no_player(result: subprocess.CompletedProcess) -> bool:
    return "No players found" in (result.stderr or "")


def _failure(result: subprocess.CompletedProcess, player_name: Optional[str]) -> SnapshotError:
    stderr = (result.stderr or "").strip()
    debug_log(f"playerctl failed ({result.returncode}): {stderr}")
    if _no_player(result):
        if player_name:
            return SnapshotError(f'Could not find any player with name "{player_name}"')
        return SnapshotError("Could not find any player")
    return SnapshotError(stderr or f"playerctl exited with status {result.returncode}")


def get_now_playing(player_name: Optional[str] = None) -> NowPlaying:
    player = _resolve_player(player_name)

    result = _playerctl(["metadata", "--format", METADATA_FORMAT], player)
    if result.returncode != 0:
        # A stopped player may have no metadata but still report its status
        status = _playerctl(["status", "--format", "player:{{playerName}}\nstatus:{{status}}"], player)
        if status.returncode != 0:
            raise _failure(status, player_name)
        return build_now_playing(parse_format_output(status.stdout))

    listing = _playerctl(["metadata"], player)
    extra = parse_metadata_listing(listing.stdout) if listing.returncode == 0 else {}
    return build_now_playing(parse_format_output(result.stdout), extra)


def send_command(command: str, player_name: Optional[str] = None) -> bool:
    player = _resolve_player(player_name)
    result = _playerctl([_COMMANDS[command]], player)
    if result.returncode != 0:
        if _no_player(result):
            raise _failure(result, player_name)
        debug_log(f"{command} rejected: {(result.stderr or '').strip()}")
        return False
    return True
