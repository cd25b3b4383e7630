# nowfmt/music_windows.py
import asyncio
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

try:
    from winsdk.windows.media import MediaPlaybackAutoRepeatMode as RepeatMode
    from winsdk.windows.media.control import (
        GlobalSystemMediaTransportControlsSessionManager as MediaManager,
        GlobalSystemMediaTransportControlsSessionPlaybackStatus as PlaybackStatus,
    )
except ImportError:  # winsdk not installed or not on Windows
    MediaManager = None
    PlaybackStatus = None
    RepeatMode = None


def available() -> bool:
    return MediaManager is not None


def _timespan_us(value) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value.total_seconds() * MICROSECONDS)
    except AttributeError:
        pass
    try:
        # Some WinRT bindings expose a "duration" in 100ns ticks.
        return int(value.duration) // 10
    except (AttributeError, TypeError, ValueError):
        return None


def _app_id(session) -> str:
    try:
        return session.source_app_user_model_id or ""
    except Exception:
        return ""


def _status(status) -> str:
    if status == PlaybackStatus.PLAYING:
        return STATUS_PLAYING
    if status == PlaybackStatus.PAUSED:
        return STATUS_PAUSED
    return STATUS_STOPPED


def _loop_status(mode) -> Optional[str]:
    if mode is None:
        return None
    if mode == RepeatMode.TRACK:
        return LOOP_TRACK
    if mode == RepeatMode.LIST:
        return LOOP_PLAYLIST
    return LOOP_NONE


def _matches(session, player_name: str) -> bool:
    return player_name.casefold() in _app_id(session).casefold()


async def _find_session(player_name: Optional[str]):
    manager = await MediaManager.request_async()

    if not player_name:
        current = manager.get_current_session()
        if current is None:
            raise SnapshotError("Could not find any player")
        return current

    for candidate in manager.get_sessions():
        if _matches(candidate, player_name):
            return candidate
    raise SnapshotError(f'Could not find any player with name "{player_name}"')


async def _get_now_playing_async(player_name: Optional[str]) -> NowPlaying:
    session = await _find_session(player_name)

    info = await session.try_get_media_properties_async()
    playback = session.get_playback_info()
    timeline = session.get_timeline_properties()

    artist = getattr(info, "artist", "") or ""
    album_artist = getattr(info, "album_artist", "") or ""
    rate = playback.playback_rate

    return NowPlaying(
        player_name=_app_id(session),
        playback_status=_status(playback.playback_status),
        title=getattr(info, "title", "") or None,
        album_name=getattr(info, "album_title", "") or None,
        artists=(artist,) if artist else None,
        album_artists=(album_artist,) if album_artist else None,
        track_number=getattr(info, "track_number", 0) or None,
        length_us=_timespan_us(timeline.end_time),
        position_us=_timespan_us(timeline.position),
        loop_status=_loop_status(playback.auto_repeat_mode),
        shuffle=playback.is_shuffle_active,
        playback_rate=None if rate is None else float(rate),
    )


async def _list_players_async() -> List[str]:
    manager = await MediaManager.request_async()
    return [_app_id(session) for session in manager.get_sessions()]


async def _send_command_async(command: str, player_name: Optional[str]) -> bool:
    session = await _find_session(player_name)
    actions = {
        "play": session.try_play_async,
        "pause": session.try_pause_async,
        "toggle-pause": session.try_toggle_play_pause_async,
        "next": session.try_skip_next_async,
        "previous": session.try_skip_previous_async,
    }
    return bool(await actions[command]())


def _run(coro):
    try:
        return asyncio.run(coro)
    except SnapshotError:
        raise
    except OSError as e:
        # WinRT failures surface as OSError subclasses
        debug_log(f"Media session call failed: {e}")
        raise SnapshotError(f"Media session call failed: {e}") from e


def get_now_playing(player_name: Optional[str] = None) -> NowPlaying:
    return _run(_get_now_playing_async(player_name))


def list_players() -> List[str]:
    return _run(_list_players_async())


def send_command(command: str, player_name: Optional[str] = None) -> bool:
    return _run(_send_command_async(command, player_name))
