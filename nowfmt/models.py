# nowfmt/models.py
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple

from .value import Value, to_value

STATUS_PLAYING = "Playing"
STATUS_PAUSED = "Paused"
STATUS_STOPPED = "Stopped"

LOOP_NONE = "None"
LOOP_TRACK = "Track"
LOOP_PLAYLIST = "Playlist"

MICROSECONDS = 1_000_000


@dataclass(frozen=True)
class NowPlaying:
    player_name: str
    playback_status: str = STATUS_STOPPED
    track_id: Optional[str] = None
    title: Optional[str] = None
    album_name: Optional[str] = None
    artists: Optional[Tuple[str, ...]] = None
    album_artists: Optional[Tuple[str, ...]] = None
    track_number: Optional[int] = None
    disc_number: Optional[int] = None
    auto_rating: Optional[float] = None
    art_url: Optional[str] = None
    url: Optional[str] = None
    length_us: Optional[int] = None   # microseconds
    position_us: Optional[int] = None  # microseconds
    loop_status: Optional[str] = None
    shuffle: Optional[bool] = None
    playback_rate: Optional[float] = None
    volume: Optional[float] = None
    extra: Mapping[str, Any] = field(default_factory=dict)

    @property
    def length_in_seconds(self) -> Optional[int]:
        if self.length_us is None:
            return None
        return self.length_us // MICROSECONDS

    @property
    def position_in_seconds(self) -> Optional[int]:
        if self.position_us is None:
            return None
        return self.position_us // MICROSECONDS

    def to_context(self) -> Dict[str, Value]:
        """Project the snapshot into the field mapping templates render against."""
        context: Dict[str, Value] = {
            "playerName": self.player_name,
            "trackId": self.track_id,
            "title": self.title,
            "albumName": self.album_name,
            "artists": to_value(self.artists),
            "artistsString": _joined(self.artists),
            "albumArtists": to_value(self.album_artists),
            "albumArtistsString": _joined(self.album_artists),
            "trackNumber": self.track_number,
            "discNumber": self.disc_number,
            "autoRating": self.auto_rating,
            "artUrl": self.art_url,
            "url": self.url,
            "lengthInMicroseconds": self.length_us,
            "lengthInSeconds": self.length_in_seconds,
            "positionInMicroseconds": self.position_us,
            "positionInSeconds": self.position_in_seconds,
            "playbackStatus": self.playback_status,
            "loopStatus": self.loop_status,
            "shuffle": self.shuffle,
            "playbackRate": self.playback_rate,
            "volume": self.volume,
            "isPlaying": self.playback_status == STATUS_PLAYING,
            "isPaused": self.playback_status == STATUS_PAUSED,
            "isStopped": self.playback_status == STATUS_STOPPED,
            "isShuffled": bool(self.shuffle),
            "isLoopingTrack": self.loop_status == LOOP_TRACK,
            "isLoopingPlaylist": self.loop_status == LOOP_PLAYLIST,
        }
        for key, value in self.extra.items():
            context.setdefault(key, to_value(value))
        return context


def _joined(values: Optional[Tuple[str, ...]]) -> Optional[str]:
    if values is None:
        return None
    return ", ".join(values)
