# nowfmt/dump.py
import json
from typing import List

from .models import NowPlaying
from .value import render_value

# Length of the longest label ("Album artists")
TEXT_FIELD_PADDING = 13

TEXT_FIELDS = (
    ("Track ID", "trackId"),
    ("Title", "title"),
    ("Artists", "artistsString"),
    ("Album", "albumName"),
    ("Track number", "trackNumber"),
    ("Album artists", "albumArtistsString"),
    ("Artwork URL", "artUrl"),
    ("Auto-rating", "autoRating"),
    ("Disc number", "discNumber"),
    ("Length (µs)", "lengthInMicroseconds"),
    ("Length (s)", "lengthInSeconds"),
    ("URL", "url"),
)


def metadata_text_lines(np: NowPlaying) -> List[str]:
    context = np.to_context()
    lines = []
    for label, key in TEXT_FIELDS:
        value = context.get(key)
        if value is None:
            lines.append(f"{label}:")
        else:
            lines.append(f"{label:{TEXT_FIELD_PADDING}}\t{render_value(value)}")
    return lines


def metadata_json(np: NowPlaying) -> str:
    return json.dumps(np.to_context(), sort_keys=True, ensure_ascii=False)
