# nowfmt/helpers.py
"""Template helpers: ``join``, ``or`` and ``time``.

Every helper receives its positional arguments as a tuple of values and,
when invoked in block form, a callable that renders the nested block. Wrong
or missing arguments never raise; the helper renders nothing instead.
"""
from typing import Callable, Dict, Optional, Sequence

from .value import Value, is_null, is_number, render_value

Block = Callable[[], str]
Helper = Callable[[Sequence[Value], Optional[Block]], str]

MINUTE = 60
HOUR = 60 * MINUTE

WIDTH_MINUTE = "minute"
WIDTH_HOUR = "hour"


def join_helper(params: Sequence[Value], block: Optional[Block] = None) -> str:
    if not params:
        return ""
    separator = render_value(params[0])

    items = []
    for param in params[1:]:
        if isinstance(param, tuple):
            items.extend(param)
        else:
            items.append(param)

    return separator.join(render_value(item) for item in items if not is_null(item))


def or_helper(params: Sequence[Value], block: Optional[Block] = None) -> str:
    for param in params:
        if not is_null(param):
            return render_value(param)
    if block is not None:
        return block()
    return ""


def _whole_seconds(value: Value) -> Optional[int]:
    if not is_number(value):
        return None
    if isinstance(value, float):
        if not value.is_integer():
            return None
        value = int(value)
    if value < 0:
        return None
    return value


def width_of_value(value: Value) -> Optional[str]:
    """Classify a width hint; ``None`` means the hint is unusable."""
    if value == WIDTH_HOUR:
        return WIDTH_HOUR
    if value == WIDTH_MINUTE:
        return WIDTH_MINUTE
    seconds = _whole_seconds(value)
    if seconds is None:
        return None
    return WIDTH_MINUTE if seconds <= HOUR else WIDTH_HOUR


def format_duration(seconds: int, width: str) -> str:
    hours, seconds = divmod(seconds, HOUR)
    minutes, seconds = divmod(seconds, MINUTE)
    if width == WIDTH_HOUR:
        return f"{hours:02}:{minutes:02}:{seconds:02}"
    return f"{minutes:02}:{seconds:02}"


def time_helper(params: Sequence[Value], block: Optional[Block] = None) -> str:
    if not params:
        return ""
    seconds = _whole_seconds(params[0])
    if seconds is None:
        return ""

    width = None
    if len(params) > 1:
        width = width_of_value(params[1])
    if width is None:
        width = width_of_value(seconds)
    return format_duration(seconds, width)


HELPERS: Dict[str, Helper] = {
    "join": join_helper,
    "or": or_helper,
    "time": time_helper,
}

# Only these may be opened with {{#name}} ... {{/name}}
BLOCK_HELPERS = frozenset({"or"})
