# nowfmt/watch.py
import time
from functools import partial
from typing import Callable, Optional

import click

from .debug import debug_log
from .models import NowPlaying
from .template import CompiledTemplate, Engine

DEFAULT_INTERVAL_MS = 250

# Rendered output goes out verbatim; click strips ANSI codes when stdout is not a tty
emit_output = partial(click.echo, color=True)


class ProgressTracker:
    """Hands out snapshots no more often than once per interval."""

    def __init__(
        self,
        fetch: Callable[[], NowPlaying],
        interval_ms: int = DEFAULT_INTERVAL_MS,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.fetch = fetch
        self.interval = max(interval_ms, 0) / 1000.0
        self._clock = clock
        self._sleep = sleep
        self._last_tick: Optional[float] = None

    def tick(self) -> NowPlaying:
        if self._last_tick is not None:
            remaining = self.interval - (self._clock() - self._last_tick)
            if remaining > 0:
                self._sleep(remaining)
        self._last_tick = self._clock()
        return self.fetch()


def watch(
    engine: Engine,
    template: CompiledTemplate,
    tracker: ProgressTracker,
    emit: Callable[[str], None] = emit_output,
) -> None:
    """Re-render on every tick and emit only output that changed.

    Never returns normally; a failing snapshot or render propagates.
    """
    last_output = ""
    while True:
        np = tracker.tick()
        output = engine.render(template, np.to_context())
        if output == last_output:
            continue

        debug_log(f"Output changed for {np.player_name}: {output!r}")
        emit(output)
        last_output = output
