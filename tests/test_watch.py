from __future__ import annotations

from typing import Callable, Iterable, List

import pytest

from nowfmt.errors import RenderError, SnapshotError
from nowfmt.models import NowPlaying
from nowfmt.template import Engine
from nowfmt.watch import ProgressTracker, watch


class FakeClock:
    def __init__(self) -> None:
        self.now = 100.0
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


def _source(titles: Iterable[str]) -> Callable[[], NowPlaying]:
    snapshots = iter([NowPlaying(player_name="vlc", title=title) for title in titles])

    def fetch() -> NowPlaying:
        try:
            return next(snapshots)
        except StopIteration:
            raise SnapshotError("player went away") from None

    return fetch


def _run_watch(engine: Engine, titles: Iterable[str]) -> List[str]:
    printed: List[str] = []
    tracker = ProgressTracker(_source(titles), interval_ms=0)
    with pytest.raises(SnapshotError, match="player went away"):
        watch(engine, engine.compile("{{title}}"), tracker, emit=printed.append)
    return printed


def test_first_tick_does_not_wait() -> None:
    clock = FakeClock()
    tracker = ProgressTracker(_source(["a"]), interval_ms=250, clock=clock, sleep=clock.sleep)

    assert tracker.tick().title == "a"
    assert clock.sleeps == []


def test_later_ticks_wait_out_the_interval() -> None:
    clock = FakeClock()
    tracker = ProgressTracker(_source(["a", "b", "c"]), interval_ms=250, clock=clock, sleep=clock.sleep)

    tracker.tick()
    clock.now += 0.1
    tracker.tick()
    clock.now += 0.5
    tracker.tick()

    assert clock.sleeps == [pytest.approx(0.15)]


def test_identical_renders_print_once(engine: Engine) -> None:
    assert _run_watch(engine, ["same", "same"]) == ["same"]


def test_different_renders_print_in_order(engine: Engine) -> None:
    assert _run_watch(engine, ["one", "two"]) == ["one", "two"]


def test_only_changes_are_printed(engine: Engine) -> None:
    assert _run_watch(engine, ["a", "a", "b", "b", "b", "a"]) == ["a", "b", "a"]


def test_empty_render_is_not_printed_initially(engine: Engine) -> None:
    assert _run_watch(engine, ["", "", "x", ""]) == ["x", ""]


def test_render_errors_end_the_loop(engine: Engine) -> None:
    tracker = ProgressTracker(_source(["a"]), interval_ms=0)
    with pytest.raises(RenderError):
        watch(engine, engine.compile('{{nope "x"}}'), tracker, emit=lambda line: None)
