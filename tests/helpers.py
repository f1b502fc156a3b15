"""Test doubles and image helpers shared by the test modules."""

from __future__ import annotations

import io
from typing import Callable

import cairo

EPSILON = 1e-6


class ManualTimer:
    _counter = 0

    def __init__(self, due: float, interval: float | None,
                 callback: Callable[[], None]) -> None:
        ManualTimer._counter += 1
        self.seq = ManualTimer._counter
        self.due = due
        self.interval = interval
        self.callback = callback
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def cancel(self) -> None:
        self._active = False

    def fire(self) -> None:
        if self.interval is None:
            self._active = False
        else:
            self.due += self.interval
        self.callback()


class ManualScheduler:
    """Scheduler whose clock only moves when a test calls advance()."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start
        self._timers: list[ManualTimer] = []
        self._soon: list[Callable[[], None]] = []

    def time(self) -> float:
        return self.now

    def call_later(self, delay: float, callback: Callable[[], None]) -> ManualTimer:
        timer = ManualTimer(self.now + delay, None, callback)
        self._timers.append(timer)
        return timer

    def call_every(self, interval: float, callback: Callable[[], None]) -> ManualTimer:
        timer = ManualTimer(self.now + interval, interval, callback)
        self._timers.append(timer)
        return timer

    def call_soon(self, callback: Callable[[], None]) -> None:
        self._soon.append(callback)

    @property
    def active_timers(self) -> list[ManualTimer]:
        return [t for t in self._timers if t.active]

    def run_soon(self) -> None:
        while self._soon:
            self._soon.pop(0)()

    def advance(self, seconds: float) -> None:
        target = self.now + seconds
        while True:
            self.run_soon()
            due = [t for t in self._timers if t.active and t.due <= target + EPSILON]
            if not due:
                break
            timer = min(due, key=lambda t: (t.due, t.seq))
            self.now = max(self.now, timer.due)
            timer.fire()
        self.now = target
        self._timers = self.active_timers


def cell_color(index: int) -> tuple[float, float, float]:
    return ((index * 37 % 256) / 255, (index * 91 % 256) / 255, ((index * 53 + 20) % 256) / 255)


def make_sheet(cols: int, rows: int, frame_width: int, frame_height: int,
               extra_width: int = 0, extra_height: int = 0) -> cairo.ImageSurface:
    """A sheet with one solid colour per cell and a white 2x2 mark in each cell's top-left corner."""
    surface = cairo.ImageSurface(
        cairo.FORMAT_ARGB32,
        cols * frame_width + extra_width,
        rows * frame_height + extra_height,
    )
    ctx = cairo.Context(surface)
    for row in range(rows):
        for col in range(cols):
            x, y = col * frame_width, row * frame_height
            ctx.set_source_rgb(*cell_color(row * cols + col))
            ctx.rectangle(x, y, frame_width, frame_height)
            ctx.fill()
            ctx.set_source_rgb(1, 1, 1)
            ctx.rectangle(x, y, 2, 2)
            ctx.fill()
    surface.flush()
    return surface


def flip_vertically(surface: cairo.ImageSurface) -> cairo.ImageSurface:
    height = surface.get_height()
    flipped = cairo.ImageSurface(cairo.FORMAT_ARGB32, surface.get_width(), height)
    ctx = cairo.Context(flipped)
    ctx.translate(0, height)
    ctx.scale(1, -1)
    ctx.set_operator(cairo.OPERATOR_SOURCE)
    ctx.set_source_surface(surface, 0, 0)
    ctx.paint()
    flipped.flush()
    return flipped


def png_bytes(surface: cairo.ImageSurface) -> bytes:
    buf = io.BytesIO()
    surface.write_to_png(buf)
    return buf.getvalue()


def pixel(surface: cairo.ImageSurface, x: int, y: int) -> tuple[int, ...]:
    surface.flush()
    data = bytes(surface.get_data())
    offset = y * surface.get_stride() + x * 4
    return tuple(data[offset:offset + 4])


def surface_bytes(surface: cairo.ImageSurface) -> bytes:
    surface.flush()
    return bytes(surface.get_data())
