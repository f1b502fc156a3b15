"""Slice a sprite sheet into a grid of equally sized frames.

Frames come out in row-major order with the visually topmost row first.
Remainder pixels on the right and bottom edges are dropped.
"""

from __future__ import annotations

import io
import logging

import cairo

logger = logging.getLogger(__name__)

FrameSet = tuple  # tuple[cairo.ImageSurface, ...], index 0..N-1


class DecodeError(Exception):
    """The sprite sheet could not be decoded or has unusable dimensions."""


def decode_png(data: bytes) -> cairo.ImageSurface:
    """Decode PNG bytes into a cairo image surface."""
    if not data:
        raise DecodeError("Sprite sheet is empty")
    try:
        surface = cairo.ImageSurface.create_from_png(io.BytesIO(data))
    except (cairo.Error, MemoryError, OSError) as exc:
        raise DecodeError(f"Could not decode sprite sheet: {exc}") from exc
    if surface.get_width() <= 0 or surface.get_height() <= 0:
        raise DecodeError("Sprite sheet has zero width or height")
    return surface


def grid_size(sheet_width: int, sheet_height: int,
              frame_width: int, frame_height: int) -> tuple[int, int]:
    """Return (cols, rows) of whole frames that fit in the sheet."""
    return sheet_width // frame_width, sheet_height // frame_height


def _crop(sheet: cairo.ImageSurface, x: int, y: int,
          width: int, height: int, flip: bool) -> cairo.ImageSurface:
    frame = cairo.ImageSurface(cairo.FORMAT_ARGB32, width, height)
    ctx = cairo.Context(frame)
    if flip:
        ctx.translate(0, height)
        ctx.scale(1, -1)
    ctx.set_operator(cairo.OPERATOR_SOURCE)
    ctx.set_source_surface(sheet, -x, -y)
    ctx.paint()
    frame.flush()
    return frame


def extract(sheet: cairo.ImageSurface, frame_width: int, frame_height: int,
            bottom_up: bool = False) -> FrameSet:
    """Cut ``sheet`` into frames of ``frame_width`` x ``frame_height``.

    ``bottom_up`` describes sheets whose pixel rows are stored bottom row
    first (GL read-backs and similar).  For those the row index is
    inverted before cropping and each frame is flipped upright, so the
    returned order is still top-to-bottom as seen on screen.
    """
    width, height = sheet.get_width(), sheet.get_height()
    if width <= 0 or height <= 0:
        raise DecodeError("Sprite sheet has zero width or height")
    if frame_width <= 0 or frame_height <= 0:
        raise DecodeError(
            f"Invalid frame size {frame_width}x{frame_height}"
        )

    cols, rows = grid_size(width, height, frame_width, frame_height)
    frames = []
    for row in range(rows):
        if bottom_up:
            y = height - (row + 1) * frame_height
        else:
            y = row * frame_height
        for col in range(cols):
            frames.append(
                _crop(sheet, col * frame_width, y, frame_width, frame_height, bottom_up)
            )

    logger.debug("Extracted %d frames (%dx%d grid of %dx%d) from %dx%d sheet",
                 len(frames), cols, rows, frame_width, frame_height, width, height)
    return tuple(frames)


def load_frames(data: bytes, frame_width: int, frame_height: int) -> FrameSet:
    """Decode PNG bytes and slice them in one step."""
    return extract(decode_png(data), frame_width, frame_height)
