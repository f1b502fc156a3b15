"""Animation player for the task pet.

Plays one AnimationSequence at a time over the frames sliced from the
current sprite sheet, advancing on its own recurring timer and
publishing every frame change on ``frame_changed``.
"""

from __future__ import annotations

import logging

import cairo

from events import Signal
from frame_grid import FrameSet
from sprite_config import (
    AnimationSequence,
    SequenceRangeError,
    fallback_sequence,
    validate_sequence,
)
from timers import Scheduler, Timer

logger = logging.getLogger(__name__)


class AnimationPlayer:
    """Frame player with two states, stopped and playing.

    Looping sequences wrap their position; non-looping sequences stop
    on their last frame and leave it visible.  Only one tick timer is
    ever scheduled per player.
    """

    def __init__(self, scheduler: Scheduler) -> None:
        self._scheduler = scheduler
        self._frames: FrameSet = ()
        self._sequence: AnimationSequence | None = None
        self._position: int = 0
        self._playing: bool = False
        self._timer: Timer | None = None
        self.frame_changed = Signal("frame-changed")

    @property
    def frames(self) -> FrameSet:
        return self._frames

    @property
    def sequence(self) -> AnimationSequence | None:
        return self._sequence

    @property
    def position(self) -> int:
        return self._position

    @property
    def is_playing(self) -> bool:
        return self._playing

    @property
    def frame_index(self) -> int | None:
        """Index into the FrameSet of the frame currently shown."""
        if self._sequence is None:
            return None
        index = self._sequence.frame_indices[self._position]
        if index >= len(self._frames):
            return None
        return index

    @property
    def current_frame(self) -> cairo.ImageSurface | None:
        index = self.frame_index
        if index is None:
            return None
        return self._frames[index]

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def load(self, frames: FrameSet) -> None:
        """Swap in a new FrameSet.

        A running sequence keeps its position if every index it uses
        still exists; otherwise playback stops.  The held frame is
        republished either way.
        """
        self._frames = tuple(frames)
        logger.debug("Loaded %d frames", len(self._frames))
        if self._sequence is None:
            return
        if self._playing:
            try:
                validate_sequence(self._sequence, len(self._frames))
            except SequenceRangeError as exc:
                logger.warning("Stopping playback after sprite reload: %s", exc)
                self.stop()
        self._publish()

    def play(self, sequence: AnimationSequence) -> None:
        """Start ``sequence`` from its first frame, replacing anything playing."""
        self._cancel_timer()
        sequence = self._checked(sequence)
        if sequence is None:
            logger.debug("No frames loaded, nothing to play")
            self._sequence = None
            self._position = 0
            self._playing = False
            self._publish()
            return

        self._sequence = sequence
        self._position = 0
        self._playing = True
        self._publish()
        self._start_timer()

    def stop(self) -> None:
        """Stop ticking but keep the sequence and position for resume()."""
        self._cancel_timer()
        self._playing = False

    pause = stop

    def resume(self) -> None:
        if self._sequence is None or self._playing:
            return
        checked = self._checked(self._sequence)
        if checked is None:
            return
        if checked is not self._sequence:
            self.play(checked)
            return
        self._playing = True
        self._start_timer()

    # ------------------------------------------------------------------
    # Ticking
    # ------------------------------------------------------------------

    def _tick(self) -> None:
        seq = self._sequence
        if not self._playing or seq is None:
            return

        self._position += 1
        if self._position >= len(seq):
            if seq.loop:
                self._position = 0
            else:
                # Hold the last frame
                self._position = len(seq) - 1
                self.stop()
                return
        self._publish()

    def _checked(self, sequence: AnimationSequence) -> AnimationSequence | None:
        """Return a sequence that is safe to play on the current frames."""
        try:
            validate_sequence(sequence, len(self._frames))
        except SequenceRangeError as exc:
            fallback = fallback_sequence(len(self._frames))
            if fallback is not None:
                logger.warning("%s; playing default animation instead", exc)
            return fallback
        return sequence

    def _start_timer(self) -> None:
        if self._sequence is not None:
            self._timer = self._scheduler.call_every(self._sequence.interval, self._tick)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _publish(self) -> None:
        self.frame_changed.emit(self.current_frame)
