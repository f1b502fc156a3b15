"""The pet: one mood machine driving one animation player.

Owns both components, turns every mood change into the matching
animation from the active sprite pack, and loads new packs without
blocking the main loop.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Iterable

from animator import AnimationPlayer
from events import MoodChange, Signal
from frame_grid import DecodeError, FrameSet, load_frames
from mood_machine import MoodStateMachine
from sprite_config import resolve
from sprite_pack import SpritePack
from timers import Scheduler

logger = logging.getLogger(__name__)


def run_in_thread(work: Callable[[], None]) -> None:
    threading.Thread(target=work, name="sprite-loader", daemon=True).start()


class Pet:
    """Wires a MoodStateMachine to an AnimationPlayer.

    ``pack_loaded`` fires with the SpritePack once its frames are live;
    ``load_failed`` fires with (pack, exception) and leaves the previous
    frames playing.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        player: AnimationPlayer | None = None,
        moods: MoodStateMachine | None = None,
        run_in_background: Callable[[Callable[[], None]], None] = run_in_thread,
    ) -> None:
        self._scheduler = scheduler
        self.player = player or AnimationPlayer(scheduler)
        self.moods = moods or MoodStateMachine(scheduler)
        self._run_in_background = run_in_background
        self._pack: SpritePack | None = None
        self._load_generation = 0
        self.pack_loaded = Signal("pack-loaded")
        self.load_failed = Signal("load-failed")
        self.moods.mood_changed.connect(self._on_mood_changed)

    @property
    def pack(self) -> SpritePack | None:
        return self._pack

    @property
    def mood(self):
        return self.moods.mood

    def observe(self, snapshots: Iterable[Any]) -> None:
        self.moods.observe(snapshots)

    def set_mood(self, mood) -> bool:
        return self.moods.set_mood(mood)

    def load_pack(self, pack: SpritePack) -> None:
        """Decode ``pack`` in the background, then switch to it on the main loop.

        If several loads overlap, only the most recent one is applied.
        """
        self._load_generation += 1
        generation = self._load_generation
        config = pack.config

        def work() -> None:
            try:
                frames = load_frames(pack.read_image(), config.frame_width, config.frame_height)
            except (DecodeError, OSError) as exc:
                self._scheduler.call_soon(lambda: self._on_load_failed(generation, pack, exc))
                return
            self._scheduler.call_soon(lambda: self._apply_pack(generation, pack, frames))

        logger.debug("Loading sprite pack '%s'", pack.id)
        self._run_in_background(work)

    def play_current_mood(self) -> None:
        if self._pack is None:
            return
        self.player.play(resolve(self.moods.mood, self._pack.config))

    def shutdown(self) -> None:
        self.player.stop()
        self.moods.shutdown()

    # ------------------------------------------------------------------

    def _apply_pack(self, generation: int, pack: SpritePack, frames: FrameSet) -> None:
        if generation != self._load_generation:
            logger.debug("Discarding stale load of sprite pack '%s'", pack.id)
            return
        self._pack = pack
        self.player.load(frames)
        self.play_current_mood()
        logger.info("Sprite pack '%s' loaded (%d frames)", pack.id, len(frames))
        self.pack_loaded.emit(pack)

    def _on_load_failed(self, generation: int, pack: SpritePack, exc: Exception) -> None:
        if generation != self._load_generation:
            return
        logger.warning("Could not load sprite pack '%s': %s", pack.id, exc)
        self.load_failed.emit(pack, exc)

    def _on_mood_changed(self, change: MoodChange) -> None:
        self.play_current_mood()
