"""Mood-to-animation mapping for a sprite sheet.

A SpriteConfig says how big each frame is and which frames, at which
rate, make up each mood's animation.  Moods missing from the mapping
play DEFAULT_SEQUENCE instead.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping

DEFAULT_FRAME_SIZE = 64
DEFAULT_FRAME_RATE = 8.0
DEFAULT_FRAME_COUNT = 8


class SequenceRangeError(IndexError):
    """An animation references a frame the loaded sheet does not have."""


@dataclass(frozen=True)
class AnimationSequence:
    """Configuration for a single animation."""
    frame_indices: tuple[int, ...]
    frame_rate: float = DEFAULT_FRAME_RATE
    loop: bool = True

    def __post_init__(self) -> None:
        object.__setattr__(self, "frame_indices", tuple(int(i) for i in self.frame_indices))
        if not self.frame_indices:
            raise ValueError("An animation needs at least one frame")
        if any(i < 0 for i in self.frame_indices):
            raise ValueError(f"Negative frame index in {self.frame_indices}")
        if not self.frame_rate > 0:
            raise ValueError(f"Frame rate must be positive, got {self.frame_rate}")

    def __len__(self) -> int:
        return len(self.frame_indices)

    @property
    def interval(self) -> float:
        """Seconds between two frames."""
        return 1.0 / self.frame_rate

    @property
    def max_index(self) -> int:
        return max(self.frame_indices)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AnimationSequence":
        return cls(
            frame_indices=tuple(data["frames"]),
            frame_rate=float(data.get("frameRate", DEFAULT_FRAME_RATE)),
            loop=bool(data.get("loop", True)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "frames": list(self.frame_indices),
            "frameRate": self.frame_rate,
            "loop": self.loop,
        }


DEFAULT_SEQUENCE = AnimationSequence(
    frame_indices=tuple(range(DEFAULT_FRAME_COUNT)),
    frame_rate=DEFAULT_FRAME_RATE,
    loop=True,
)


@dataclass(frozen=True)
class SpriteConfig:
    frame_width: int = DEFAULT_FRAME_SIZE
    frame_height: int = DEFAULT_FRAME_SIZE
    animations: Mapping[str, AnimationSequence] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "animations", MappingProxyType(dict(self.animations)))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SpriteConfig":
        """Build from manifest keys; a missing ``animations`` gets the grid defaults."""
        raw = data.get("animations")
        if raw is None:
            animations = default_animations()
        elif not isinstance(raw, Mapping):
            raise TypeError(f"animations must be an object, not {type(raw).__name__}")
        else:
            animations = {
                name: AnimationSequence.from_dict(anim) for name, anim in raw.items()
            }
        return cls(
            frame_width=int(data.get("frameWidth", DEFAULT_FRAME_SIZE)),
            frame_height=int(data.get("frameHeight", DEFAULT_FRAME_SIZE)),
            animations=animations,
        )


def default_animations() -> dict[str, AnimationSequence]:
    """Animations for the stock 8x7 layout: one mood per row, 8 frames each."""
    rows = [
        ("idle", 4.0, True),
        ("thinking", 6.0, True),
        ("happy", 8.0, True),
        ("sad", 4.0, True),
        ("working", 6.0, True),
        ("celebrating", 10.0, False),
        ("sleeping", 2.0, True),
    ]
    return {
        name: AnimationSequence(
            frame_indices=tuple(range(row * 8, row * 8 + 8)),
            frame_rate=rate,
            loop=loop,
        )
        for row, (name, rate, loop) in enumerate(rows)
    }


def resolve(mood: Any, config: SpriteConfig) -> AnimationSequence:
    """Return the animation for ``mood``, or DEFAULT_SEQUENCE if it has none.

    ``mood`` may be a Mood member or its plain string name.
    """
    key = getattr(mood, "value", mood)
    return config.animations.get(key, DEFAULT_SEQUENCE)


def validate_sequence(sequence: AnimationSequence, frame_count: int) -> None:
    """Raise SequenceRangeError if any index is outside 0..frame_count-1."""
    if sequence.max_index >= frame_count:
        raise SequenceRangeError(
            f"Frame index {sequence.max_index} out of range for {frame_count} frames"
        )


def fallback_sequence(frame_count: int) -> AnimationSequence | None:
    """DEFAULT_SEQUENCE trimmed to what a short sheet can actually show."""
    if frame_count <= 0:
        return None
    if frame_count >= DEFAULT_FRAME_COUNT:
        return DEFAULT_SEQUENCE
    return AnimationSequence(
        frame_indices=tuple(range(frame_count)),
        frame_rate=DEFAULT_SEQUENCE.frame_rate,
        loop=True,
    )
