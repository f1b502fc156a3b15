"""Sprite packs: one sprite sheet plus its manifest.

A pack directory holds ``manifest.json`` and ``sprite.png``::

    {"id": "cat", "name": "Cat", "version": "1.0",
     "frameWidth": 64, "frameHeight": 64, "frameCount": 56,
     "animations": {"idle": {"frames": [0, 1], "frameRate": 4, "loop": true}}}

When no pack is installed the pet falls back to ``default_pack()``,
whose sheet is drawn at runtime with cairo.
"""

from __future__ import annotations

import io
import json
import logging
import math
import os
from dataclasses import dataclass

import cairo

from sprite_config import SpriteConfig, default_animations

logger = logging.getLogger(__name__)

MANIFEST_NAME = "manifest.json"
IMAGE_NAME = "sprite.png"
DEFAULT_PACK_ID = "default"


class SpritePackError(ValueError):
    """A pack directory is missing files or has an unreadable manifest."""


@dataclass
class SpritePack:
    id: str
    name: str
    config: SpriteConfig
    image_path: str | None = None
    image_data: bytes | None = None
    author: str | None = None
    version: str = "1.0"
    description: str | None = None

    @property
    def display_name(self) -> str:
        return self.name or "Unknown Sprite"

    def read_image(self) -> bytes:
        """Return the raw sprite sheet bytes (may raise OSError)."""
        if self.image_data is not None:
            return self.image_data
        if self.image_path is None:
            raise OSError(f"Sprite pack '{self.id}' has no image")
        with open(self.image_path, "rb") as f:
            return f.read()


def load_pack(path: str) -> SpritePack:
    """Load the pack stored in directory ``path``."""
    manifest_path = os.path.join(path, MANIFEST_NAME)
    image_path = os.path.join(path, IMAGE_NAME)
    try:
        with open(manifest_path) as f:
            manifest = json.load(f)
    except (OSError, json.JSONDecodeError) as exc:
        raise SpritePackError(f"Cannot read {manifest_path}: {exc}") from exc
    if not isinstance(manifest, dict):
        raise SpritePackError(f"{manifest_path} is not a JSON object")
    if not os.path.isfile(image_path):
        raise SpritePackError(f"Missing {IMAGE_NAME} in {path}")

    try:
        config = SpriteConfig.from_dict(manifest)
    except (KeyError, TypeError, ValueError) as exc:
        raise SpritePackError(f"Invalid animations in {manifest_path}: {exc}") from exc

    return SpritePack(
        id=str(manifest.get("id") or os.path.basename(os.path.normpath(path))),
        name=str(manifest.get("name") or ""),
        config=config,
        image_path=image_path,
        author=manifest.get("author"),
        version=str(manifest.get("version") or "1.0"),
        description=manifest.get("description"),
    )


def list_packs(sprites_dir: str) -> list[SpritePack]:
    """Every valid pack under ``sprites_dir``, sorted by directory name."""
    packs = []
    try:
        entries = sorted(os.listdir(sprites_dir))
    except OSError:
        return packs
    for entry in entries:
        path = os.path.join(sprites_dir, entry)
        if not os.path.isdir(path):
            continue
        try:
            packs.append(load_pack(path))
        except SpritePackError as exc:
            logger.warning("Skipping sprite pack %s: %s", path, exc)
    return packs


def find_pack(sprites_dir: str, sprite_id: str) -> SpritePack | None:
    """Resolve a pack by directory path, directory name or manifest id."""
    if os.path.isdir(sprite_id):
        return load_pack(sprite_id)
    candidate = os.path.join(sprites_dir, sprite_id)
    if os.path.isdir(candidate):
        return load_pack(candidate)
    for pack in list_packs(sprites_dir):
        if pack.id == sprite_id:
            return pack
    return None


# ----------------------------------------------------------------------
# Built-in placeholder
# ----------------------------------------------------------------------

# Body colour per row of the default 8x7 layout
_ROW_COLORS = {
    "idle": (0.55, 0.75, 0.95),
    "thinking": (0.60, 0.55, 0.95),
    "happy": (0.98, 0.80, 0.30),
    "sad": (0.50, 0.60, 0.70),
    "working": (0.45, 0.85, 0.55),
    "celebrating": (0.98, 0.55, 0.70),
    "sleeping": (0.40, 0.45, 0.65),
}


def _draw_blob(ctx: cairo.Context, mood: str, step: int, size: int) -> None:
    r, g, b = _ROW_COLORS[mood]
    bob = math.sin(step / 8 * 2 * math.pi) * size * 0.05
    cx, cy, radius = size / 2, size * 0.58 + bob, size * 0.32

    ctx.set_source_rgb(r, g, b)
    ctx.arc(cx, cy, radius, 0, 2 * math.pi)
    ctx.fill()

    ctx.set_source_rgb(0.1, 0.1, 0.15)
    eye_y = cy - radius * 0.2
    for dx in (-radius * 0.35, radius * 0.35):
        if mood == "sleeping" or (mood == "idle" and step == 7):
            ctx.set_line_width(2)
            ctx.move_to(cx + dx - 4, eye_y)
            ctx.line_to(cx + dx + 4, eye_y)
            ctx.stroke()
        else:
            ctx.arc(cx + dx, eye_y, 3, 0, 2 * math.pi)
            ctx.fill()

    # Mouth: smile, frown or flat line
    ctx.set_line_width(2)
    mouth_y = cy + radius * 0.3
    if mood in ("happy", "celebrating"):
        ctx.arc(cx, mouth_y - 4, 8, 0.15 * math.pi, 0.85 * math.pi)
    elif mood == "sad":
        ctx.arc_negative(cx, mouth_y + 6, 8, -0.15 * math.pi, -0.85 * math.pi)
    else:
        ctx.move_to(cx - 6, mouth_y)
        ctx.line_to(cx + 6, mouth_y)
    ctx.stroke()

    if mood == "thinking":
        ctx.set_source_rgb(1, 1, 1)
        for i in range(step % 4):
            ctx.arc(size * 0.72 + i * 6, size * 0.18, 2, 0, 2 * math.pi)
            ctx.fill()


def render_placeholder_sheet(frame_size: int = 64) -> bytes:
    """Draw the default 8x7 sheet and return it as PNG bytes."""
    moods = list(default_animations())
    surface = cairo.ImageSurface(cairo.FORMAT_ARGB32, frame_size * 8, frame_size * len(moods))
    ctx = cairo.Context(surface)
    for row, mood in enumerate(moods):
        for col in range(8):
            ctx.save()
            ctx.translate(col * frame_size, row * frame_size)
            _draw_blob(ctx, mood, col, frame_size)
            ctx.restore()
    buf = io.BytesIO()
    surface.write_to_png(buf)
    return buf.getvalue()


def default_pack() -> SpritePack:
    return SpritePack(
        id=DEFAULT_PACK_ID,
        name="Default Sprite",
        config=SpriteConfig(frame_width=64, frame_height=64, animations=default_animations()),
        image_data=render_placeholder_sheet(64),
        author="task-pet",
        description="Built-in placeholder sprite",
    )


# ----------------------------------------------------------------------
# Drawing
# ----------------------------------------------------------------------

def draw_frame(ctx: cairo.Context, frame: cairo.ImageSurface,
               width: int, height: int) -> None:
    """Paint ``frame`` scaled to width x height with crisp pixels."""
    ctx.save()
    ctx.scale(width / frame.get_width(), height / frame.get_height())
    ctx.set_source_surface(frame, 0, 0)
    ctx.get_source().set_filter(cairo.FILTER_NEAREST)
    ctx.paint()
    ctx.restore()
