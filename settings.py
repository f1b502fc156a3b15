"""Persistent user settings (JSON under the XDG config directory)."""

from __future__ import annotations

import json
import logging
import os
from typing import Any

logger = logging.getLogger(__name__)

CONFIG_DIR = os.path.join(os.environ.get("XDG_CONFIG_HOME", os.path.expanduser("~/.config")), "task-pet")
CONFIG_FILE = os.path.join(CONFIG_DIR, "config.json")
SPRITES_DIR = os.path.join(CONFIG_DIR, "sprites")

DEFAULTS: dict[str, Any] = {
    "sprite": None,          # last-selected sprite pack id
    "position": None,        # [x, y] of the pet window
    "poll_interval": 5.0,
    "notifications": True,
}


def load_config(path: str = CONFIG_FILE) -> dict:
    """Saved settings merged over DEFAULTS.  A missing or corrupt file gives the defaults."""
    cfg = dict(DEFAULTS)
    try:
        with open(path) as f:
            saved = json.load(f)
    except (OSError, json.JSONDecodeError):
        return cfg
    if isinstance(saved, dict):
        cfg.update(saved)
    else:
        logger.warning("Ignoring settings file %s: not a JSON object", path)
    return cfg


def save_config(cfg: dict, path: str = CONFIG_FILE) -> None:
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "w") as f:
        json.dump(cfg, f, indent=2)


def update_config(path: str = CONFIG_FILE, **values: Any) -> dict:
    """Load, change ``values`` and save in one go.  Returns the new settings."""
    cfg = load_config(path)
    cfg.update(values)
    save_config(cfg, path)
    return cfg
