#!/usr/bin/env python3
"""Task Pet - Animated desktop companion for remote tasks.

A transparent, always-on-top desktop pet whose mood follows the live
status of remote jobs: thinking while a task runs, happy when one
completes, sad when one fails.
"""

import argparse
import logging
import os
import signal
import sys

import gi

gi.require_version("Gtk", "3.0")
from gi.repository import Gtk  # noqa: E402

from notifier import DesktopNotifier  # noqa: E402
from pet import Pet  # noqa: E402
from pet_window import PetWindow  # noqa: E402
from settings import CONFIG_FILE, SPRITES_DIR, load_config  # noqa: E402
from sprite_pack import (  # noqa: E402
    DEFAULT_PACK_ID,
    SpritePack,
    SpritePackError,
    default_pack,
    find_pack,
)
from task_bridge import DEFAULT_TASKS_FILE, TaskBridge  # noqa: E402
from timers import GLibScheduler  # noqa: E402

logger = logging.getLogger("task-pet")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="task-pet",
        description="Animated desktop companion that reacts to remote task status",
    )
    parser.add_argument(
        "--size",
        type=int,
        default=128,
        help="Window size in pixels (default: 128)",
    )
    parser.add_argument(
        "--tasks-file",
        type=str,
        default=DEFAULT_TASKS_FILE,
        help=f"JSON task list written by the API poller (default: {DEFAULT_TASKS_FILE})",
    )
    parser.add_argument(
        "--sprite",
        type=str,
        default=None,
        help="Sprite pack id or directory (default: last used, else built-in)",
    )
    parser.add_argument(
        "--sprites-dir",
        type=str,
        default=SPRITES_DIR,
        help=f"Directory of installed sprite packs (default: {SPRITES_DIR})",
    )
    parser.add_argument(
        "--poll-interval",
        type=float,
        default=None,
        help="Seconds between task file reads (default: from settings, 5)",
    )
    parser.add_argument(
        "--no-notifications",
        action="store_true",
        help="Don't show desktop notifications for task status changes",
    )
    parser.add_argument(
        "--pid-file",
        type=str,
        default="/tmp/task-pet.pid",
        help="Path to the PID file (default: /tmp/task-pet.pid)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging to stderr",
    )
    return parser.parse_args(argv)


def setup_logging(debug: bool) -> None:
    """Configure logging to stderr."""
    level = logging.DEBUG if debug else logging.WARNING
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter("[%(levelname)s] %(name)s: %(message)s")
    )
    root = logging.getLogger()
    root.setLevel(level)
    root.addHandler(handler)


def setup_signal_handlers() -> None:
    """Register SIGINT and SIGTERM to gracefully quit GTK."""
    def handle_signal(signum: int, frame: object) -> None:
        logger.info("Received signal %d, shutting down", signum)
        Gtk.main_quit()

    signal.signal(signal.SIGINT, handle_signal)
    signal.signal(signal.SIGTERM, handle_signal)


def check_single_instance(pid_file: str) -> None:
    """Exit if another instance is already running."""
    if os.path.exists(pid_file):
        try:
            with open(pid_file) as f:
                pid = int(f.read().strip())
            os.kill(pid, 0)  # raises if process doesn't exist
            logger.info("Already running (PID %d), exiting", pid)
            sys.exit(0)
        except (ValueError, OSError):
            pass  # stale PID file, continue


def write_pid(pid_file: str) -> None:
    with open(pid_file, "w") as f:
        f.write(str(os.getpid()))


def remove_pid(pid_file: str) -> None:
    try:
        os.unlink(pid_file)
    except OSError:
        pass


def choose_pack(requested: str | None, saved: str | None, sprites_dir: str) -> SpritePack:
    """Explicit --sprite > saved selection > built-in default."""
    for sprite_id in (requested, saved):
        if not sprite_id:
            continue
        if sprite_id == DEFAULT_PACK_ID:
            break
        try:
            pack = find_pack(sprites_dir, sprite_id)
        except SpritePackError as exc:
            logger.warning("Sprite pack '%s' unusable: %s", sprite_id, exc)
            continue
        if pack is not None:
            return pack
        logger.warning("Sprite pack '%s' not found in %s", sprite_id, sprites_dir)
    return default_pack()


def main() -> None:
    args = parse_args()
    setup_logging(args.debug)
    check_single_instance(args.pid_file)
    setup_signal_handlers()
    write_pid(args.pid_file)

    config = load_config(CONFIG_FILE)
    poll_interval = args.poll_interval or float(config["poll_interval"])

    logger.info(
        "Starting Task Pet: size=%d, tasks_file=%s, poll=%.1fs, pid_file=%s",
        args.size,
        args.tasks_file,
        poll_interval,
        args.pid_file,
    )

    scheduler = GLibScheduler()
    pet = Pet(scheduler)
    bridge = TaskBridge(args.tasks_file, scheduler, poll_interval=poll_interval)

    notifier = DesktopNotifier(enabled=bool(config["notifications"]) and not args.no_notifications)
    pet.moods.task_transitioned.connect(notifier.notify)

    position = config.get("position")
    window = PetWindow(
        pet=pet,
        bridge=bridge,
        size=args.size,
        sprites_dir=args.sprites_dir,
        position=tuple(position) if position else None,
    )
    window.show_all()

    pack = choose_pack(args.sprite, config.get("sprite"), args.sprites_dir)
    pet.load_pack(pack)
    bridge.start_watching(pet.observe)

    Gtk.main()
    remove_pid(args.pid_file)
    logger.info("Task Pet shut down")


if __name__ == "__main__":
    main()
