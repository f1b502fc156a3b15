"""GTK3 transparent floating window for the task pet.

Creates a borderless, always-on-top, RGBA-transparent window that shows
the pet's current animation frame and briefly labels each mood change.
Drag with the left button to move it; right-click for the menu.
"""

from __future__ import annotations

import logging
import subprocess

import cairo
import gi

gi.require_version("Gtk", "3.0")
gi.require_version("Gdk", "3.0")
from gi.repository import Gdk, GLib, Gtk  # noqa: E402

from events import MoodChange  # noqa: E402
from mood_machine import Mood  # noqa: E402
from pet import Pet  # noqa: E402
from settings import CONFIG_FILE, update_config  # noqa: E402
from sprite_pack import SpritePack, default_pack, draw_frame, list_packs  # noqa: E402
from task_bridge import TaskBridge  # noqa: E402

logger = logging.getLogger(__name__)

LABEL_HEIGHT = 20  # Extra height above the sprite for the mood label
LABEL_DURATION_MS = 2000


class PetWindow(Gtk.Window):
    """Transparent floating pet window.

    Redraws whenever the player publishes a frame; it never polls.
    """

    def __init__(
        self,
        pet: Pet,
        bridge: TaskBridge,
        size: int = 128,
        sprites_dir: str | None = None,
        position: tuple[int, int] | None = None,
        config_file: str = CONFIG_FILE,
    ) -> None:
        super().__init__(type=Gtk.WindowType.TOPLEVEL)

        self.pet = pet
        self.bridge = bridge
        self._size = size
        self._sprites_dir = sprites_dir
        self._config_file = config_file

        self._drag_active = False
        self._drag_offset_x = 0.0
        self._drag_offset_y = 0.0
        self._label_text: str | None = None
        self._label_timeout_id: int | None = None

        self._setup_window()
        self._setup_drawing()
        self._setup_input()
        self._place_on_screen(position)

        self.pet.player.frame_changed.connect(self._on_frame_changed)
        self.pet.moods.mood_changed.connect(self._on_mood_changed)
        self.pet.pack_loaded.connect(self._on_pack_loaded)

    # ------------------------------------------------------------------
    # Window configuration
    # ------------------------------------------------------------------

    def _setup_window(self) -> None:
        self.set_default_size(self._size, self._size + LABEL_HEIGHT)
        self.set_resizable(False)
        self.set_decorated(False)
        self.set_keep_above(True)
        self.stick()
        self.set_skip_taskbar_hint(True)
        self.set_skip_pager_hint(True)

        screen = self.get_screen()
        visual = screen.get_rgba_visual()
        if visual is not None:
            self.set_visual(visual)
            logger.debug("RGBA visual enabled")
        else:
            logger.warning("RGBA visual not available")

        self.set_app_paintable(True)
        self.set_type_hint(Gdk.WindowTypeHint.DOCK)
        self.connect("realize", self._on_realize)
        self.connect("destroy", self._on_destroy)

    def _setup_drawing(self) -> None:
        self._drawing_area = Gtk.DrawingArea()
        self._drawing_area.set_size_request(self._size, self._size + LABEL_HEIGHT)
        self._drawing_area.connect("draw", self._on_draw)
        self.add(self._drawing_area)

    def _setup_input(self) -> None:
        self.add_events(
            Gdk.EventMask.BUTTON_PRESS_MASK
            | Gdk.EventMask.BUTTON_RELEASE_MASK
            | Gdk.EventMask.POINTER_MOTION_MASK
        )
        self.connect("button-press-event", self._on_button_press)
        self.connect("button-release-event", self._on_button_release)
        self.connect("motion-notify-event", self._on_motion)

    def _place_on_screen(self, position: tuple[int, int] | None) -> None:
        if position is not None:
            x, y = position
        else:
            screen = self.get_screen()
            geom = screen.get_monitor_geometry(screen.get_primary_monitor())
            margin = 50
            x = geom.x + geom.width - self._size - margin
            y = geom.y + geom.height - self._size - LABEL_HEIGHT - margin
        self.move(int(x), int(y))
        logger.debug("Window placed at (%d, %d)", x, y)

    # ------------------------------------------------------------------
    # Pet notifications
    # ------------------------------------------------------------------

    def _on_frame_changed(self, frame: cairo.ImageSurface | None) -> None:
        self._drawing_area.queue_draw()

    def _on_mood_changed(self, change: MoodChange) -> None:
        self._label_text = change.label
        if self._label_timeout_id is not None:
            GLib.source_remove(self._label_timeout_id)
        self._label_timeout_id = GLib.timeout_add(LABEL_DURATION_MS, self._on_label_timeout)
        self._drawing_area.queue_draw()

    def _on_label_timeout(self) -> bool:
        self._label_text = None
        self._label_timeout_id = None
        self._drawing_area.queue_draw()
        return False

    def _on_pack_loaded(self, pack: SpritePack) -> None:
        self.set_title(pack.display_name)

    # ------------------------------------------------------------------
    # Drawing
    # ------------------------------------------------------------------

    def _on_draw(self, widget: Gtk.DrawingArea, ctx: cairo.Context) -> bool:
        ctx.set_operator(cairo.OPERATOR_SOURCE)
        ctx.set_source_rgba(0, 0, 0, 0)
        ctx.paint()
        ctx.set_operator(cairo.OPERATOR_OVER)

        width = widget.get_allocated_width()

        frame = self.pet.player.current_frame
        if frame is not None:
            ctx.save()
            ctx.translate(0, LABEL_HEIGHT)
            draw_frame(ctx, frame, width, self._size)
            ctx.restore()

        if self._label_text:
            self._draw_label(ctx, width, self._label_text)

        return True

    def _draw_label(self, ctx: cairo.Context, width: int, text: str) -> None:
        ctx.save()
        ctx.select_font_face("Sans", cairo.FONT_SLANT_NORMAL, cairo.FONT_WEIGHT_BOLD)
        ctx.set_font_size(11)
        extents = ctx.text_extents(text)
        text_x = (width - extents.width) / 2 - extents.x_bearing
        text_y = LABEL_HEIGHT - 5

        # Dark outline for readability on any background
        ctx.set_source_rgba(0, 0, 0, 0.8)
        for dx, dy in [(-1, -1), (-1, 1), (1, -1), (1, 1)]:
            ctx.move_to(text_x + dx, text_y + dy)
            ctx.show_text(text)

        ctx.set_source_rgba(1, 1, 1, 0.95)
        ctx.move_to(text_x, text_y)
        ctx.show_text(text)
        ctx.restore()

    # ------------------------------------------------------------------
    # Input
    # ------------------------------------------------------------------

    def _on_button_press(self, widget: Gtk.Window, event: Gdk.EventButton) -> bool:
        if event.button == 1:
            self._drag_active = True
            win_x, win_y = self.get_position()
            self._drag_offset_x = event.x_root - win_x
            self._drag_offset_y = event.y_root - win_y
            return True
        elif event.button == 3:
            self._show_context_menu(event)
            return True
        return False

    def _on_motion(self, widget: Gtk.Window, event: Gdk.EventMotion) -> bool:
        if not self._drag_active:
            return False
        self.move(int(event.x_root - self._drag_offset_x),
                  int(event.y_root - self._drag_offset_y))
        return True

    def _on_button_release(self, widget: Gtk.Window, event: Gdk.EventButton) -> bool:
        if event.button != 1 or not self._drag_active:
            return False
        self._drag_active = False
        win_x, win_y = self.get_position()
        try:
            update_config(self._config_file, position=[win_x, win_y])
        except OSError:
            logger.exception("Could not save window position")
        return True

    def _show_context_menu(self, event: Gdk.EventButton) -> None:
        menu = Gtk.Menu()

        pack = self.pet.pack
        if pack is not None:
            name_item = Gtk.MenuItem(label=pack.display_name)
            name_item.set_sensitive(False)
            menu.append(name_item)
            menu.append(Gtk.SeparatorMenuItem())

        mood_item = Gtk.MenuItem(label="Mood")
        mood_sub = Gtk.Menu()
        group = None
        for mood in Mood:
            radio = Gtk.RadioMenuItem(label=mood.label, group=group)
            group = radio
            radio.set_active(mood is self.pet.mood)
            radio.connect("toggled", self._on_menu_mood, mood)
            mood_sub.append(radio)
        mood_item.set_submenu(mood_sub)
        menu.append(mood_item)

        packs = self._list_packs()
        if len(packs) > 1:
            sprite_item = Gtk.MenuItem(label="Sprite")
            sprite_sub = Gtk.Menu()
            group = None
            current_id = pack.id if pack is not None else None
            for candidate in packs:
                radio = Gtk.RadioMenuItem(label=candidate.display_name, group=group)
                group = radio
                radio.set_active(candidate.id == current_id)
                radio.connect("toggled", self._on_menu_sprite, candidate)
                sprite_sub.append(radio)
            sprite_item.set_submenu(sprite_sub)
            menu.append(sprite_item)

        menu.append(Gtk.SeparatorMenuItem())

        quit_item = Gtk.MenuItem(label="Quit")
        quit_item.connect("activate", self._on_menu_quit)
        menu.append(quit_item)

        menu.show_all()
        menu.popup_at_pointer(event)

    def _list_packs(self) -> list[SpritePack]:
        packs = [default_pack()]
        if self._sprites_dir:
            packs.extend(list_packs(self._sprites_dir))
        return packs

    def _on_menu_mood(self, widget: Gtk.RadioMenuItem, mood: Mood) -> None:
        if widget.get_active():
            self.pet.set_mood(mood)

    def _on_menu_sprite(self, widget: Gtk.RadioMenuItem, pack: SpritePack) -> None:
        current = self.pet.pack
        if not widget.get_active() or (current is not None and current.id == pack.id):
            return
        self.pet.load_pack(pack)
        logger.info("Switching sprite pack to '%s'", pack.id)
        try:
            update_config(self._config_file, sprite=pack.id)
        except OSError:
            logger.exception("Could not save sprite selection")

    def _on_menu_quit(self, widget: Gtk.MenuItem) -> None:
        self.destroy()

    # ------------------------------------------------------------------
    # Cleanup
    # ------------------------------------------------------------------

    def _cleanup(self) -> None:
        if self._label_timeout_id is not None:
            GLib.source_remove(self._label_timeout_id)
            self._label_timeout_id = None
        self.bridge.stop_watching()
        self.pet.shutdown()

    def _on_realize(self, widget: Gtk.Window) -> None:
        """Disable compositor shadow/border on this window."""
        try:
            xid = self.get_window().get_xid()
            subprocess.Popen(
                ["xprop", "-id", str(xid),
                 "-f", "_COMPTON_SHADOW", "32c",
                 "-set", "_COMPTON_SHADOW", "0"],
                stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL,
            )
            logger.debug("Set _COMPTON_SHADOW=0 on xid %d", xid)
        except (AttributeError, OSError):
            logger.debug("Could not set _COMPTON_SHADOW")

    def _on_destroy(self, widget: Gtk.Window) -> None:
        self._cleanup()
        Gtk.main_quit()
