"""
flipwheel - Main entry point, console table and device dialog.
"""

import sys
import logging
import argparse
from pathlib import Path
from typing import List, Optional, Sequence, TextIO, Tuple

from .catalog import DeviceCatalog, DeviceInstance
from .config import Config, load_config
from .errors import AccessError, FlipWheelError, InvalidStateError, SelectionError
from .state import StateChange, WheelState, WheelStateResolver, WheelToggler
from .store import HierarchicalStore, MemoryStore, RegistryStore

log = logging.getLogger(__name__)

HEADERS = ("Index", "Friendly name", "Device ID", "Device Instance Id", "Wheel direction")
GREEN = "\033[32m"
RESET = "\033[0m"


class FlipWheel:
    """Main application controller."""

    def __init__(self, store: HierarchicalStore, config: Optional[Config] = None):
        self.config = config or Config()
        self.store = store
        self.catalog = DeviceCatalog(store, self.config.root_path, self.config.mouse_driver)
        self.resolver = WheelStateResolver(store, self.config.mouse_driver)
        self.toggler = WheelToggler(store, self.resolver)
        self.toggler.add_listener(self._on_state_change)
        self.mice: List[DeviceInstance] = []

    def _on_state_change(self, change: StateChange):
        log.info(f"State change: {change.old_state.name} -> {change.new_state.name} ({change.instance})")

    def load_mice(self) -> List[DeviceInstance]:
        """Enumerate mice and remember them for index selection."""
        self.mice = self.catalog.load_mice()
        log.info(f"Found {len(self.mice)} mice")
        return self.mice

    def resolve_state(self, instance: DeviceInstance) -> WheelState:
        return self.resolver.resolve(instance)

    def select(self, index: int) -> DeviceInstance:
        if not 0 <= index < len(self.mice):
            raise SelectionError(
                f"Unknown index. Expected 0..{len(self.mice) - 1}, but received {index}"
            )
        return self.mice[index]

    def toggle(self, index: int) -> WheelState:
        """Toggle the mouse at `index` of the last load_mice() result."""
        return self.toggler.toggle(self.select(index))

    def rows(self) -> List[Tuple[str, ...]]:
        """Table rows for the current mice, one per instance."""
        rows = []
        for i, instance in enumerate(self.mice):
            try:
                label = self.resolve_state(instance).label
            except InvalidStateError as e:
                log.warning(str(e))
                label = "Invalid"
            except AccessError as e:
                log.warning(f"Cannot read wheel direction of {instance}: {e}")
                label = "Unreadable"
            rows.append((str(i), instance.friendly_name, instance.device_id, instance.id, label))
        return rows


def format_table(rows: Sequence[Sequence[str]], highlight: bool = False) -> str:
    """Render rows as a left-aligned, borderless text table."""
    widths = [len(h) for h in HEADERS]
    for row in rows:
        widths = [max(w, len(cell)) for w, cell in zip(widths, row)]

    def line(cells):
        padded = [cell.ljust(w) for cell, w in zip(cells, widths)]
        if highlight and cells[-1] == WheelState.FLIPPED.label:
            padded[-1] = f"{GREEN}{padded[-1]}{RESET}"
        return "  ".join(padded).rstrip()

    out = [line(HEADERS), "  ".join("-" * w for w in widths)]
    out.extend(line(row) for row in rows)
    return "\n".join(out)


def print_devices_table(app: FlipWheel, stream: Optional[TextIO] = None):
    stream = stream or sys.stdout
    print("Configurable devices:", file=stream)
    highlight = app.config.highlight_flipped and stream.isatty()
    print(format_table(app.rows(), highlight=highlight), file=stream)


def parse_index(text: str) -> int:
    try:
        return int(text.strip())
    except ValueError:
        raise SelectionError(f"Not a device index: {text.strip()!r}")


def prompt_index(stream: Optional[TextIO] = None) -> int:
    print("Which device you want to flip?")
    print("Please enter the index: ", end="", flush=True)
    line = (stream or sys.stdin).readline()
    log.debug(f"Line {line.strip()!r}")
    return parse_index(line)


def show_devices_dialog(app: FlipWheel):
    """Show a dialog listing mice; double-click or Toggle flips the selected row."""
    import tkinter as tk
    from tkinter import ttk, messagebox

    root = tk.Tk()
    root.title("flipwheel - Mice")
    root.geometry("750x400")
    root.resizable(True, True)

    main_frame = ttk.Frame(root, padding="10")
    main_frame.pack(fill=tk.BOTH, expand=True)

    title = ttk.Label(main_frame, text="Configurable devices", font=('Segoe UI', 12, 'bold'))
    title.pack(pady=(0, 10))

    tree_frame = ttk.Frame(main_frame)
    tree_frame.pack(fill=tk.BOTH, expand=True)

    columns = ('index', 'name', 'device', 'instance', 'direction')
    tree = ttk.Treeview(tree_frame, columns=columns, show='headings', height=12)
    for column, heading in zip(columns, HEADERS):
        tree.heading(column, text=heading)
    tree.column('index', width=50, anchor='center')
    tree.column('name', width=220)
    tree.column('device', width=200)
    tree.column('instance', width=150)
    tree.column('direction', width=110, anchor='center')
    tree.tag_configure('flipped', background='#90EE90')

    scrollbar = ttk.Scrollbar(tree_frame, orient=tk.VERTICAL, command=tree.yview)
    tree.configure(yscrollcommand=scrollbar.set)
    tree.pack(side=tk.LEFT, fill=tk.BOTH, expand=True)
    scrollbar.pack(side=tk.RIGHT, fill=tk.Y)

    status_var = tk.StringVar(value="")
    ttk.Label(main_frame, textvariable=status_var, foreground='gray').pack(pady=(5, 0))

    def refresh():
        tree.delete(*tree.get_children())
        try:
            app.load_mice()
            rows = app.rows()
        except FlipWheelError as e:
            log.error(str(e))
            status_var.set(str(e))
            return
        for row in rows:
            tags = ('flipped',) if row[-1] == WheelState.FLIPPED.label else ()
            tree.insert('', tk.END, iid=row[0], values=row, tags=tags)
        status_var.set(f"{len(rows)} mice" if rows else "No mice found")

    def toggle_selected(event=None):
        selection = tree.selection()
        if not selection:
            return
        try:
            new_state = app.toggle(int(selection[0]))
        except FlipWheelError as e:
            log.error(str(e))
            messagebox.showerror("flipwheel", str(e), parent=root)
            return
        refresh()
        status_var.set(f"Wheel direction is now {new_state.label}. Replug the device to apply.")

    tree.bind('<Double-1>', toggle_selected)

    buttons = ttk.Frame(main_frame)
    buttons.pack(pady=(10, 0))
    ttk.Button(buttons, text="Toggle", command=toggle_selected).pack(side=tk.LEFT, padx=5)
    ttk.Button(buttons, text="Refresh", command=refresh).pack(side=tk.LEFT, padx=5)
    ttk.Button(buttons, text="Close", command=root.destroy).pack(side=tk.LEFT, padx=5)

    refresh()
    root.mainloop()


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="flipwheel",
        description="Show and toggle the scroll wheel direction of attached mice.",
    )
    ap.add_argument("--config", type=Path, help="Configuration file (default: per-user config dir)")
    ap.add_argument("--snapshot", type=Path,
                    help="Use a YAML snapshot of the device tree instead of the registry")
    mode = ap.add_mutually_exclusive_group()
    mode.add_argument("--list", action="store_true", help="Print the device table and exit")
    mode.add_argument("--index", type=int, help="Toggle the device at this index without prompting")
    mode.add_argument("--gui", action="store_true", help="Open the device dialog")
    ap.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return ap


def setup_logging(level: str):
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s.%(msecs)03d [%(levelname)s] %(name)s: %(message)s',
        datefmt='%H:%M:%S'
    )


def run(app: FlipWheel, args: argparse.Namespace) -> WheelState:
    if args.gui:
        show_devices_dialog(app)
        return WheelState.UNKNOWN

    app.load_mice()

    if args.index is None:
        print_devices_table(app)
        if args.list:
            return WheelState.UNKNOWN
        index = prompt_index()
    else:
        index = args.index

    new_state = app.toggle(index)
    print(f"{app.select(index).friendly_name}: wheel direction is now {new_state.label}")
    print("Replug the device or restart for the change to take effect.")
    return new_state


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    try:
        config = load_config(args.config)
    except (FlipWheelError, OSError) as e:
        setup_logging("DEBUG" if args.verbose else "INFO")
        log.error(f"Cannot load configuration: {e}")
        return 1
    setup_logging("DEBUG" if args.verbose else config.log_level)

    log.info("Starting up")
    try:
        if args.snapshot:
            store = MemoryStore.load(args.snapshot)
        else:
            store = RegistryStore()
        app = FlipWheel(store, config)
        if args.snapshot:
            app.toggler.add_listener(lambda change: store.save(args.snapshot))
        run(app, args)
    except (FlipWheelError, OSError) as e:
        log.error(str(e))
        return 1
    except KeyboardInterrupt:
        return 130
    return 0


if __name__ == '__main__':
    sys.exit(main())
