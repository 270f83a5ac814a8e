import argparse
import concurrent.futures
import functools
import logging
import os
import select
import sys
import termios
import time
import tty

from globe_tracker import web_server
from globe_tracker.catalog import SatelliteCatalog
from globe_tracker.config_manager import ConfigManager
from globe_tracker.simulation import GlobeSimulation
from globe_tracker.time_controller import TimeInputError, format_time_input, parse_time_input
from globe_tracker.tle_manager import TLEManager

logger = logging.getLogger(__name__)

STATUS_INTERVAL_S = 1.0


def clear_screen():
    """Clears the console screen."""
    os.system('cls' if os.name == 'nt' else 'clear')


class KeyPoller:
    def __enter__(self):
        self.old_settings = termios.tcgetattr(sys.stdin)
        tty.setcbreak(sys.stdin.fileno())
        return self

    def __exit__(self, type, value, traceback):
        termios.tcsetattr(sys.stdin, termios.TCSADRAIN, self.old_settings)

    def poll(self):
        if select.select([sys.stdin], [], [], 0) == ([sys.stdin], [], []):
            return sys.stdin.read(1)
        return None


def restore_selection(sim, selection, future):
    """Re-apply the saved selection once the catalog load finishes."""
    exc = future.exception()
    if exc is not None:
        logger.error("Catalog load failed", exc_info=exc)
        return
    with sim.lock:
        sim.catalog.select(selection)


def print_status(frame, catalog, args, loading):
    clear_screen()
    header = (f"{format_time_input(frame.time_ms)} | {frame.mode.value.upper()} | "
              f"Sun {frame.sun.latitude:+.2f}, {frame.sun.longitude:+.2f} | "
              f"{len(frame.satellites)}/{len(catalog)} shown")
    print(header)
    print("-" * len(header))
    if loading:
        print(f"Loading element sets for '{args.group}'...")
    print(f"{'Name':<24} {'Lat':>7} {'Lng':>8} {'Alt':>6}")
    print(f"{'='*24} {'='*7} {'='*8} {'='*6}")

    limit_console = 20
    for i, s in enumerate(frame.satellites):
        if i == limit_console:
            print(f"... and {len(frame.satellites) - limit_console} more ...")
            break
        name_str = (s.record.name[:21] + '..') if len(s.record.name) > 23 else s.record.name
        print(f"{name_str:<24} {s.lat:7.2f} {s.lng:8.2f} {s.altitude_ratio:6.3f}")

    print("\n" + ("-" * len(header)))
    print(f"Web API running at http://localhost:{args.port}/api/frame")
    print("Press 'r' to toggle real time, 'q' to quit.")


def main():
    """Main application logic."""

    cm = ConfigManager("config.yaml")

    parser = argparse.ArgumentParser(description="Day/night globe simulation core with live satellites.")
    parser.add_argument("--group", type=str, default=cm.get('tle_group'), help="Celestrak group name(s), comma-separated")
    parser.add_argument("--tle-url", type=str, default=cm.get('tle_url'), help="Explicit element-set URL (single group)")
    parser.add_argument("--time", type=str, default=None, help="Start time, local YYYY-MM-DDTHH:MM")
    parser.add_argument("--real-time", action='store_true', default=cm.get('real_time'), help="Start in real-time playback")
    parser.add_argument("--fps", type=float, default=cm.get('fps'), help="Frames per second")
    parser.add_argument("--host", type=str, default=cm.get('web_host'), help="Web API bind address")
    parser.add_argument("--port", type=int, default=cm.get('web_port'), help="Web API port")
    parser.add_argument("--select", type=str, default=None, help="Comma-separated NORAD ids to show")
    parser.add_argument("-v", "--verbose", action='store_true', help="Debug logging")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="[%(levelname)s] %(name)s: %(message)s",
    )

    initial_time = None
    if args.time:
        try:
            initial_time = parse_time_input(args.time)
        except TimeInputError as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(2)

    if args.select:
        selection = [int(s) for s in args.select.split(',') if s.strip()]
    else:
        selection = list(cm.get('selection') or [])

    # --- Initialization ---
    tle_manager = TLEManager(cm.get('cache_dir'), max_age_hours=cm.get('cache_max_age_hours'))
    catalog = SatelliteCatalog()
    sim = GlobeSimulation(
        catalog,
        initial_time=initial_time,
        transition_ms=cm.get('transition_ms'),
        snap_threshold_ms=cm.get('snap_threshold_ms'),
    )
    if args.real_time:
        sim.toggle_real_time()

    def fetch():
        if args.tle_url:
            return tle_manager.load_group(args.group, url=args.tle_url)
        return tle_manager.load_groups(args.group)

    executor = concurrent.futures.ThreadPoolExecutor(max_workers=1)
    print(f"Loading TLEs for group(s): {args.group}...")
    load_future = catalog.load_async(executor, fetch)

    load_future.add_done_callback(functools.partial(restore_selection, sim, selection))

    web_server.tracker_state['simulation'] = sim
    print(f"Starting Web API on port {args.port}...")
    web_server.start_server_thread(args.host, args.port)

    frame_interval = 1.0 / args.fps if args.fps > 0 else 1.0 / 30

    # --- Main Loop ---
    try:
        with KeyPoller() as key_poller:
            last_status = 0.0
            while True:
                char = key_poller.poll()
                if char is not None:
                    if char.lower() == 'q':
                        break
                    if char.lower() == 'r':
                        sim.toggle_real_time()

                frame = sim.step()

                now = time.monotonic()
                if now - last_status >= STATUS_INTERVAL_S:
                    print_status(frame, catalog, args, not load_future.done())
                    last_status = now

                time.sleep(frame_interval)

        # --- Shutdown / Save Prompt ---
        print("\nStopping tracker...")
        was_real_time = sim.time.is_real_time
        sim.close()
        while True:
            response = input("Save configuration to config.yaml? (y/n): ").strip().lower()
            if response in ['y', 'yes']:
                cm.save({
                    'tle_group': args.group,
                    'tle_url': args.tle_url,
                    'fps': args.fps,
                    'web_host': args.host,
                    'web_port': args.port,
                    'real_time': was_real_time,
                    'selection': sorted(catalog.selected),
                })
                break
            elif response in ['n', 'no']:
                print("Configuration not saved.")
                break

        executor.shutdown(wait=False)

    except KeyboardInterrupt:
        print("\nTracker stopped by user.")
        sim.close()
        executor.shutdown(wait=False)
        sys.exit(0)


if __name__ == "__main__":
    main()
