"""CLI entry point for PhonePilot."""

import argparse
import logging
import sys

from phonepilot import __version__
from phonepilot.config import get_settings
from phonepilot.errors import PhonePilotError
from phonepilot.history import DEFAULT_RECENT_LIMIT, HistoryStore
from phonepilot.host import SimulatedHost
from phonepilot.models import EventKind
from phonepilot.orchestrator import build_orchestrator
from phonepilot.snapshot import format_screen_state


def _load_host(args: argparse.Namespace) -> SimulatedHost:
    installed = getattr(args, "installed", None)
    installed = set(installed) if installed else None
    return SimulatedHost.from_file(args.screen, installed_packages=installed)


def _cmd_run(args: argparse.Namespace) -> int:
    settings = get_settings()
    host = _load_host(args)
    orchestrator = build_orchestrator(host, settings=settings)
    # Printed only after the command finishes, so nothing may be dropped
    events = orchestrator.events.subscribe(maxsize=0)
    try:
        outcome = orchestrator.process_command(args.command)
    except PhonePilotError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        for event in events.drain():
            if event.kind is not EventKind.RESULT:
                print(event.message)
        events.close()
    if outcome is None:
        print("Nothing to do: empty command", file=sys.stderr)
        return 1
    if outcome.thinking:
        print(f"Thinking: {outcome.thinking}")
    return 0 if outcome.success else 1


def _cmd_history(args: argparse.Namespace) -> int:
    settings = get_settings()
    store = HistoryStore(data_dir=settings.history_data_dir or None)
    if args.clear:
        store.clear()
        print("History cleared")
        return 0
    for entry in store.recent(limit=args.limit):
        mark = "✓" if entry.success else "✗"
        print(f"{entry.timestamp.isoformat()} {mark} {entry.user_command}")
        for summary in entry.actions:
            print(f"    {summary}")
    return 0


def _cmd_screen(args: argparse.Namespace) -> int:
    state = _load_host(args).current_snapshot()
    if state is None:
        print("Error: screen file has no root node", file=sys.stderr)
        return 1
    print(format_screen_state(state), end="")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="PhonePilot: natural-language device control")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    sub = parser.add_subparsers(dest="cmd", required=True)

    run = sub.add_parser("run", help="Plan and execute a command against a simulated screen")
    run.add_argument("command", help="Natural-language command")
    run.add_argument("--screen", required=True, help="JSON file with the screen's element tree")
    run.add_argument("--installed", nargs="*", help="Packages the simulated device can launch")
    run.set_defaults(func=_cmd_run)

    history = sub.add_parser("history", help="Show or clear command history")
    history.add_argument("--limit", type=int, default=DEFAULT_RECENT_LIMIT)
    history.add_argument("--clear", action="store_true", help="Delete all history entries")
    history.set_defaults(func=_cmd_history)

    screen = sub.add_parser("screen", help="Print the serialized form of a screen file")
    screen.add_argument("--screen", required=True, help="JSON file with the screen's element tree")
    screen.set_defaults(func=_cmd_screen)

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=get_settings().log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
