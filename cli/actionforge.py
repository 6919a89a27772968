#!/usr/bin/env python3
"""
ActionForge CLI: install double-clickable apps for system actions.

Usage:
    python actionforge.py list
    python actionforge.py install login-window
    python actionforge.py install "Log Out" sleep
    python actionforge.py install --all
    python actionforge.py uninstall login-window

Options:
    --config PATH        Settings file (default: configs/actionforge.yaml)
    --install-root DIR   Where bundles are installed (default: /Applications/Actions)
    --actions-dir DIR    Where action definitions live (default: ./actions)
    --yes / -y           Create the install root without asking
    --debug              Trace resolution, state changes, and commands
    --version            Print the version and exit
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

# Ensure src/ is importable
_SCRIPT_DIR = Path(__file__).resolve().parent
_SRC_DIR = _SCRIPT_DIR.parent / "src"
if str(_SRC_DIR) not in sys.path:
    sys.path.insert(0, str(_SRC_DIR))

from action_errors import ActionForgeError, MissingArgument, SetupDeclined
from lifecycle import LifecycleManager
from settings import load_settings

__version__ = "1.0.0"


def _confirm(prompt: str) -> bool:
    """Ask a yes/no question on the terminal. Anything but yes declines."""
    try:
        answer = input(f"{prompt} [y/N] ")
    except EOFError:
        return False
    return answer.strip().lower() in ("y", "yes")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="actionforge",
        description="ActionForge: double-clickable apps for system actions",
        epilog="Action ids are lowercase and hyphenated, e.g. login-window.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable verbose tracing",
    )
    parser.add_argument(
        "-y",
        "--yes",
        action="store_true",
        help="Create the install root without asking",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Settings file (default: configs/actionforge.yaml)",
    )
    parser.add_argument(
        "--install-root",
        type=str,
        default=None,
        help="Directory bundles are installed into",
    )
    parser.add_argument(
        "--actions-dir",
        type=str,
        default=None,
        help="Directory holding action definitions",
    )

    sub = parser.add_subparsers(dest="command", metavar="COMMAND")

    install = sub.add_parser("install", help="Build and install actions")
    install.add_argument("actions", nargs="*", metavar="ID", help="Action id or name")
    install.add_argument("--all", action="store_true", help="Install every action")

    uninstall = sub.add_parser("uninstall", help="Remove installed actions")
    uninstall.add_argument("actions", nargs="*", metavar="ID", help="Action id or name")
    uninstall.add_argument("--all", action="store_true", help="Uninstall every installed action")

    sub.add_parser("list", help="List actions and whether they are installed")
    sub.add_parser("help", help="Show this help")

    return parser


def _configure_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _print_list(manager: LifecycleManager) -> None:
    entries = sorted(manager.list())
    if not entries:
        print("No actions found.")
        return
    for action_id, installed in entries:
        marker = "✓" if installed else " "
        suffix = "  (installed)" if installed else ""
        print(f"  {marker} {action_id}{suffix}")


def _report_install(result) -> None:
    if result.path is not None:
        print(f"  ✓ Installed {result.action_id}: {result.path}")
    else:
        print(f"  ✓ Installed {result.action_id} (custom procedure)")


def _run_install(manager: LifecycleManager, args) -> None:
    if args.all:
        for result in manager.install_all():
            _report_install(result)
        return

    if not args.actions:
        raise MissingArgument("install requires at least one action id")
    for action in args.actions:
        _report_install(manager.install(action))


def _run_uninstall(manager: LifecycleManager, args) -> None:
    if args.all:
        count = 0
        for result in manager.uninstall_all():
            print(f"  ✓ Uninstalled {result.action_id}")
            count += 1
        if not count:
            print("Nothing to uninstall.")
        return

    if not args.actions:
        raise MissingArgument("uninstall requires at least one action id")
    for action in args.actions:
        result = manager.uninstall(action)
        print(f"  ✓ Uninstalled {result.action_id}")


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    _configure_logging(args.debug)

    if args.command in (None, "help"):
        parser.print_help()
        return 0

    try:
        settings = load_settings(args.config).with_overrides(
            install_root=args.install_root,
            actions_dir=args.actions_dir,
            assume_yes=True if args.yes else None,
        )
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    logging.getLogger("actionforge").debug("Settings: %s", settings)
    manager = LifecycleManager(settings, confirm=_confirm)

    try:
        if args.command == "list":
            _print_list(manager)
        elif args.command == "install":
            _run_install(manager, args)
        elif args.command == "uninstall":
            _run_uninstall(manager, args)
    except SetupDeclined as e:
        print(f"Aborted: {e}")
        return 0
    except ActionForgeError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
