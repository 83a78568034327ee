#!/usr/bin/env python3
"""
Main entrypoint for the permission usage window.
"""
import argparse
import locale
import sys
from typing import List, Optional
from PyQt5.QtWidgets import QApplication
from .config import settings
from .db import ensure_db_exists
from .services import StateStore, UsageController
from .ui import MainThreadDispatcher, UsageWindow


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Show which apps used which permissions.")
    parser.add_argument("--group", help="start filtered to this permission group")
    parser.add_argument("--duration-minutes", type=int, default=None,
                        help="smallest time window to show initially")
    parser.add_argument("--web", action="store_true", help="also serve the JSON API")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)

    # Ensure DB schema exists before launching UI
    ensure_db_exists()

    app = QApplication(sys.argv)
    try:
        locale.setlocale(locale.LC_COLLATE, "")
    except locale.Error as e:
        print(f"Using default collation order: {e}")

    dispatcher = MainThreadDispatcher()
    store = StateStore()

    min_duration = (args.duration_minutes * 60_000 if args.duration_minutes is not None
                    else settings.default_duration_millis)
    controller = UsageController(
        group_name=args.group,
        min_duration_millis=min_duration,
        saved_state=store.load(),
        dispatch=dispatcher.post,
    )

    if args.web:
        from .web import create_app, find_free_port, start_in_thread
        start_in_thread(create_app(controller, dispatcher.post),
                        find_free_port(settings.web_port))

    window = UsageWindow(controller, store)
    window.show()

    return app.exec_()


if __name__ == "__main__":
    sys.exit(main())
