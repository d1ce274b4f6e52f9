"""
Run a drill session in the terminal.

Shows each question, waits for Enter, shows the answer and reads a
rating 0-5, or q (quit), e (edit later / suspend), s (skip).

Usage:
    python -m scripts.drill_session [--cram] [--resume | --discard]
"""

from __future__ import annotations

import argparse

from drill.config import configure_logging, load_config
from drill.errors import InvalidInput
from drill.session_controller import (
    ItemView,
    Response,
    SessionController,
    parse_response,
)
from drill.store.database import SqlItemStore


class ConsolePresenter:
    """Presenter that reads ratings from stdin."""

    def present_item(self, view: ItemView) -> Response:
        counters = view.counters
        print(f"\n[{counters.done} done, {counters.remaining} left]")
        if view.leech_warning:
            print("!! Leech: this item has been failed many times")
        print(view.content.question)
        input("  (Enter to show answer) ")
        print(view.content.answer)
        while True:
            raw = input("  Rating 0-5, q=quit, e=edit, s=skip: ")
            try:
                return parse_response(raw)
            except InvalidInput as exc:
                print(f"  {exc}")


def main():
    parser = argparse.ArgumentParser(description="Run a drill session in the terminal")
    parser.add_argument("--database-url", help="SQLAlchemy URL (default: DRILL_DATABASE_URL)")
    parser.add_argument("--cram", action="store_true", help="Cram mode: ignore due dates")
    group = parser.add_mutually_exclusive_group()
    group.add_argument("--resume", action="store_true", help="Resume the suspended session")
    group.add_argument("--discard", action="store_true", help="Discard the suspended session first")
    args = parser.parse_args()

    configure_logging()
    store = SqlItemStore(args.database_url)
    store.init_db()
    controller = SessionController(store, load_config())

    if args.discard:
        controller.discard_suspended()
    if args.resume:
        controller.resume()
    else:
        controller.start(cram=args.cram)

    report = controller.run(ConsolePresenter())
    print()
    for line in report.summary_lines():
        print(line)


if __name__ == "__main__":
    main()
