"""Book ProKick classes, manage standby places and packages from the terminal.

Thin command-line front-end over the page controllers. Reads backend
settings from .env (SUPABASE_URL, SUPABASE_ANON_KEY).

Run with:  python scripts/booking_cli.py profiles
Dashboard: python scripts/booking_cli.py dashboard --user <id> [--child <id>]
Classes:   python scripts/booking_cli.py classes --user <id> [--child <id>]
Book:      python scripts/booking_cli.py book <class_id> --user <id> [--package <id>]
Cancel:    python scripts/booking_cli.py cancel <booking_id> --user <id>
Buy:       python scripts/booking_cli.py buy-package <template_id> --user <id> [--child <id>]
Extra:     python scripts/booking_cli.py buy-extra <package_id> --user <id> [--child <id>]

Mutating commands ask for confirmation unless --yes is given.

Exit codes:
  0 = success
  1 = error or refused action (message on stderr)
"""

import argparse
import os
import sys

from dotenv import load_dotenv

load_dotenv()

# Add project root to path for src imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from src.prokick.client import DataClient  # noqa: E402
from src.prokick.config import ProKickConfig, get_config  # noqa: E402
from src.prokick.errors import ProKickError  # noqa: E402
from src.prokick.flow import FlowState  # noqa: E402
from src.prokick.identity import Identity  # noqa: E402
from src.prokick.logging import bind_identity, setup_logging  # noqa: E402
from src.prokick.pages.base import FlowPage, format_price, format_when  # noqa: E402
from src.prokick.pages.book import BookingPage  # noqa: E402
from src.prokick.pages.dashboard import DashboardPage  # noqa: E402
from src.prokick.pages.profiles import ProfileSelector  # noqa: E402
from src.prokick.store import BookingStore  # noqa: E402


def _log(msg: str) -> None:
    """Write diagnostic messages to stderr so stdout stays clean."""
    print(msg, file=sys.stderr)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="ProKick class booking from the command line.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("profiles", help="List profiles to act as.")

    def identity_args(p: argparse.ArgumentParser) -> None:
        p.add_argument("--user", required=True, help="Profile id (userId).")
        p.add_argument("--child", default=None, help="Child profile id (childId).")

    def confirm_args(p: argparse.ArgumentParser) -> None:
        p.add_argument("--yes", action="store_true", help="Skip the confirmation prompt.")

    identity_args(sub.add_parser("dashboard", help="Show packages and upcoming bookings."))
    identity_args(sub.add_parser("classes", help="Show upcoming classes and queue sizes."))

    book = sub.add_parser("book", help="Book a class or join its standby list.")
    book.add_argument("class_id")
    book.add_argument("--package", default=None, help="Package to use (auto-picked if only one).")
    identity_args(book)
    confirm_args(book)

    cancel = sub.add_parser("cancel", help="Cancel a booking.")
    cancel.add_argument("booking_id")
    identity_args(cancel)
    confirm_args(cancel)

    buy = sub.add_parser("buy-package", help="Buy a new package.")
    buy.add_argument("template_id", type=int)
    identity_args(buy)
    confirm_args(buy)

    extra = sub.add_parser("buy-extra", help="Buy one extra session on a package.")
    extra.add_argument("package_id")
    identity_args(extra)
    confirm_args(extra)

    return parser.parse_args(argv)


def _format_table(headers: list[str], rows: list[list[str]]) -> str:
    """Format rows as a plain text table."""
    if not rows:
        return "(nothing to show)"

    widths = [len(h) for h in headers]
    for row in rows:
        for i, cell in enumerate(row):
            widths[i] = max(widths[i], len(cell))

    header_line = " | ".join(h.ljust(widths[i]) for i, h in enumerate(headers))
    separator = "-+-".join("-" * w for w in widths)
    row_lines = [" | ".join(cell.ljust(widths[i]) for i, cell in enumerate(row)) for row in rows]
    return "\n".join([header_line, separator, *row_lines])


def _run_flow(page: FlowPage, assume_yes: bool) -> int:
    """Drive the page's pending action to completion and report it."""
    flow = page.flow
    if flow.state is FlowState.CONFIRMING:
        if not assume_yes:
            answer = input(f"{flow.prompt} [y/N] ").strip().lower()
            if answer not in ("y", "yes"):
                page.abort()
                _log("Aborted.")
                return 1
        page.confirm()

    ok = flow.state is FlowState.SUCCEEDED
    if ok:
        print(flow.message)
        if page.stale:
            _log("Note: the action went through but the refreshed data could not be loaded.")
    else:
        _log(flow.message or "Failed")
    page.acknowledge()
    return 0 if ok else 1


def _show_profiles(store: BookingStore) -> int:
    selector = ProfileSelector(store)
    rows = [[p.id, p.label] for p in selector.load()]
    print(_format_table(["Id", "Profile"], rows))
    return 0


def _show_dashboard(page: DashboardPage) -> int:
    print(f"Dashboard for {page.active_name}")
    print()
    pkg_rows = [
        [
            p.id,
            p.name,
            str(p.remaining_sessions),
            p.expiry_date.date().isoformat(),
            f"{p.extra_sessions_purchased}/{page.config.max_extra_sessions}",
        ]
        for p in page.packages
    ]
    print(_format_table(["Id", "Package", "Sessions", "Expires", "Extras"], pkg_rows))
    print()
    booking_rows = []
    for b in page.bookings:
        status = b.status.value
        if b.queue_position is not None:
            status = f"{status} #{b.queue_position}"
        location = b.scheduled_class.location if b.scheduled_class else None
        booking_rows.append(
            [
                b.id,
                format_when(b.starts_at),
                location or "-",
                status,
                "yes" if page.can_cancel(b) else "too late",
            ]
        )
    print(_format_table(["Id", "When", "Location", "Status", "Cancel"], booking_rows))
    print()
    template_rows = [
        [str(t.id), t.name, f"{t.session_count} sessions / {t.days_valid} days", format_price(t.price)]
        for t in page.available_templates
    ]
    print(_format_table(["Id", "Template", "Contents", page.config.currency], template_rows))
    return 0


def _show_classes(page: BookingPage) -> int:
    print(f"Booking for: {page.booking_for}")
    print(f"Package: {page.selected_package_id or '(select with --package)'}")
    print()
    rows = [
        [
            s.class_id,
            format_when(s.scheduled_class.start_time),
            s.scheduled_class.location or "-",
            s.scheduled_class.spots_label,
            f"waitlist ({s.queue_size} waiting)" if s.is_full else "open",
        ]
        for s in page.slots
    ]
    print(_format_table(["Id", "When", "Location", "Spots", "Status"], rows))
    return 0


def main(args: argparse.Namespace, store: BookingStore | None = None) -> int:
    config = get_config()
    setup_logging(json_output=config.log_json, log_level=config.log_level)
    if store is None:
        store = BookingStore(DataClient.from_config(config))
    try:
        return _dispatch(args, store, config)
    except ProKickError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1


def _dispatch(args: argparse.Namespace, store: BookingStore, config: ProKickConfig) -> int:
    if args.command == "profiles":
        return _show_profiles(store)

    identity = Identity.from_query({"userId": args.user, "childId": args.child or ""})
    bind_identity(identity)

    if args.command in ("classes", "book"):
        page = BookingPage(store, identity, config=config)
        page.load()
        if args.command == "classes":
            return _show_classes(page)
        if args.package:
            page.select_package(args.package)
        page.request_booking(args.class_id)
        return _run_flow(page, args.yes)

    page = DashboardPage(store, identity, config=config)
    page.load()
    if args.command == "dashboard":
        return _show_dashboard(page)
    if args.command == "cancel":
        page.request_cancel(args.booking_id)
    elif args.command == "buy-package":
        page.request_buy_package(args.template_id)
    elif args.command == "buy-extra":
        page.request_buy_extra(args.package_id)
    return _run_flow(page, args.yes)


if __name__ == "__main__":
    sys.exit(main(_parse_args()))
