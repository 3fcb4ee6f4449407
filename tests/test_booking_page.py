from datetime import timedelta

import pytest

from src.prokick.errors import PreconditionError, TransientError
from src.prokick.flow import FlowState
from src.prokick.identity import Identity
from src.prokick.models import BookingStatus
from src.prokick.pages.book import NO_PACKAGES, NO_SELECTION, BookingPage
from tests.fakes import make_class


def _page(store, config, clock, user_id="u1", child_id=None):
    page = BookingPage(store, Identity(user_id=user_id, child_id=child_id), config=config, clock=clock)
    page.load()
    return page


def _book(page, class_id):
    page.request_booking(class_id)
    assert page.flow.state is FlowState.CONFIRMING
    return page.confirm()


def test_load_lists_future_classes_with_queue_sizes(store, config, clock, now):
    store.add_class(make_class("past", now - timedelta(hours=1)))
    store.add_package("p1", "u2", remaining=1)
    store.add_package("p2", "u1", remaining=1)
    store.book_class("u2", None, "p1", "full")

    page = _page(store, config, clock)

    assert [s.class_id for s in page.slots] == ["open", "full"]
    queue = {s.class_id: s.queue_size for s in page.slots}
    assert queue == {"open": 0, "full": 1}
    assert page.booking_for == "Myself (Parent)"


def test_auto_selects_single_package(store, config, clock):
    store.add_package("p1", "u1", remaining=3)
    page = _page(store, config, clock)
    assert page.selected_package_id == "p1"
    assert page.can_book


def test_two_packages_require_a_choice(store, config, clock):
    store.add_package("p1", "u1", remaining=3)
    store.add_package("p2", "u1", remaining=5)
    page = _page(store, config, clock)
    assert page.selected_package_id is None
    assert not page.can_book

    page.request_booking("open")
    assert page.flow.state is FlowState.FAILED
    assert page.flow.message == NO_SELECTION
    assert store.rpc_calls == []

    page.acknowledge()
    page.select_package("p2")
    assert _book(page, "open") is FlowState.SUCCEEDED
    assert store.rpc_calls[0][1]["package_id"] == "p2"


def test_no_usable_package(store, config, clock):
    store.add_package("empty", "u1", remaining=0)
    store.add_package("expired", "u1", remaining=4, expires_in=timedelta(days=-1))
    page = _page(store, config, clock)
    assert page.packages == []
    assert page.selected_package_id is None

    page.request_booking("open")
    assert page.flow.message == NO_PACKAGES
    assert store.rpc_calls == []


def test_select_package_rejects_foreign_package(store, config, clock):
    store.add_package("p1", "u1")
    store.add_package("other", "u2")
    page = _page(store, config, clock)
    with pytest.raises(PreconditionError):
        page.select_package("other")


def test_open_class_books_and_deducts_one_session(store, config, clock):
    store.add_package("p1", "u1", remaining=3)
    page = _page(store, config, clock)

    assert _book(page, "open") is FlowState.SUCCEEDED
    assert page.flow.result.status is BookingStatus.BOOKED
    assert page.flow.message == "Booking Confirmed! See you on the field."
    assert store.packages["p1"].remaining_sessions == 2
    # Reloaded after success
    assert page.packages[0].remaining_sessions == 2
    assert {s.class_id: s.scheduled_class.current_bookings for s in page.slots}["open"] == 5


def test_full_class_joins_standby_without_deduction(store, config, clock):
    store.add_package("other", "u2", remaining=2)
    store.book_class("u2", None, "other", "full")
    store.add_package("p1", "u1", remaining=3)
    page = _page(store, config, clock)
    before = {s.class_id: s.queue_size for s in page.slots}["full"]

    page.request_booking("full")
    assert "Join the standby list? (Queue: 1)" in page.flow.prompt
    page.confirm()

    result = page.flow.result
    assert result.status is BookingStatus.STANDBY
    assert result.queue_position == before + 1
    assert "number 2 in the queue" in page.flow.message
    assert store.packages["p1"].remaining_sessions == 3
    assert {s.class_id: s.queue_size for s in page.slots}["full"] == 2


def test_rejection_message_is_shown_verbatim(store, config, clock):
    store.add_package("p1", "u1", remaining=1)
    page = _page(store, config, clock)
    store.packages["p1"].remaining_sessions = 0  # used up elsewhere since the page loaded

    assert _book(page, "open") is FlowState.FAILED
    assert page.flow.message == "Failed: No sessions remaining"


def test_transport_failure_is_reported(store, config, clock, monkeypatch):
    store.add_package("p1", "u1")
    page = _page(store, config, clock)

    def broken(*args):
        raise TransientError("Network error: connection refused")

    monkeypatch.setattr(store, "book_class", broken)
    assert _book(page, "open") is FlowState.FAILED
    assert page.flow.message == "Error: Network error: connection refused"


def test_child_booking(store, config, clock):
    store.add_package("kp", "u1", child_id="k1", remaining=4)
    store.add_package("pp", "u1", remaining=4)
    page = _page(store, config, clock, child_id="k1")

    assert page.booking_for == "Timmy"
    assert page.selected_package_id == "kp"
    _book(page, "open")
    assert store.rpc_calls[0][1] == {"user_id": "u1", "child_id": "k1", "package_id": "kp", "class_id": "open"}
    assert page.dashboard_route() == "/dashboard?userId=u1&childId=k1"


def test_manual_choice_survives_reload(store, config, clock):
    store.add_package("p1", "u1", remaining=3)
    store.add_package("p2", "u1", remaining=3)
    page = _page(store, config, clock)
    page.select_package("p1")
    page.reload()
    assert page.selected_package_id == "p1"


def test_focus_refresh_skipped_while_submitting(store, config, clock):
    store.add_package("p1", "u1")
    page = _page(store, config, clock)
    reads = store.read_calls

    assert page.on_focus()
    assert store.read_calls > reads

    page.request_booking("open")
    page.flow.state = FlowState.SUBMITTING
    reads = store.read_calls
    assert not page.on_focus()
    assert store.read_calls == reads


def test_standby_then_second_user(store, config, clock, now):
    # Profile P: one package with 3 sessions, class C is full (10/10)
    store.add_class(make_class("C", now + timedelta(days=3), capacity=10, current=10))
    store.add_package("pP", "u1", remaining=3)
    store.add_package("pQ", "u2", remaining=1)

    first = _page(store, config, clock, user_id="u1")
    _book(first, "C")
    assert first.flow.result.status is BookingStatus.STANDBY
    assert first.flow.result.queue_position == 1
    assert store.packages["pP"].remaining_sessions == 3

    second = _page(store, config, clock, user_id="u2")
    assert {s.class_id: s.queue_size for s in second.slots}["C"] == 1
    _book(second, "C")
    assert second.flow.result.status is BookingStatus.STANDBY
    assert second.flow.result.queue_position == 2


def test_failed_reload_after_booking_keeps_success(store, config, clock, monkeypatch):
    store.add_package("p1", "u1", remaining=2)
    page = _page(store, config, clock)

    def offline(now):
        raise TransientError("Network error: connection reset")

    monkeypatch.setattr(store, "future_classes", offline)

    assert _book(page, "open") is FlowState.SUCCEEDED
    assert page.flow.message == "Booking Confirmed! See you on the field."
    assert page.stale
    assert store.rpc_names() == ["book_class"]
    assert store.packages["p1"].remaining_sessions == 1

    monkeypatch.undo()
    assert page.on_focus()
    assert not page.stale


def test_failed_focus_refresh_is_reported_not_raised(store, config, clock, monkeypatch):
    store.add_package("p1", "u1", remaining=2)
    page = _page(store, config, clock)

    def offline(now):
        raise TransientError("Network error: connection reset")

    monkeypatch.setattr(store, "future_classes", offline)

    assert page.on_focus() is False
    assert page.stale
    assert [s.class_id for s in page.slots] == ["open", "full"]
