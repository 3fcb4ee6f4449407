"""BookingPage - upcoming classes, queue depth, and booking submission.

Lists classes that have not started, the standby queue size of each, and
the identity's usable packages. A booking goes to the backend's book_class
procedure, which decides between a confirmed place and the standby list.
"""

from dataclasses import dataclass

from src.prokick import rules
from src.prokick.errors import PreconditionError
from src.prokick.flow import Outcome
from src.prokick.identity import dashboard_url
from src.prokick.logging import get_logger
from src.prokick.models import BookingResult, ScheduledClass, UserPackage
from src.prokick.pages.base import FlowPage, format_when
from src.prokick.standby import standby_counts

log = get_logger(__name__)

NO_PACKAGES = "No active packages found. Please buy a package on the dashboard first."
NO_SELECTION = "Please select a package to use."


@dataclass
class ClassSlot:
    scheduled_class: ScheduledClass
    queue_size: int = 0

    @property
    def class_id(self) -> str:
        return self.scheduled_class.id

    @property
    def is_full(self) -> bool:
        return self.scheduled_class.is_full


class BookingPage(FlowPage):
    name = "book"

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.classes: list[ScheduledClass] = []
        self.standby: dict[str, int] = {}
        self.packages: list[UserPackage] = []
        self.selected_package_id: str | None = None
        self.child_name: str | None = None

    def load(self) -> None:
        if self.identity.child_id is not None:
            self.child_name = self.store.get_child(self.identity.child_id).nickname
        self.reload()

    def reload(self) -> None:
        now = self.clock()
        self.classes = self.store.future_classes(now)
        self.standby = standby_counts(self.store.future_standby(now), now)
        self.packages = rules.usable_packages(
            self.store.active_packages(self.identity, with_sessions=True), now
        )
        # Keep a still-usable manual choice, otherwise fall back to auto-pick
        if self.selected_package_id not in {p.id for p in self.packages}:
            self.selected_package_id = rules.auto_select_package(self.packages, now)
        self.loaded = True
        log.info(
            "booking_page_loaded",
            user_id=self.identity.user_id,
            child_id=self.identity.child_id,
            classes=len(self.classes),
            packages=len(self.packages),
            selected=self.selected_package_id,
        )

    @property
    def booking_for(self) -> str:
        return self.child_name or "Myself (Parent)"

    @property
    def slots(self) -> list[ClassSlot]:
        return [ClassSlot(c, self.standby.get(c.id, 0)) for c in self.classes]

    @property
    def can_book(self) -> bool:
        return self.selected_package_id is not None and not self.flow.busy

    def select_package(self, package_id: str) -> None:
        """Choose the package a booking will draw on.

        Raises:
            PreconditionError: If it is not one of the usable packages.
        """
        if package_id not in {p.id for p in self.packages}:
            raise PreconditionError(f"Package {package_id!r} cannot be used for booking")
        self.selected_package_id = package_id

    def dashboard_route(self) -> str:
        return dashboard_url(self.identity)

    def request_booking(self, class_id: str) -> None:
        if not self.packages:
            self.flow.refuse("book", NO_PACKAGES)
            return
        if self.selected_package_id is None:
            self.flow.refuse("book", NO_SELECTION)
            return
        slot = next((s for s in self.slots if s.class_id == class_id), None)
        if slot is None:
            self.flow.refuse("book", "Class not found")
            return

        when = format_when(slot.scheduled_class.start_time)
        if slot.is_full:
            prompt = f"Class on {when} is full. Join the standby list? (Queue: {slot.queue_size})"
        else:
            prompt = f"Book the class on {when}?"
        package_id = self.selected_package_id
        self.flow.open("book", prompt, lambda: self._book(class_id, package_id))

    def _book(self, class_id: str, package_id: str) -> Outcome:
        result = self.store.book_class(self.identity.user_id, self.identity.child_id, package_id, class_id)
        log.info(
            "booking_submitted",
            class_id=class_id,
            package_id=package_id,
            success=result.success,
            status=result.status.value if result.status else None,
        )
        return Outcome(result.success, _booking_message(result), result)


def _booking_message(result: BookingResult) -> str:
    if not result.success:
        return f"Failed: {result.message or 'unknown reason'}"
    if result.is_standby:
        position = result.queue_position if result.queue_position is not None else "?"
        return (
            f"Added to Standby List! You are number {position} in the queue. "
            "No session deducted yet."
        )
    return "Booking Confirmed! See you on the field."
