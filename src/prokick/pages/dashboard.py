"""DashboardPage - packages, upcoming bookings, purchases and cancellation.

Shows the active packages and non-cancelled bookings of one identity (the
parent or one of their children) and runs the three dashboard actions:
cancel a booking, buy a package, buy an extra session. Each action is a
single remote procedure call; on success the page reloads.
"""

from datetime import timedelta

from src.prokick import rules
from src.prokick.errors import PreconditionError
from src.prokick.flow import Outcome
from src.prokick.identity import Identity, booking_url
from src.prokick.logging import get_logger
from src.prokick.models import Booking, BookingStatus, ChildProfile, PackageTemplate, Profile, UserPackage
from src.prokick.pages.base import FlowPage, format_price

log = get_logger(__name__)

TOO_LATE = "Too late to cancel"


class DashboardPage(FlowPage):
    """Dashboard for a parent and their children.

    The parent id stays fixed; ``identity`` switches between the parent
    and a child via switch_profile().
    """

    name = "dashboard"

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.user_id = self.identity.user_id
        self.profile: Profile | None = None
        self.children: list[ChildProfile] = []
        self.templates: list[PackageTemplate] = []
        self.packages: list[UserPackage] = []
        self.bookings: list[Booking] = []

    @property
    def cutoff(self) -> timedelta:
        return timedelta(hours=self.config.cancellation_cutoff_hours)

    # -- loading -------------------------------------------------------------

    def load(self) -> None:
        """Fetch the profile, children and catalog, then the identity's data."""
        self.profile = self.store.get_profile(self.user_id)
        self.children = self.store.list_children(self.user_id)
        self.templates = self.store.list_templates()
        if self.identity.child_id is not None and self._child(self.identity.child_id) is None:
            raise PreconditionError(f"Unknown child profile {self.identity.child_id!r}")
        self.reload()

    def reload(self) -> None:
        self.packages = self.store.active_packages(self.identity)
        self.bookings = self.store.open_bookings(self.identity)
        self.loaded = True
        log.info(
            "dashboard_loaded",
            user_id=self.user_id,
            child_id=self.identity.child_id,
            packages=len(self.packages),
            bookings=len(self.bookings),
        )

    def switch_profile(self, child_id: str | None) -> None:
        """Show the parent (``None``) or one of the loaded children.

        Raises:
            PreconditionError: If the child does not belong to this parent.
        """
        if child_id is not None and self._child(child_id) is None:
            raise PreconditionError(f"Unknown child profile {child_id!r}")
        self.identity = self.identity.for_child(child_id)
        self.reload()

    def _child(self, child_id: str) -> ChildProfile | None:
        return next((c for c in self.children if c.id == child_id), None)

    # -- derived state -------------------------------------------------------

    @property
    def active_name(self) -> str:
        if self.identity.child_id is not None:
            child = self._child(self.identity.child_id)
            if child is not None:
                return child.nickname
        return self.profile.full_name if self.profile else self.user_id

    @property
    def available_templates(self) -> list[PackageTemplate]:
        return rules.templates_for(self.identity, self.templates)

    def can_cancel(self, booking: Booking) -> bool:
        return rules.booking_cancellable(booking, self.clock(), self.cutoff)

    def can_buy_extra(self, package: UserPackage) -> bool:
        return rules.can_buy_extra(package, self.config.max_extra_sessions)

    def booking_route(self) -> str:
        return booking_url(self.identity)

    def _booking(self, booking_id: str) -> Booking | None:
        return next((b for b in self.bookings if b.id == booking_id), None)

    def _package(self, package_id: str) -> UserPackage | None:
        return next((p for p in self.packages if p.id == package_id), None)

    # -- actions -------------------------------------------------------------

    def request_cancel(self, booking_id: str) -> None:
        booking = self._booking(booking_id)
        if booking is None:
            self.flow.refuse("cancel", "Booking not found")
            return
        if not self.can_cancel(booking):
            self.flow.refuse("cancel", TOO_LATE)
            return
        self.flow.open(
            "cancel",
            "Are you sure you want to cancel this booking?",
            lambda: self._cancel(booking),
        )

    def _cancel(self, booking: Booking) -> Outcome:
        # The cutoff may have passed while the prompt was open
        if not self.can_cancel(booking):
            raise PreconditionError(TOO_LATE)
        result = self.store.cancel_booking(booking.id, self.user_id)
        log.info("booking_cancel_submitted", booking_id=booking.id, success=result.success)
        if not result.success:
            return Outcome(False, f"Cancellation Failed: {result.message or 'unknown reason'}", result)
        if booking.status is BookingStatus.STANDBY:
            return Outcome(True, "Removed from the standby list.", result)
        return Outcome(True, "Booking Cancelled. Session has been refunded.", result)

    def request_buy_package(self, template_id: int) -> None:
        template = next((t for t in self.available_templates if t.id == template_id), None)
        if template is None:
            self.flow.refuse("buy_package", "This package is not available for this profile")
            return
        self.flow.open(
            "buy_package",
            f"Confirm purchase of {template.name} for {format_price(template.price)} {self.config.currency}?",
            lambda: self._buy_package(template),
        )

    def _buy_package(self, template: PackageTemplate) -> Outcome:
        result = self.store.buy_new_package(self.user_id, self.identity.child_id, template.id)
        log.info("package_purchase_submitted", template_id=template.id, success=result.success)
        if result.success:
            return Outcome(True, "Purchased!", result)
        return Outcome(False, result.message or "Purchase failed", result)

    def request_buy_extra(self, package_id: str) -> None:
        package = self._package(package_id)
        if package is None:
            self.flow.refuse("buy_extra", "Package not found")
            return
        if not self.can_buy_extra(package):
            self.flow.refuse("buy_extra", "Max Extras Reached")
            return
        price = package.template.extra_session_price if package.template else None
        self.flow.open(
            "buy_extra",
            f"Buy 1 Extra Session for {format_price(price)} {self.config.currency}?",
            lambda: self._buy_extra(package),
        )

    def _buy_extra(self, package: UserPackage) -> Outcome:
        result = self.store.buy_extra_session(self.user_id, package.id)
        log.info("extra_session_submitted", package_id=package.id, success=result.success)
        if result.success:
            return Outcome(True, "Extra session added!", result)
        return Outcome(False, result.message or "Purchase failed", result)
