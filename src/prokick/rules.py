"""Client-side booking rules.

These are UX guards only. The backend procedures decide whether an action
is actually allowed; the client uses the same rules to disable controls
and to skip requests that would be refused anyway.
"""

from collections.abc import Iterable
from datetime import datetime, timedelta

from src.prokick.identity import Identity
from src.prokick.models import Booking, BookingStatus, PackageTemplate, PackageType, UserPackage

CANCELLATION_CUTOFF = timedelta(hours=2)
MAX_EXTRA_SESSIONS = 2


def is_cancellable(starts_at: datetime, now: datetime, cutoff: timedelta = CANCELLATION_CUTOFF) -> bool:
    """True while ``now`` is strictly before ``starts_at - cutoff``."""
    return now < starts_at - cutoff


def booking_cancellable(booking: Booking, now: datetime, cutoff: timedelta = CANCELLATION_CUTOFF) -> bool:
    if booking.status is BookingStatus.CANCELLED:
        return False
    return is_cancellable(booking.starts_at, now, cutoff)


def usable_packages(packages: Iterable[UserPackage], now: datetime) -> list[UserPackage]:
    return [pkg for pkg in packages if pkg.is_usable(now)]


def auto_select_package(packages: Iterable[UserPackage], now: datetime) -> str | None:
    """Id of the only usable package, or None when there are zero or several."""
    usable = usable_packages(packages, now)
    if len(usable) == 1:
        return usable[0].id
    return None


def can_buy_extra(package: UserPackage, max_extras: int = MAX_EXTRA_SESSIONS) -> bool:
    return package.extra_sessions_purchased < max_extras


def templates_for(identity: Identity, templates: Iterable[PackageTemplate]) -> list[PackageTemplate]:
    """Junior templates for a child, adult templates for the parent."""
    wanted = PackageType.JUNIOR if identity.is_child else PackageType.ADULT
    return [t for t in templates if t.type is wanted]
