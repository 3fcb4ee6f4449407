"""Standby queue depth, aggregated client-side from fetched booking rows."""

from collections import Counter
from collections.abc import Iterable
from datetime import datetime

from src.prokick.models import Booking, BookingStatus, StandbyRow


def standby_counts(bookings: Iterable[Booking | StandbyRow], now: datetime) -> dict[str, int]:
    """Count standby bookings per class for classes that have not happened yet.

    Rows without a ``class_date`` were already filtered to future classes by
    the query and are counted. Classes with an empty queue are absent.

    Returns:
        {class_id: waiting}, e.g. {"c1": 2}
    """
    counts: Counter[str] = Counter()
    for booking in bookings:
        if booking.status is not BookingStatus.STANDBY:
            continue
        if booking.class_date is not None and booking.class_date <= now:
            continue
        counts[booking.class_id] += 1
    return dict(counts)
