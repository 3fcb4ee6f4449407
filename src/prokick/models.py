"""Pydantic models for rows and procedure results returned by the backend.

All data structures use Pydantic v2 for validation, serialization, and type safety.
Embedded relations use the backend's table names as aliases (``classes``,
``package_templates``, ``child_profiles``) and readable attribute names.
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, model_validator


def _as_utc(value: datetime) -> datetime:
    # Timestamps without an offset are stored as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


UtcDatetime = Annotated[datetime, AfterValidator(_as_utc)]


class PackageType(str, Enum):
    ADULT = "adult"
    JUNIOR = "junior"


class BookingStatus(str, Enum):
    BOOKED = "booked"
    STANDBY = "standby"
    CANCELLED = "cancelled"


class Record(BaseModel):
    """Base for backend rows: numeric ids coerce to str, unknown columns are ignored."""

    model_config = ConfigDict(
        coerce_numbers_to_str=True,
        populate_by_name=True,
        extra="ignore",
    )


class ChildRef(Record):
    id: str


class Profile(Record):
    """Adult identity, the only thing a user picks to "log in"."""

    id: str
    full_name: str
    role: str | None = None
    children: list[ChildRef] = Field(default_factory=list, alias="child_profiles")

    @property
    def child_count(self) -> int:
        return len(self.children)

    @property
    def is_parent(self) -> bool:
        return self.child_count > 0

    @property
    def label(self) -> str:
        if self.is_parent:
            return f"{self.full_name} (Parent - {self.child_count} kids)"
        return f"{self.full_name} (Player)"


class ChildProfile(Record):
    id: str
    parent_id: str
    nickname: str


class ChildName(Record):
    nickname: str


class PackageTemplate(Record):
    """Catalog entry a package is bought from."""

    id: int
    name: str
    type: PackageType
    price: Decimal
    session_count: int
    days_valid: int
    extra_session_price: Decimal | None = None


class UserPackage(Record):
    """A purchased package owned by a profile or by one child.

    Child packages carry the paying parent in ``user_id`` as well, so the
    owner is the child whenever ``child_id`` is set.
    """

    id: str
    user_id: str | None = None
    child_id: str | None = None
    template_id: int | None = None
    remaining_sessions: int
    expiry_date: UtcDatetime
    status: str
    extra_sessions_purchased: int = 0
    template: PackageTemplate | None = Field(default=None, alias="package_templates")

    @model_validator(mode="after")
    def _check_owner(self) -> "UserPackage":
        if self.user_id is None and self.child_id is None:
            raise ValueError(f"package {self.id} has no owner")
        return self

    @property
    def owner_id(self) -> str:
        return self.child_id if self.child_id is not None else self.user_id

    @property
    def name(self) -> str:
        return self.template.name if self.template else f"Package {self.id}"

    @property
    def is_active(self) -> bool:
        return self.status == "active"

    def is_expired(self, now: datetime) -> bool:
        return self.expiry_date <= now

    def is_usable(self, now: datetime) -> bool:
        """Active, not expired, and with at least one session left."""
        return self.is_active and not self.is_expired(now) and self.remaining_sessions > 0


class ScheduledClass(Record):
    """A class on the schedule (the ``classes`` table)."""

    id: str
    start_time: UtcDatetime
    location: str | None = None
    max_capacity: int
    current_bookings: int = 0

    @property
    def is_full(self) -> bool:
        return self.current_bookings >= self.max_capacity

    @property
    def spots_label(self) -> str:
        return f"{self.current_bookings} / {self.max_capacity}"


class Booking(Record):
    id: str
    class_id: str
    user_id: str | None = None
    child_id: str | None = None
    package_id: str | None = None
    status: BookingStatus
    standby_order: int | None = None
    class_date: UtcDatetime
    scheduled_class: ScheduledClass | None = Field(default=None, alias="classes")
    child: ChildName | None = Field(default=None, alias="child_profiles")

    @model_validator(mode="after")
    def _check_owner(self) -> "Booking":
        if self.user_id is None and self.child_id is None:
            raise ValueError(f"booking {self.id} has no owner")
        # A queue position only means something while queued
        if self.status is not BookingStatus.STANDBY:
            self.standby_order = None
        return self

    @property
    def starts_at(self) -> datetime:
        if self.scheduled_class is not None:
            return self.scheduled_class.start_time
        return self.class_date

    @property
    def queue_position(self) -> int | None:
        return self.standby_order

    @property
    def child_nickname(self) -> str | None:
        return self.child.nickname if self.child else None


class StandbyRow(Record):
    """Projection used for queue depth: only the class a standby row waits on."""

    class_id: str
    status: BookingStatus = BookingStatus.STANDBY
    class_date: UtcDatetime | None = None


class ActionResult(BaseModel):
    """Payload of cancel_booking, buy_new_package and buy_extra_session."""

    model_config = ConfigDict(extra="ignore")

    success: bool
    message: str | None = None


class BookingResult(ActionResult):
    """Payload of book_class."""

    status: BookingStatus | None = None
    queue_position: int | None = None

    @property
    def is_standby(self) -> bool:
        return self.status is BookingStatus.STANDBY
