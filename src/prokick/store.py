"""Typed access to the ProKick tables and remote procedures.

BookingStore is the validation boundary: every row leaving it is a model
from ``models`` and every procedure payload is an ActionResult or
BookingResult. The procedures themselves (capacity checks, standby
ordering, session arithmetic) run on the backend.
"""

from datetime import datetime
from typing import Any, TypeVar

from pydantic import BaseModel, TypeAdapter, ValidationError

from src.prokick.client import DataClient
from src.prokick.errors import BackendError, SchemaError
from src.prokick.identity import Identity
from src.prokick.logging import get_logger
from src.prokick.models import (
    ActionResult,
    Booking,
    BookingResult,
    BookingStatus,
    ChildProfile,
    PackageTemplate,
    Profile,
    ScheduledClass,
    StandbyRow,
    UserPackage,
)

logger = get_logger(__name__)

M = TypeVar("M", bound=BaseModel)


def _rows(model: type[M], data: Any, table: str) -> list[M]:
    try:
        return TypeAdapter(list[model]).validate_python(data or [])
    except ValidationError as e:
        logger.error("schema_mismatch", table=table, errors=e.error_count())
        raise SchemaError(f"Unexpected {table} rows: {e}") from e


def _row(model: type[M], data: Any, table: str) -> M:
    try:
        return model.model_validate(data)
    except ValidationError as e:
        logger.error("schema_mismatch", table=table, errors=e.error_count())
        raise SchemaError(f"Unexpected {table} row: {e}") from e


class BookingStore:
    """Reads and procedure calls used by the three pages."""

    def __init__(self, client: DataClient) -> None:
        self.client = client

    # -- reads ---------------------------------------------------------------

    def list_profiles(self) -> list[Profile]:
        data = self.client.table("profiles").select("*, child_profiles(id)").order("full_name").execute()
        return _rows(Profile, data, "profiles")

    def get_profile(self, user_id: str) -> Profile:
        data = self.client.select("profiles", filters=[("id", "eq", user_id)], single=True)
        return _row(Profile, data, "profiles")

    def list_children(self, parent_id: str) -> list[ChildProfile]:
        data = self.client.table("child_profiles").select("*").eq("parent_id", parent_id).execute()
        return _rows(ChildProfile, data, "child_profiles")

    def get_child(self, child_id: str) -> ChildProfile:
        data = self.client.table("child_profiles").select("*").eq("id", child_id).single().execute()
        return _row(ChildProfile, data, "child_profiles")

    def list_templates(self) -> list[PackageTemplate]:
        data = self.client.select("package_templates", order=["price"])
        return _rows(PackageTemplate, data, "package_templates")

    def active_packages(self, identity: Identity, *, with_sessions: bool = False) -> list[UserPackage]:
        """Active packages owned by the identity, template embedded.

        Args:
            identity: Parent (packages with no child) or one child.
            with_sessions: Only packages with at least one session left.
        """
        query = self.client.table("user_packages").select("*, package_templates(*)").eq("status", "active")
        if with_sessions:
            query = query.gt("remaining_sessions", 0)
        if identity.is_child:
            query = query.eq("child_id", identity.child_id)
        else:
            query = query.eq("user_id", identity.user_id).is_("child_id", None)
        return _rows(UserPackage, query.execute(), "user_packages")

    def open_bookings(self, identity: Identity) -> list[Booking]:
        """Non-cancelled bookings of the identity, soonest first."""
        query = (
            self.client.table("bookings")
            .select("*, classes(*), child_profiles(nickname)")
            .neq("status", BookingStatus.CANCELLED.value)
            .order("class_date")
        )
        if identity.is_child:
            query = query.eq("child_id", identity.child_id)
        else:
            query = query.eq("user_id", identity.user_id).is_("child_id", None)
        return _rows(Booking, query.execute(), "bookings")

    def future_classes(self, now: datetime) -> list[ScheduledClass]:
        data = self.client.select("classes", filters=[("start_time", "gt", now)], order=["start_time"])
        return _rows(ScheduledClass, data, "classes")

    def future_standby(self, now: datetime) -> list[StandbyRow]:
        """Standby rows of every user for classes that have not started."""
        data = (
            self.client.table("bookings")
            .select("class_id, status, class_date")
            .eq("status", BookingStatus.STANDBY.value)
            .gt("class_date", now)
            .execute()
        )
        return _rows(StandbyRow, data, "bookings")

    # -- remote procedures ---------------------------------------------------

    def book_class(self, user_id: str, child_id: str | None, package_id: str, class_id: str) -> BookingResult:
        data = self.client.rpc(
            "book_class",
            {"user_id": user_id, "child_id": child_id, "package_id": package_id, "class_id": class_id},
        )
        return _result(BookingResult, data, "book_class")

    def cancel_booking(self, booking_id: str, user_id: str) -> ActionResult:
        data = self.client.rpc("cancel_booking", {"booking_id": booking_id, "user_id": user_id})
        return _result(ActionResult, data, "cancel_booking")

    def buy_new_package(self, user_id: str, child_id: str | None, template_id: int) -> ActionResult:
        data = self.client.rpc(
            "buy_new_package", {"user_id": user_id, "child_id": child_id, "template_id": template_id}
        )
        return _result(ActionResult, data, "buy_new_package")

    def buy_extra_session(self, user_id: str, package_id: str) -> ActionResult:
        data = self.client.rpc("buy_extra_session", {"user_id": user_id, "package_id": package_id})
        return _result(ActionResult, data, "buy_extra_session")


def _result(model: type[M], data: Any, rpc: str) -> M:
    # An empty or malformed payload is an error object, not a rejection
    if not isinstance(data, dict):
        raise BackendError(f"{rpc} returned no result")
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise BackendError(f"{rpc} returned an unexpected result: {e}") from e
