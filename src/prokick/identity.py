"""Active booking identity and the routes that carry it.

There is no server-side session: the identity is whatever ``userId`` (and
optionally ``childId``) the previous page put in the query string.
"""

from collections.abc import Mapping
from urllib.parse import urlencode

from pydantic import BaseModel, ConfigDict

from src.prokick.errors import PreconditionError

DASHBOARD_ROUTE = "/dashboard"
BOOK_ROUTE = "/book"


class Identity(BaseModel):
    """A parent acting for themselves (``child_id`` unset) or for one child."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    child_id: str | None = None

    @property
    def is_child(self) -> bool:
        return self.child_id is not None

    @property
    def owner_id(self) -> str:
        return self.child_id if self.child_id is not None else self.user_id

    def for_child(self, child_id: str | None) -> "Identity":
        return Identity(user_id=self.user_id, child_id=child_id)

    def query_params(self) -> dict[str, str]:
        params = {"userId": self.user_id}
        if self.child_id:
            params["childId"] = self.child_id
        return params

    def url(self, route: str) -> str:
        return f"{route}?{urlencode(self.query_params())}"

    @classmethod
    def from_query(cls, params: Mapping[str, str]) -> "Identity":
        """Build an identity from ``userId`` / ``childId`` query parameters.

        Raises:
            PreconditionError: If ``userId`` is missing or empty.
        """
        user_id = params.get("userId")
        if not user_id:
            raise PreconditionError("No user selected")
        return cls(user_id=user_id, child_id=params.get("childId") or None)


def dashboard_url(identity: Identity) -> str:
    return identity.url(DASHBOARD_ROUTE)


def booking_url(identity: Identity) -> str:
    return identity.url(BOOK_ROUTE)
