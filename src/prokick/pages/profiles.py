"""ProfileSelector - picks the identity every other page works for.

There is no login: a profile is chosen from the list and its id travels
in the query string.
"""

from src.prokick.errors import PreconditionError
from src.prokick.identity import Identity, dashboard_url
from src.prokick.logging import get_logger
from src.prokick.models import Profile
from src.prokick.store import BookingStore

log = get_logger(__name__)


class ProfileSelector:
    def __init__(self, store: BookingStore) -> None:
        self.store = store
        self.profiles: list[Profile] = []

    def load(self) -> list[Profile]:
        self.profiles = self.store.list_profiles()
        log.info("profiles_loaded", count=len(self.profiles))
        return self.profiles

    def select(self, user_id: str) -> Identity:
        """Return the parent identity of a listed profile.

        Raises:
            PreconditionError: If the id is not one of the loaded profiles.
        """
        if not any(p.id == user_id for p in self.profiles):
            raise PreconditionError(f"Unknown profile {user_id!r}")
        log.info("profile_selected", user_id=user_id)
        return Identity(user_id=user_id)

    def route(self, user_id: str) -> str:
        return dashboard_url(self.select(user_id))
