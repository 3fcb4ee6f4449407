"""Behaviour shared by the pages that run actions."""

from abc import ABC, abstractmethod
from collections.abc import Callable
from datetime import datetime, timezone
from decimal import Decimal

from src.prokick.config import ProKickConfig, get_config
from src.prokick.errors import ProKickError
from src.prokick.flow import ActionFlow, FlowState
from src.prokick.identity import Identity
from src.prokick.logging import get_logger
from src.prokick.store import BookingStore

logger = get_logger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_price(value: Decimal | None) -> str:
    if value is None:
        return "?"
    if value == value.to_integral_value():
        return f"{int(value):,}"
    return f"{value:,.2f}"


def format_when(moment: datetime) -> str:
    """Render a timestamp in the machine's local time zone."""
    return moment.astimezone().strftime("%a %d %b %Y %H:%M")


class FlowPage(ABC):
    """A page bound to one identity, with one action flow and a reload.

    ``stale`` is set when a refresh failed and the shown data may be out
    of date; the next successful reload clears it.
    """

    name = "page"

    def __init__(
        self,
        store: BookingStore,
        identity: Identity,
        *,
        config: ProKickConfig | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self.store = store
        self.identity = identity
        self.config = config if config is not None else get_config()
        self.clock = clock
        self.flow = ActionFlow()
        self.loaded = False
        self.stale = False

    @abstractmethod
    def reload(self) -> None:
        """Refetch the identity's data from the backend."""

    def _refresh(self, reason: str) -> bool:
        # The action (if any) already landed remotely; a failed refetch only
        # leaves the page stale
        try:
            self.reload()
        except ProKickError as e:
            self.stale = True
            logger.warning(
                "reload_failed",
                page=self.name,
                reason=reason,
                user_id=self.identity.user_id,
                error=str(e),
                type=type(e).__name__,
            )
            return False
        self.stale = False
        return True

    def confirm(self) -> FlowState:
        """Submit the pending action; reload the page data when it succeeded.

        The flow stays SUCCEEDED even if the reload fails.
        """
        state = self.flow.confirm()
        if state is FlowState.SUCCEEDED:
            self._refresh("action_succeeded")
        return state

    def abort(self) -> None:
        self.flow.abort()

    def acknowledge(self) -> None:
        self.flow.acknowledge()

    def on_focus(self) -> bool:
        """Refresh in the background when the page regains focus.

        Returns:
            True if data was reloaded, False if skipped (not loaded yet or
            an action is being submitted) or if the refresh failed.
        """
        if not self.loaded or self.flow.busy:
            return False
        logger.debug("focus_refresh", page=self.name, user_id=self.identity.user_id)
        return self._refresh("focus")
