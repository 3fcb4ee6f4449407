"""ProKick booking client.

Typed access to the ProKick backend (profiles, packages, classes, bookings)
and the page controllers that book classes, manage standby places, buy
packages and cancel bookings through the backend's remote procedures.
"""

from src.prokick.client import DataClient
from src.prokick.flow import ActionFlow, FlowState
from src.prokick.identity import Identity
from src.prokick.pages.book import BookingPage, ClassSlot
from src.prokick.pages.dashboard import DashboardPage
from src.prokick.pages.profiles import ProfileSelector
from src.prokick.standby import standby_counts
from src.prokick.store import BookingStore

__all__ = [
    "ActionFlow",
    "BookingPage",
    "BookingStore",
    "ClassSlot",
    "DashboardPage",
    "DataClient",
    "FlowState",
    "Identity",
    "ProfileSelector",
    "standby_counts",
]
