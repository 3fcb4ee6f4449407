from datetime import datetime, timedelta, timezone

import pytest

from src.prokick.config import ProKickConfig
from src.prokick.models import PackageType
from tests.fakes import FakeStore, make_class, make_template

NOW = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def clock():
    """Mutable clock: set ``clock.now`` to move time."""

    class Clock:
        def __init__(self) -> None:
            self.now = NOW

        def __call__(self) -> datetime:
            return self.now

    return Clock()


@pytest.fixture
def config():
    return ProKickConfig(
        _env_file=None,
        supabase_url="http://backend.test",
        supabase_anon_key="anon-key",
        read_retry_attempts=3,
        retry_wait_seconds=0,
    )


@pytest.fixture
def store():
    """A parent with one child, an adult and a junior template, two classes."""
    fake = FakeStore(NOW)
    fake.add_profile("u1", "Alice Parent")
    fake.add_profile("u2", "Bob Player")
    fake.add_child("k1", "u1", "Timmy")
    fake.add_template(make_template(1, "Adult 10", PackageType.ADULT, 3500))
    fake.add_template(make_template(2, "Junior 8", PackageType.JUNIOR, 2800, sessions=8))
    fake.add_class(make_class("open", NOW + timedelta(days=1), capacity=10, current=4))
    fake.add_class(make_class("full", NOW + timedelta(days=2), capacity=10, current=10))
    return fake
