import pytest

from src.prokick.errors import PreconditionError
from src.prokick.pages.profiles import ProfileSelector


def test_lists_profiles_by_name_with_roles(store):
    selector = ProfileSelector(store)
    profiles = selector.load()
    assert [p.label for p in profiles] == ["Alice Parent (Parent - 1 kids)", "Bob Player (Player)"]


def test_select_returns_parent_identity(store):
    selector = ProfileSelector(store)
    selector.load()
    identity = selector.select("u2")
    assert identity.user_id == "u2"
    assert not identity.is_child
    assert selector.route("u1") == "/dashboard?userId=u1"


def test_select_unknown_profile(store):
    selector = ProfileSelector(store)
    selector.load()
    with pytest.raises(PreconditionError):
        selector.select("nobody")
