"""Unit tests for the presence map."""

from connectblog.social.presence import PresenceMap


def test_register_and_resolve():
    presence = PresenceMap()
    presence.register(1, "conn-a")
    assert presence.resolve(1) == "conn-a"
    assert presence.resolve(2) is None


def test_last_registration_wins():
    presence = PresenceMap()
    presence.register(1, "conn-a")
    presence.register(1, "conn-b")
    assert presence.resolve(1) == "conn-b"
    assert len(presence) == 1


def test_unregister_removes_matching_connection():
    presence = PresenceMap()
    presence.register(1, "conn-a")
    assert presence.unregister("conn-a") == 1
    assert presence.resolve(1) is None


def test_stale_unregister_is_noop():
    """A disconnect from a replaced connection must not drop the newer one."""
    presence = PresenceMap()
    presence.register(1, "conn-a")
    presence.register(1, "conn-b")
    assert presence.unregister("conn-a") is None
    assert presence.resolve(1) == "conn-b"


def test_unregister_unknown():
    assert PresenceMap().unregister("nope") is None


def test_connection_serves_only_latest_user():
    presence = PresenceMap()
    presence.register(1, "conn-a")
    presence.register(2, "conn-a")
    assert presence.resolve(1) is None
    assert presence.resolve(2) == "conn-a"
    assert presence.unregister("conn-a") == 2
    assert len(presence) == 0
