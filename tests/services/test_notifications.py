"""Tests for the notification ledger and push delivery."""

import pytest

from scooterbooter.core.errors import NotEnabled
from scooterbooter.services.notifications import NotificationLedger


async def test_self_notifications_are_dropped(container) -> None:
    assert await container.notifications.create("a", "follow", "a") is None
    assert await container.notifications.list_recent("a") == []


async def test_preference_gates_content_types_only(container, make_user) -> None:
    await make_user("alice")
    await container.identity.update_preferences("user-alice", {"mentions": False})
    ledger = container.notifications

    assert await ledger.create("user-alice", "mention", "b", "p1") is None
    assert await ledger.create("user-alice", "comment", "b", "p1") is not None
    assert await ledger.create("user-alice", "follow", "b") is not None


async def test_preferences_default_to_allow_on_lookup_failure(container, mocker) -> None:
    mocker.patch.object(container.identity, "get_user", side_effect=RuntimeError("down"))
    prefs = await container.notifications.preferences("anyone")
    assert prefs.mentions and prefs.comments and prefs.reactions


async def test_list_recent_enriches_and_marks_read(container, make_user) -> None:
    await make_user("bob")
    await container.identity.set_avatar("user-bob", "a/user-bob/x.jpg")
    await container.notifications.create("target", "comment", "user-bob", "post/1", "commented on your post")

    (entry,) = await container.notifications.list_recent("target", mark_read=True)
    assert entry["fromHandle"] == "bob"
    assert entry["avatarKey"] == "a/user-bob/x.jpg"
    assert entry["userUrl"] == "/u/bob"
    assert entry["postUrl"] == "/p/post%2F1"
    assert entry["read"] is True

    (again,) = await container.notifications.list_recent("target")
    assert again["read"] is True


async def test_delete_matching_uses_type_source_and_content(container) -> None:
    ledger = container.notifications
    await ledger.create("t", "reaction", "a", "p1")
    await ledger.create("t", "reaction", "a", "p2")
    await ledger.create("t", "reaction", "b", "p1")

    assert await ledger.delete_matching("t", "reaction", "a", "p1") == 1
    assert await ledger.delete_matching("t", "reaction", "a", "p1") == 0
    remaining = {(n["fromUserId"], n["postId"]) for n in await ledger.list_recent("t")}
    assert remaining == {("a", "p2"), ("b", "p1")}


async def test_delete_sent_and_received(container) -> None:
    ledger = container.notifications
    await ledger.create("t1", "mention", "src", "p1")
    await ledger.create("t2", "mention", "src", "p2")
    await ledger.create("src", "follow", "t1")

    assert await ledger.delete_sent("src", "p1") == 1
    assert await ledger.delete_sent("src") == 1
    assert await ledger.delete_received("src") == 1
    assert await ledger.list_recent("t1") == []
    assert await ledger.list_recent("t2") == []


async def test_push_goes_to_every_registered_token(container, make_user, push) -> None:
    await make_user("bob")
    await container.notifications.register_push_token("t", "ExponentPushToken[1]", "expo")
    await container.notifications.register_push_token("t", "ExponentPushToken[2]", "expo")
    await container.notifications.register_push_token("t", "ExponentPushToken[2]", "expo")

    await container.notifications.create("t", "reaction", "user-bob", "p1", "reacted to your post")

    assert sorted(m["to"] for m in push.messages) == ["ExponentPushToken[1]", "ExponentPushToken[2]"]
    assert push.messages[0]["title"] == "bob reacted"
    assert push.messages[0]["data"]["postId"] == "p1"


async def test_push_failure_never_fails_creation(container, push) -> None:
    push.fail = True
    await container.notifications.register_push_token("t", "tok")
    assert await container.notifications.create("t", "follow", "src") is not None
    assert len(await container.notifications.list_recent("t")) == 1


async def test_disabled_ledger(store, container) -> None:
    ledger = NotificationLedger(store, container.identity, enabled=False)
    assert await ledger.create("t", "follow", "s") is None
    assert await ledger.delete_matching("t", "follow", "s") == 0
    with pytest.raises(NotEnabled):
        await ledger.list_recent("t")
