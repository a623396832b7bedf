"""Tests for comments, replies and their notifications."""

import pytest

from scooterbooter.core.errors import Forbidden, NotFound, ValidationError
from scooterbooter.services.visibility import COMMENT_FORBIDDEN


@pytest.fixture()
async def thread(container, make_user):
    for handle in ("alice", "bob", "carol"):
        await make_user(handle)
    await container.relationships.follow("user-bob", "user-alice")
    await container.relationships.follow("user-carol", "user-alice")
    return await container.posts.create("user-alice", text="thread")


async def _types(container, user_id):
    return sorted(n["type"] for n in await container.notifications.list_recent(user_id))


async def test_comment_notifies_post_owner(container, thread) -> None:
    comment = await container.comments.create("user-bob", thread.id, "  first  ")
    assert comment.text == "first"
    assert comment.user_handle == "bob"
    assert await _types(container, "user-alice") == ["comment", "follow", "follow"]

    (listed,) = await container.comments.list_for_post(thread.id)
    assert listed["id"] == comment.id
    assert listed["userHandle"] == "bob"


async def test_comment_requires_text_and_post(container, thread) -> None:
    with pytest.raises(ValidationError):
        await container.comments.create("user-bob", thread.id, "   ")
    with pytest.raises(NotFound):
        await container.comments.create("user-bob", "missing", "hi")


async def test_strangers_cannot_comment(container, thread, make_user) -> None:
    await make_user("dave")
    with pytest.raises(Forbidden) as err:
        await container.comments.create("user-dave", thread.id, "hello")
    assert err.value.message == COMMENT_FORBIDDEN


async def test_mentioned_users_may_comment_and_are_notified(container, make_user) -> None:
    await make_user("alice")
    await make_user("dave")
    post = await container.posts.create("user-alice", text="ping @dave")
    await container.comments.create("user-dave", post.id, "pong")
    assert "comment" in await _types(container, "user-alice")


async def test_reply_notifies_parent_author_and_flattens(container, thread) -> None:
    root = await container.comments.create("user-bob", thread.id, "root")
    reply = await container.comments.create("user-carol", thread.id, "reply", parent_comment_id=root.id)
    nested = await container.comments.create("user-alice", thread.id, "nested", parent_comment_id=reply.id)

    assert reply.parent_comment_id == root.id
    assert nested.parent_comment_id == root.id
    assert await _types(container, "user-bob") == ["reply", "reply"]
    with pytest.raises(NotFound):
        await container.comments.create("user-bob", thread.id, "x", parent_comment_id="missing")


async def test_comment_mentions_are_notified(container, thread) -> None:
    await container.comments.create("user-bob", thread.id, "look @carol")
    assert await _types(container, "user-carol") == ["mention"]


async def test_blocked_comment_text_is_refused(container, thread) -> None:
    with pytest.raises(Forbidden):
        await container.comments.create("user-bob", thread.id, "forbidden words")


async def test_update_is_author_only(container, thread) -> None:
    comment = await container.comments.create("user-bob", thread.id, "v1")
    with pytest.raises(Forbidden):
        await container.comments.update("user-carol", thread.id, comment.id, "v2")
    updated = await container.comments.update("user-bob", thread.id, comment.id, "v2")
    assert updated.text == "v2"
    assert updated.updated_at is not None


async def test_delete_cascades_replies_and_notifications(container, thread) -> None:
    root = await container.comments.create("user-bob", thread.id, "root @carol")
    await container.comments.create("user-carol", thread.id, "reply", parent_comment_id=root.id)
    other = await container.comments.create("user-carol", thread.id, "separate")

    with pytest.raises(Forbidden):
        await container.comments.delete("user-carol", thread.id, root.id)
    assert await container.comments.delete("user-bob", thread.id, root.id) == 2

    remaining = await container.comments.all_for_post(thread.id)
    assert [c.id for c in remaining] == [other.id]
    assert await _types(container, "user-bob") == []
    assert await _types(container, "user-carol") == []
    with pytest.raises(NotFound):
        await container.comments.delete("user-bob", thread.id, root.id)


async def test_find_by_id_uses_the_comment_index(container, thread) -> None:
    comment = await container.comments.create("user-bob", thread.id, "indexed")
    found = await container.comments.find_by_id(comment.id)
    assert found.post_id == thread.id
    assert await container.comments.find_by_id("missing") is None


async def test_deleting_a_comment_keeps_the_posts_own_mention(container, thread) -> None:
    post = await container.posts.create("user-alice", text="hi @carol")
    comment = await container.comments.create("user-alice", post.id, "again @carol")
    assert await _types(container, "user-carol") == ["mention", "mention"]

    await container.comments.delete("user-alice", post.id, comment.id)

    notes = await container.notifications.list_recent("user-carol")
    assert [(n["type"], n["postId"], n["commentId"]) for n in notes] == [("mention", post.id, None)]


async def test_deleting_one_comment_keeps_the_authors_other_comment_notification(container, thread) -> None:
    first = await container.comments.create("user-bob", thread.id, "one")
    second = await container.comments.create("user-bob", thread.id, "two")

    await container.comments.delete("user-bob", thread.id, first.id)

    comments = [n for n in await container.notifications.list_recent("user-alice") if n["type"] == "comment"]
    assert [n["commentId"] for n in comments] == [second.id]
