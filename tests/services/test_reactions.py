"""Tests for reaction toggling and counters."""

import asyncio

import pytest

from scooterbooter.core.errors import NotFound, ValidationError
from scooterbooter.db import keys


@pytest.fixture()
async def post(container, make_user):
    await make_user("alice")
    await make_user("bob")
    return await container.posts.create("user-alice", text="react to me")


async def _reaction_notes(container):
    return [n for n in await container.notifications.list_recent("user-alice") if n["type"] == "reaction"]


async def test_toggle_adds_then_removes(container, post) -> None:
    assert await container.reactions.toggle("user-bob", post.id, "🔥") == ["🔥"]
    summary = await container.reactions.summary(post.id, "user-bob")
    assert summary == {"counts": {"🔥": 1}, "my": ["🔥"]}
    assert len(await _reaction_notes(container)) == 1

    assert await container.reactions.toggle("user-bob", post.id, "🔥") == []
    summary = await container.reactions.summary(post.id, "user-bob")
    assert summary == {"counts": {}, "my": []}
    assert await _reaction_notes(container) == []


async def test_switching_moves_the_count(container, post, store) -> None:
    await container.reactions.toggle("user-bob", post.id, "🔥")
    await container.reactions.toggle("user-bob", post.id, "😂")

    summary = await container.reactions.summary(post.id, "user-alice", who=True)
    assert summary["counts"] == {"😂": 1}
    assert summary["my"] == []
    assert summary["who"] == {"😂": [{"userId": "user-bob", "handle": "bob", "avatarKey": None}]}
    assert await store.get(keys.reaction_count_key(post.id, "🔥")) is None
    assert len(await _reaction_notes(container)) == 1


async def test_repeated_toggles_never_go_negative(container, post) -> None:
    for _ in range(5):
        await container.reactions.toggle("user-bob", post.id, "🔥")
    summary = await container.reactions.summary(post.id, "user-bob")
    assert summary["counts"] == {"🔥": 1}


async def test_counts_are_clamped_on_read(container, post, store) -> None:
    await store.put({"pk": keys.reactions_partition(post.id), "sk": "COUNT#👍", "count": -3})
    assert (await container.reactions.summary(post.id, None))["counts"] == {}


async def test_own_reaction_does_not_notify(container, post) -> None:
    await container.reactions.toggle("user-alice", post.id, "🔥")
    assert await _reaction_notes(container) == []


@pytest.mark.parametrize("emoji", ["", "   ", None])
async def test_invalid_emoji(container, post, emoji) -> None:
    with pytest.raises(ValidationError):
        await container.reactions.toggle("user-bob", post.id, emoji)


async def test_summary_degrades_on_store_failure(container, post, store, mocker) -> None:
    mocker.patch.object(store, "query", side_effect=RuntimeError("down"))
    summary = await container.reactions.summary(post.id, "user-bob")
    assert summary["counts"] == {} and summary["my"] == []


async def test_remove_all_by_decrements_counters(container, post) -> None:
    await container.reactions.toggle("user-bob", post.id, "🔥")
    await container.reactions.toggle("user-alice", post.id, "🔥")
    assert await container.reactions.remove_all_by("user-bob") == 1
    summary = await container.reactions.summary(post.id, "user-alice")
    assert summary == {"counts": {"🔥": 1}, "my": ["🔥"]}


async def test_concurrent_first_reactions_are_all_counted(container, post, make_user) -> None:
    reactors = [(await make_user(f"fan{n}")).user_id for n in range(6)]

    results = await asyncio.gather(*(container.reactions.toggle(uid, post.id, "x") for uid in reactors))

    assert results == [["x"]] * 6
    summary = await container.reactions.summary(post.id, None, who=True)
    assert summary["counts"] == {"x": 6}
    assert sorted(entry["userId"] for entry in summary["who"]["x"]) == sorted(reactors)


async def test_reacting_to_a_missing_post_writes_nothing(container, post, store) -> None:
    with pytest.raises(NotFound):
        await container.reactions.toggle("user-bob", "missing", "🔥")
    assert await store.query(keys.reactions_partition("missing")) == []


async def test_post_lookup_failure_still_records_the_reaction(container, post, mocker) -> None:
    mocker.patch.object(container.posts, "find", side_effect=RuntimeError("store down"))

    assert await container.reactions.toggle("user-bob", post.id, "🔥") == ["🔥"]
    assert (await container.reactions.summary(post.id, "user-bob"))["counts"] == {"🔥": 1}
    assert await _reaction_notes(container) == []
