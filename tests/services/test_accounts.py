"""Tests for account deletion."""

from scooterbooter.core.outcome import failed
from scooterbooter.db import keys


async def test_delete_account_removes_everything(container, store, make_user, identity_provider) -> None:
    await make_user("alice")
    await make_user("bob")
    await container.relationships.follow("user-bob", "user-alice")
    await container.relationships.follow("user-alice", "user-bob")
    await container.relationships.block("user-bob", "user-carol")

    alice_post = await container.posts.create("user-alice", text="hello")
    bob_post = await container.posts.create("user-bob", text="mine @alice")
    await container.comments.create("user-bob", alice_post.id, "nice")
    await container.reactions.toggle("user-bob", alice_post.id, "🔥")
    await container.notifications.register_push_token("user-bob", "ExponentPushToken[bob]")
    await container.invites.personal_code("user-bob")
    await container.scoops.create("user-bob", media_key="u/user-bob/s.jpg", media_type="image")

    outcomes = await container.accounts.delete_account("user-bob", "bob-login")

    assert failed(outcomes) == []
    assert identity_provider.deleted == ["bob-login"]
    assert await container.identity.get_user("user-bob") is None
    assert await container.identity.find_user_id("bob") is None
    assert await container.posts.find(bob_post.id) is None
    assert await container.comments.all_for_post(alice_post.id) == []
    assert (await container.reactions.summary(alice_post.id, None))["counts"] == {}
    assert await container.notifications.list_recent("user-alice") == []
    assert await container.relationships.list_followers("user-alice") == []
    assert await container.relationships.list_following("user-alice") == []
    for partition in (
        keys.push_tokens_partition("user-bob"),
        keys.scoops_partition("user-bob"),
        keys.blocks_partition("user-bob"),
        keys.notifications_partition("user-bob"),
    ):
        assert await store.query(partition) == []
    assert await store.query(keys.inviter_index("user-bob"), index="gsi1") == []


async def test_failed_steps_do_not_stop_the_rest(container, make_user, mocker) -> None:
    await make_user("bob")
    mocker.patch.object(container.reactions, "remove_all_by", side_effect=RuntimeError("boom"))

    outcomes = await container.accounts.delete_account("user-bob")

    assert [o.label for o in failed(outcomes)] == ["delete-account:reactions"]
    assert await container.identity.get_user("user-bob") is None
    assert outcomes[-1].label == "delete-account:credential"


async def test_profile_lookup_failure_still_runs_every_step(container, store, make_user, mocker) -> None:
    await make_user("alice")
    await make_user("bob")
    await container.relationships.follow("user-bob", "user-alice")
    bob_post = await container.posts.create("user-bob", text="hello @alice")
    mocker.patch.object(container.identity, "get_user", side_effect=RuntimeError("store down"))

    outcomes = await container.accounts.delete_account("user-bob")

    assert [o.label for o in failed(outcomes)] == ["delete-account:lookup"]
    labels = [o.label for o in outcomes]
    assert "delete-account:handle" not in labels
    assert "delete-account:profile" in labels
    assert await store.get(keys.user_key("user-bob")) is None
    assert await store.query(keys.post_id_index(bob_post.id), index="gsi2") == []
    assert await store.query(keys.following_partition("user-bob")) == []
    assert await store.query(keys.notifications_partition("user-alice")) == []


async def test_one_failing_post_does_not_keep_the_others(container, store, make_user, mocker) -> None:
    await make_user("bob")
    first = await container.posts.create("user-bob", text="one")
    second = await container.posts.create("user-bob", text="two")
    third = await container.posts.create("user-bob", text="three")
    original = container.posts.delete

    async def flaky_delete(user_id, post_id):
        if post_id == second.id:
            raise RuntimeError("store down")
        return await original(user_id, post_id)

    mocker.patch.object(container.posts, "delete", side_effect=flaky_delete)

    outcomes = await container.accounts.delete_account("user-bob")

    posts_step = next(o for o in outcomes if o.label == "delete-account:posts")
    assert posts_step.ok and posts_step.value == 2
    assert await container.posts.find(first.id) is None
    assert await container.posts.find(third.id) is None
    assert (await container.posts.find(second.id)).id == second.id
