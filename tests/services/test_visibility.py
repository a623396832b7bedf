"""Tests for the visibility policy."""

import pytest


@pytest.fixture()
async def people(make_user):
    return {handle: await make_user(handle) for handle in ("owner", "fan", "stranger", "tagged")}


async def test_content_visibility(container, people) -> None:
    policy = container.visibility
    await container.relationships.follow("user-fan", "user-owner")

    assert await policy.can_view_content("user-owner", "user-owner")
    assert await policy.can_view_content("user-fan", "user-owner")
    assert not await policy.can_view_content("user-stranger", "user-owner")
    assert policy.can_search_or_list_profile("user-stranger", "user-owner")


async def test_block_hides_content_from_both_sides(container, people) -> None:
    policy = container.visibility
    await container.relationships.follow("user-fan", "user-owner")
    await container.relationships.block("user-owner", "user-fan")

    assert not await policy.can_view_content("user-fan", "user-owner")
    assert not await policy.can_view_content("user-owner", "user-fan")


async def test_mentioned_users_see_the_post(container, people) -> None:
    post = await container.posts.create("user-owner", text="hi @tagged")
    assert await container.visibility.can_view_post("user-tagged", post)
    assert not await container.visibility.can_view_post("user-stranger", post)

    await container.relationships.block("user-owner", "user-tagged")
    assert not await container.visibility.can_view_post("user-tagged", post)


async def test_participants_may_keep_commenting(container, people) -> None:
    await container.relationships.follow("user-fan", "user-owner")
    post = await container.posts.create("user-owner", text="open thread")
    await container.comments.create("user-fan", post.id, "first")
    await container.relationships.unfollow("user-fan", "user-owner")

    assert await container.visibility.can_comment("user-fan", post)
    assert not await container.visibility.can_comment("user-stranger", post)
