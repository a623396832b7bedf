"""Tests for user search."""


async def test_search_matches_handle_prefix_and_name_substring(container, make_user) -> None:
    await make_user("alice")
    await make_user("malice", full_name="Someone")
    await make_user("bob", full_name="Bob Alison")
    await container.relationships.follow("viewer", "user-alice")

    results = await container.search.search("viewer", "@Ali")
    by_handle = {item["handle"]: item for item in results}
    assert set(by_handle) == {"alice", "malice", "bob"}
    assert by_handle["alice"]["isFollowing"] is True
    assert by_handle["bob"]["fullName"] == "Bob Alison"
    assert len(results) == len({item["userId"] for item in results})


async def test_search_ignores_blank_queries(container) -> None:
    assert await container.search.search("viewer", "  @ ") == []


async def test_search_omits_blocked_users(container, make_user) -> None:
    await make_user("alice")
    await make_user("alina")
    await container.relationships.block("user-alina", "viewer")
    results = await container.search.search("viewer", "ali")
    assert [item["handle"] for item in results] == ["alice"]


async def test_search_caps_results(container, make_user) -> None:
    for i in range(30):
        await make_user(f"user_{i:02d}")
    assert len(await container.search.search("viewer", "user_")) == 25
