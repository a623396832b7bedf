"""Follows, follow requests, blocks, profiles and search over HTTP."""

from fastapi import status


def test_follow_then_block(client, register) -> None:
    alice = register("alice")
    bob = register("bob")

    assert client.post("/follow", json={"handle": "bob"}, headers=alice).json() == {"ok": True}
    profile = client.get("/u/bob", headers=alice).json()
    assert profile["isFollowing"] is True
    assert profile["followerCount"] == 1

    r = client.post("/block", json={"userId": "user-alice"}, headers=bob)
    assert r.json() == {"success": True, "blocked": True}

    profile = client.get("/u/bob", headers=alice).json()
    assert profile["isFollowing"] is False
    assert profile["isPrivate"] is True
    assert client.get("/is-blocked", params={"userId": "user-bob"}, headers=alice).json() == {"blocked": True}
    assert [u["handle"] for u in client.get("/blocked", headers=bob).json()["items"]] == ["alice"]

    r = client.post("/follow", json={"handle": "bob"}, headers=alice)
    assert r.status_code == status.HTTP_403_FORBIDDEN

    client.post("/unblock", json={"userId": "user-alice"}, headers=bob)
    assert client.post("/follow", json={"handle": "bob"}, headers=alice).status_code == status.HTTP_200_OK


def test_follow_validation(client, register) -> None:
    alice = register("alice")
    assert client.post("/follow", json={"handle": "nobody"}, headers=alice).status_code == 404
    r = client.post("/follow", json={"handle": "alice"}, headers=alice)
    assert r.status_code == status.HTTP_400_BAD_REQUEST
    assert r.json() == {"message": "Cannot follow yourself"}


def test_follow_request_flow(client, register) -> None:
    alice = register("alice")
    bob = register("bob")

    assert client.post("/follow-request", json={"handle": "bob"}, headers=alice).json() == {"requested": True}
    client.post("/follow-request", json={"handle": "bob"}, headers=alice)
    requests = [n for n in client.get("/notifications", headers=bob).json()["items"] if n["type"] == "follow_request"]
    assert len(requests) == 1
    assert client.get("/u/bob", headers=alice).json()["followStatus"] == "pending"

    r = client.post("/follow-accept", json={}, headers=bob)
    assert r.status_code == status.HTTP_400_BAD_REQUEST
    assert r.json() == {"message": "Missing requesterId"}

    assert client.post("/follow-accept", json={"fromUserId": "user-alice"}, headers=bob).json() == {"accepted": True}
    assert client.get("/u/bob", headers=alice).json()["followStatus"] == "following"
    types = [n["type"] for n in client.get("/notifications", headers=alice).json()["items"]]
    assert types == ["follow_accept"]


def test_decline_and_cancel(client, register) -> None:
    alice = register("alice")
    bob = register("bob")

    client.post("/follow-request", json={"handle": "bob"}, headers=alice)
    assert client.post("/follow-cancel", json={"handle": "bob"}, headers=alice).json() == {"cancelled": True}
    assert client.get("/notifications", headers=bob).json()["items"] == []

    client.post("/follow-request", json={"handle": "bob"}, headers=alice)
    client.post("/follow-decline", json={"fromUserId": "user-alice"}, headers=bob)
    assert client.get("/u/bob", headers=alice).json()["followStatus"] == "none"
    types = [n["type"] for n in client.get("/notifications", headers=alice).json()["items"]]
    assert types == ["follow_declined"]


def test_profile_lists_and_search(client, register) -> None:
    alice = register("alice")
    bob = register("bob")
    client.post("/follow", json={"handle": "bob"}, headers=alice)

    followers = client.get("/u/bob/followers", headers=bob).json()["items"]
    assert [(u["handle"], u["isFollowing"]) for u in followers] == [("alice", False)]
    following = client.get("/u/alice/following", headers=bob).json()["items"]
    assert [u["handle"] for u in following] == ["bob"]

    results = client.get("/search", params={"q": "@bo"}, headers=alice).json()["items"]
    assert [(u["handle"], u["isFollowing"]) for u in results] == [("bob", True)]
    assert client.get("/u/nobody", headers=alice).status_code == status.HTTP_404_NOT_FOUND
