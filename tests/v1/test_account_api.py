"""The caller's own account: handle, profile, preferences, invites, deletion."""

from fastapi import status


def test_claim_and_change_handle(client, auth_headers) -> None:
    headers = auth_headers("user-a")
    r = client.post("/username", json={"username": "Alice_1"}, headers=headers)
    assert r.json() == {"handle": "alice_1"}

    r = client.post("/username", json={"handle": "no"}, headers=auth_headers("user-b"))
    assert r.status_code == status.HTTP_400_BAD_REQUEST
    assert r.json() == {"message": "Handle must be 3-20 chars, letters/numbers/underscore"}

    r = client.post("/username", json={"handle": "alice_1"}, headers=auth_headers("user-b"))
    assert r.status_code == status.HTTP_409_CONFLICT

    r = client.patch("/me", json={"userHandle": "alice_2", "fullName": "Alice A"}, headers=headers)
    assert r.json() == {"ok": True, "fullName": "Alice A", "handle": "alice_2"}
    assert client.get("/u/alice_1", headers=headers).status_code == status.HTTP_404_NOT_FOUND
    assert client.get("/u/alice_2", headers=headers).json()["fullName"] == "Alice A"


def test_avatar_terms_and_push_registration(client, register) -> None:
    headers = register("alice")
    assert client.post("/me/avatar", json={}, headers=headers).status_code == status.HTTP_400_BAD_REQUEST
    client.post("/me/avatar", json={"key": "a/user-alice/1.jpg"}, headers=headers)
    client.post("/me/accept-terms", headers=headers)

    me = client.get("/me", headers=headers).json()
    assert me["avatarKey"] == "a/user-alice/1.jpg"
    assert me["termsAccepted"] is True

    r = client.post("/push/register", json={"token": "ExponentPushToken[x]"}, headers=headers)
    assert r.json() == {"success": True, "registered": True}
    assert client.post("/push/register", json={}, headers=headers).status_code == status.HTTP_400_BAD_REQUEST


def test_notification_preferences_gate_delivery(client, register, push) -> None:
    alice = register("alice")
    bob = register("bob")
    client.post("/push/register", json={"token": "tok-alice"}, headers=alice)

    assert client.get("/me/notification-preferences", headers=alice).json() == {
        "mentions": True,
        "comments": True,
        "reactions": True,
    }
    r = client.patch("/me/notification-preferences", json={"mentions": False, "bogus": 1}, headers=alice)
    assert r.json()["mentions"] is False
    assert client.patch("/me/notification-preferences", json={"x": True}, headers=alice).status_code == 400

    client.post("/posts", json={"text": "hi @alice"}, headers=bob)
    client.post("/follow", json={"handle": "alice"}, headers=bob)

    types = [n["type"] for n in client.get("/notifications", headers=alice).json()["items"]]
    assert types == ["follow"]
    assert [m["to"] for m in push.messages] == ["tok-alice"]
    assert push.messages[0]["title"] == "bob followed you"


def test_mark_read(client, register) -> None:
    alice = register("alice")
    bob = register("bob")
    client.post("/follow", json={"handle": "alice"}, headers=bob)

    unread = client.get("/notifications", headers=alice).json()["items"]
    assert unread[0]["read"] is False
    marked = client.get("/notifications", params={"markRead": 1}, headers=alice).json()["items"]
    assert marked[0]["read"] is True
    again = client.get("/notifications", headers=alice).json()["items"]
    assert again[0]["read"] is True


def test_invites(client, register) -> None:
    alice = register("alice")
    code = client.get("/me/invite", headers=alice).json()
    assert code["usesRemaining"] == 10
    assert client.post("/me/invite", headers=alice).json()["code"] == code["code"]
    listed = client.get("/me/invites", headers=alice).json()
    assert listed["inviteCode"] == code["code"]
    assert len(listed["items"]) == 1


def test_delete_account(client, register, identity_provider) -> None:
    alice = register("alice")
    bob = register("bob")
    client.post("/follow", json={"handle": "alice"}, headers=bob)
    client.post("/posts", json={"text": "bye @alice"}, headers=bob)

    r = client.delete("/me", headers=bob)
    assert r.json() == {"success": True, "failedSteps": []}
    assert identity_provider.deleted == ["user-bob@example.com"]

    assert client.get("/notifications", headers=alice).json()["items"] == []
    assert client.get("/u/bob", headers=alice).status_code == status.HTTP_404_NOT_FOUND
    assert client.get("/u/alice", headers=alice).json()["followerCount"] == 0
