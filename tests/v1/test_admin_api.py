"""Reports, the admin review queue and admin-issued invites."""

from fastapi import status

ADMIN_EMAIL = "admin@example.com"


def _admin(auth_headers):
    return auth_headers("admin-1", ADMIN_EMAIL)


def test_admin_routes_reject_regular_users(client, register) -> None:
    alice = register("alice")
    for method, path in [("get", "/reports"), ("post", "/reports/r1/action"), ("post", "/invites")]:
        r = client.request(method.upper(), path, json={}, headers=alice)
        assert r.status_code == status.HTTP_403_FORBIDDEN
        assert r.json() == {"message": "Forbidden - Admin only"}


def test_report_review_and_ban(client, register, auth_headers) -> None:
    alice = register("alice")
    bob = register("bob")
    client.post("/follow", json={"handle": "bob"}, headers=alice)
    post = client.post("/posts", json={"text": "spammy"}, headers=bob).json()

    r = client.post("/report", json={"contentType": "post", "contentId": post["id"], "reason": "spam"}, headers=alice)
    assert r.json()["success"] is True
    report_id = r.json()["reportId"]

    admin = _admin(auth_headers)
    (queued,) = client.get("/reports", headers=admin).json()["items"]
    assert queued["reportId"] == report_id
    assert queued["reportedUser"]["handle"] == "bob"

    r = client.post(f"/reports/{report_id}/action", json={"action": "ban_user"}, headers=admin)
    assert r.json() == {"success": True, "action": "ban_user"}
    assert client.get("/reports", headers=admin).json()["items"] == []
    assert len(client.get("/reports", params={"status": "resolved"}, headers=admin).json()["items"]) == 1

    r = client.get("/feed", headers=bob)
    assert r.status_code == status.HTTP_403_FORBIDDEN
    assert r.json() == {"message": "Account suspended"}


def test_report_validation(client, register) -> None:
    alice = register("alice")
    r = client.post("/report", json={"contentType": "user", "contentId": "x", "reason": "r"}, headers=alice)
    assert r.status_code == status.HTTP_400_BAD_REQUEST
    assert r.json() == {"message": "Invalid contentType"}


def test_admin_invites(client, auth_headers) -> None:
    admin = _admin(auth_headers)
    r = client.post("/invites", json={"uses": 500}, headers=admin)
    assert r.json()["uses"] == 100
    assert client.post("/invites", headers=admin).json()["uses"] == 1
