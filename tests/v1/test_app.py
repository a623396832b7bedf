"""Application wiring: authentication and error rendering."""

from fastapi import status

from scooterbooter.core.security import create_access_token


def test_requests_without_token_are_unauthorized(client) -> None:
    for method, path in [("get", "/feed"), ("get", "/me"), ("post", "/posts"), ("get", "/notifications")]:
        r = client.request(method.upper(), path)
        assert r.status_code == status.HTTP_401_UNAUTHORIZED
        assert r.json() == {"message": "Unauthorized"}


def test_invalid_and_expired_tokens_are_rejected(client) -> None:
    r = client.get("/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert r.status_code == status.HTTP_401_UNAUTHORIZED

    expired = create_access_token("user-x", expires_minutes=-5)
    r = client.get("/me", headers={"Authorization": f"Bearer {expired}"})
    assert r.status_code == status.HTTP_401_UNAUTHORIZED
    assert r.json()["message"] == "Could not validate credentials"


def test_first_request_creates_the_profile(client, auth_headers) -> None:
    r = client.get("/me", headers=auth_headers("user-new", "New@Example.com"))
    assert r.status_code == status.HTTP_200_OK
    body = r.json()
    assert body["userId"] == "user-new"
    assert body["email"] == "new@example.com"
    assert body["handle"] is None
    assert len(body["inviteCode"]) == 8


def test_body_validation_errors_use_message_shape(client, register) -> None:
    headers = register("alice")
    r = client.post("/posts", json={"text": "hi", "images": "nope"}, headers=headers)
    assert r.status_code == status.HTTP_400_BAD_REQUEST
    assert set(r.json()) == {"message"}


def test_service_errors_use_message_shape(client, register) -> None:
    headers = register("alice")
    r = client.get("/posts/missing", headers=headers)
    assert r.status_code == status.HTTP_404_NOT_FOUND
    assert r.json() == {"message": "Not found"}


def test_disabled_subsystems_answer_501(client, container, register) -> None:
    headers = register("alice")
    container.scoops.enabled = False
    container.media.store = None

    r = client.get("/scoops/me", headers=headers)
    assert r.status_code == status.HTTP_501_NOT_IMPLEMENTED
    assert r.json() == {"message": "Scoops not enabled"}

    r = client.post("/upload-url", json={"contentType": "image/jpeg"}, headers=headers)
    assert r.status_code == status.HTTP_501_NOT_IMPLEMENTED
