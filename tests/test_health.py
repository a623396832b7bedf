# tests/test_health.py
from typing import Any


def test_health_responds(client: Any) -> None:
    """Verify the health endpoint answers and the root is not routed."""
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}

    r = client.get("/")
    assert r.status_code == 404
