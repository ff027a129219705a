from fastapi.testclient import TestClient


def _get_client() -> TestClient:
    from studyflow.main import app

    return TestClient(app)


def test_health_endpoint_returns_ok() -> None:
    client = _get_client()
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_request_id_generated_and_returned() -> None:
    client = _get_client()
    response = client.get("/health")

    assert response.headers.get("X-Request-Id")


def test_request_id_echoed_into_body_and_header() -> None:
    client = _get_client()
    req_id = "reminder-config-42"
    response = client.get("/notifications/config", headers={"X-Request-Id": req_id})

    assert response.headers.get("X-Request-Id") == req_id
    assert response.json()["request_id"] == req_id
