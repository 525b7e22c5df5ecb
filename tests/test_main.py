from datetime import datetime

import pytest
from fastapi.testclient import TestClient

from conftest import FakeBackendError, make_config
from services.attribution_ingest_service.main import create_app
from services.shared.handler import IngestHandler
from services.shared.paths import Instant


@pytest.fixture
def client(fake_storage) -> TestClient:
    handler = IngestHandler(
        make_config(default_app_id="unknown_app"),
        fake_storage,
        clock=lambda: Instant(local=datetime(2024, 3, 2, 10, 5, 7), epoch_ms=1000),
        token_factory=lambda: "token",
    )
    return TestClient(create_app(handler=handler))


def test_healthz(client) -> None:
    assert client.get("/v1/healthz").json() == {"status": "ok"}
    assert client.get("/v1/readyz").json() == {"status": "ready"}


def test_readyz_without_bucket(fake_storage) -> None:
    handler = IngestHandler(make_config(target_bucket=""), fake_storage)
    response = TestClient(create_app(handler=handler)).get("/v1/readyz")
    assert response.status_code == 503


def test_save_attribution_data(client, fake_storage) -> None:
    response = client.post(
        "/saveAttributionData",
        json={"data": {"_firebaseFunction_fileName": "order", "_firebaseFunction_folderPrefix": "orders", "amount": 5}},
    )
    assert response.status_code == 200
    assert response.json() == {
        "result": {"success": True, "filePath": "gs://ingest-bucket/orders/20240302/order_1000.json"}
    }


def test_save_user_event(client) -> None:
    response = client.post(
        "/saveUserEvent",
        json={"data": {"userPseudoID": "ab-12-CD", "folderPrefix": "events", "payload": [{"a": 1}, {"b": 2}]}},
    )
    assert response.status_code == 200
    assert response.json()["result"]["filePath"] == (
        "gs://ingest-bucket/events/20240302/unknown_app/AB12CD-20240302T100507.json"
    )


def test_empty_object_is_invalid_argument(client, fake_storage) -> None:
    response = client.post("/saveRawData", json={"data": {}})
    assert response.status_code == 400
    assert response.json() == {
        "error": {"status": "INVALID_ARGUMENT", "message": "Payload must be a non-empty JSON object."}
    }
    assert fake_storage.calls == []


@pytest.mark.parametrize("body", [b"not json", b"[1, 2]", b'{"payload": 1}'])
def test_malformed_envelope_is_invalid_argument(client, body) -> None:
    response = client.post("/saveRawData", content=body, headers={"content-type": "application/json"})
    assert response.status_code == 400
    assert response.json()["error"]["status"] == "INVALID_ARGUMENT"


def test_permission_denied_response(client, fake_storage) -> None:
    fake_storage.upload_errors.append(FakeBackendError("Forbidden", code=403))
    response = client.post("/saveRawData", json={"data": {"k": "v"}})
    assert response.status_code == 403
    assert response.json()["error"]["status"] == "PERMISSION_DENIED"


def test_internal_response_carries_backend_message(client, fake_storage) -> None:
    fake_storage.upload_errors.append(FakeBackendError("backend unavailable", code=503))
    response = client.post("/saveRawData", json={"data": {"k": "v"}})
    assert response.status_code == 500
    assert response.json()["error"]["status"] == "INTERNAL"
    assert "backend unavailable" in response.json()["error"]["message"]


def test_app_check_enforced_without_token(fake_storage) -> None:
    handler = IngestHandler(make_config(enforce_app_check=True, app_check_project_number="1234"), fake_storage)
    response = TestClient(create_app(handler=handler)).post("/saveRawData", json={"data": {"k": "v"}})
    assert response.status_code == 401
    assert response.json()["error"]["status"] == "UNAUTHENTICATED"
    assert fake_storage.calls == []


def test_unexpected_error_renders_internal_envelope(fake_storage) -> None:
    def broken_clock() -> Instant:
        raise RuntimeError("clock unavailable")

    handler = IngestHandler(make_config(), fake_storage, clock=broken_clock)
    client = TestClient(create_app(handler=handler), raise_server_exceptions=False)
    response = client.post("/saveRawData", json={"data": {"k": "v"}})
    assert response.status_code == 500
    assert response.json() == {"error": {"status": "INTERNAL", "message": "INTERNAL"}}
    assert fake_storage.calls == []


def test_non_finite_number_is_invalid_argument(client, fake_storage) -> None:
    response = client.post(
        "/saveRawData",
        content=b'{"data": {"ratio": NaN}}',
        headers={"content-type": "application/json"},
    )
    assert response.status_code == 400
    assert response.json()["error"]["status"] == "INVALID_ARGUMENT"
    assert fake_storage.calls == []
