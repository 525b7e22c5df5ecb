from __future__ import annotations

import pytest

from services.shared.config import RuntimeConfig


class FakeStorageClient:
    def __init__(self) -> None:
        self.objects: dict[tuple[str, str], tuple[bytes, str]] = {}
        self.calls: list[tuple[str, str, str]] = []
        self.upload_errors: list[Exception] = []
        self.delete_error: Exception | None = None

    def upload_bytes(self, bucket_name: str, object_name: str, payload: bytes, content_type: str) -> str:
        self.calls.append(("upload", bucket_name, object_name))
        if self.upload_errors:
            raise self.upload_errors.pop(0)
        self.objects[(bucket_name, object_name)] = (payload, content_type)
        return f"gs://{bucket_name}/{object_name}"

    def delete_object(self, bucket_name: str, object_name: str) -> None:
        self.calls.append(("delete", bucket_name, object_name))
        if self.delete_error is not None:
            raise self.delete_error
        self.objects.pop((bucket_name, object_name), None)


class FakeBackendError(Exception):
    def __init__(self, message: str, code: int | None = None):
        super().__init__(message)
        self.message = message
        self.code = code


def make_config(**overrides: object) -> RuntimeConfig:
    base = RuntimeConfig(
        project_id="p",
        target_bucket="ingest-bucket",
        enforce_app_check=False,
        app_check_project_number="",
        app_check_jwks_url="https://jwks.example/v1/jwks",
        default_app_id="",
        probe_prefix="_permission_probe",
        raw_prefix="raw",
    )
    return RuntimeConfig(**{**base.__dict__, **overrides})


@pytest.fixture
def fake_storage() -> FakeStorageClient:
    return FakeStorageClient()
