from __future__ import annotations

import json
from typing import Any

from services.shared.errors import Internal, InvalidArgument


JSON_CONTENT_TYPE = "application/json"


def serialize_payload(payload: Any) -> bytes:
    try:
        if isinstance(payload, (list, tuple)):
            lines = [_dumps(item) for item in payload]
            return "\n".join(lines).encode("utf-8")
        return _dumps(payload).encode("utf-8")
    except ValueError as exc:
        raise InvalidArgument(f"Payload is not serializable as JSON: {exc}") from exc


def write_payload(storage_client: Any, bucket_name: str, object_name: str, body: bytes) -> str:
    try:
        return storage_client.upload_bytes(bucket_name, object_name, body, JSON_CONTENT_TYPE)
    except Exception as exc:
        message = getattr(exc, "message", None) or str(exc) or type(exc).__name__
        raise Internal(f"Failed to save payload: {message}") from exc


def _dumps(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False, allow_nan=False)
