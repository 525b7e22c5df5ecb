"""Write-permission probe for the target bucket.

A throwaway marker is written before the real payload so that missing IAM
grants surface as ``permission-denied`` instead of an opaque failure halfway
through the request. Probe and payload write are separate calls: a grant
revoked between the two still fails the payload write, which surfaces as
``internal``.
"""

from __future__ import annotations

from typing import Any
from uuid import uuid4

from services.shared.errors import CallableError, Internal, PermissionDenied
from services.shared.logging_utils import log_event


PERMISSION_DENIED_MESSAGE = "The service account cannot write to the target bucket."
_DENIED_STATUS_CODES = {401, 403}


def probe_write_access(
    storage_client: Any,
    bucket_name: str,
    *,
    prefix: str = "_permission_probe",
    trace_id: str | None = None,
) -> None:
    marker = f"{prefix}/{uuid4().hex}.txt"
    try:
        storage_client.upload_bytes(bucket_name, marker, b"permission probe", "text/plain")
    except Exception as exc:
        error = classify_storage_error(exc)
        log_event(
            "error",
            "permission_probe_failed",
            trace_id=trace_id,
            bucket=bucket_name,
            object_path=marker,
            kind=error.kind,
            error=str(exc),
        )
        raise error from exc

    try:
        storage_client.delete_object(bucket_name, marker)
    except Exception as exc:
        log_event(
            "warning",
            "permission_probe_cleanup_failed",
            trace_id=trace_id,
            bucket=bucket_name,
            object_path=marker,
            error=str(exc),
        )
        return

    log_event("info", "permission_probe_succeeded", trace_id=trace_id, bucket=bucket_name)


def classify_storage_error(exc: BaseException) -> CallableError:
    if isinstance(exc, CallableError):
        return exc
    if _status_code(exc) in _DENIED_STATUS_CODES or "permission" in str(exc).lower():
        return PermissionDenied(PERMISSION_DENIED_MESSAGE)
    return Internal(f"Failed to write to storage: {_backend_message(exc)}")


def _status_code(exc: BaseException) -> int | None:
    code = getattr(exc, "code", None)
    if isinstance(code, int):
        return code
    response = getattr(exc, "response", None)
    status = getattr(response, "status_code", None)
    return status if isinstance(status, int) else None


def _backend_message(exc: BaseException) -> str:
    message = getattr(exc, "message", None)
    if isinstance(message, str) and message:
        return message
    return str(exc) or type(exc).__name__
