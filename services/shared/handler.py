from __future__ import annotations

from typing import Any, Callable

from services.shared.config import RuntimeConfig
from services.shared.contracts import SaveResult
from services.shared.errors import CallableError, Internal
from services.shared.logging_utils import log_event
from services.shared.paths import Instant, capture_instant, random_token, resolve_object_path
from services.shared.payload import validate_request
from services.shared.variants import IngestVariant
from services.shared.write_access import probe_write_access
from services.shared.writer import serialize_payload, write_payload


class IngestHandler:
    """Validates a callable payload and persists it to the target bucket.

    Collaborators are fixed at construction; the handler keeps no state
    between requests.
    """

    def __init__(
        self,
        config: RuntimeConfig,
        storage_client: Any,
        *,
        clock: Callable[[], Instant] = capture_instant,
        token_factory: Callable[[], str] = random_token,
    ):
        self._config = config
        self._storage = storage_client
        self._clock = clock
        self._token_factory = token_factory

    @property
    def config(self) -> RuntimeConfig:
        return self._config

    def handle(self, variant: IngestVariant, data: Any, *, trace_id: str | None = None) -> SaveResult:
        try:
            return self._handle(variant, data, trace_id=trace_id)
        except CallableError as exc:
            log_event(
                "error",
                "ingest_failed",
                trace_id=trace_id,
                function=variant.function_name,
                bucket=self._config.target_bucket or None,
                kind=exc.kind,
                error=exc.message,
            )
            raise

    def _handle(self, variant: IngestVariant, data: Any, *, trace_id: str | None) -> SaveResult:
        request = validate_request(data, variant)
        body = serialize_payload(request.payload)

        bucket_name = self._config.target_bucket
        if not bucket_name:
            raise Internal("TARGET_BUCKET environment variable is not set.")

        object_path = resolve_object_path(
            variant,
            request.controls,
            self._clock(),
            default_app_id=self._config.default_app_id,
            raw_prefix=self._config.raw_prefix,
            token_factory=self._token_factory,
        )
        log_event(
            "info",
            "ingest_path_resolved",
            trace_id=trace_id,
            function=variant.function_name,
            bucket=bucket_name,
            object_path=object_path,
        )

        if variant.probe_write_access:
            probe_write_access(self._storage, bucket_name, prefix=self._config.probe_prefix, trace_id=trace_id)

        file_path = write_payload(self._storage, bucket_name, object_path, body)
        log_event(
            "info",
            "ingest_payload_saved",
            trace_id=trace_id,
            function=variant.function_name,
            bucket=bucket_name,
            object_path=object_path,
            file_path=file_path,
        )
        return SaveResult(success=True, file_path=file_path)
