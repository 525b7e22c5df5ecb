from __future__ import annotations

import json
import os
from typing import Any
from uuid import uuid4

from fastapi import FastAPI, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from services.shared.app_check import require_app_check
from services.shared.config import RuntimeConfig, load_runtime_config
from services.shared.contracts import CallableErrorBody, CallableRequest, CallableResponse, HealthResponse
from services.shared.errors import CallableError, Internal, InvalidArgument
from services.shared.handler import IngestHandler
from services.shared.logging_utils import log_event
from services.shared.storage import StorageClient
from services.shared.variants import VARIANTS, IngestVariant


TRACE_HEADER = "x-cloud-trace-context"


def create_app(
    config: RuntimeConfig | None = None,
    storage_client: Any = None,
    handler: IngestHandler | None = None,
) -> FastAPI:
    if handler is None:
        config = config or load_runtime_config()
        storage_client = storage_client or StorageClient(config.project_id)
        handler = IngestHandler(config, storage_client)
    config = handler.config

    app = FastAPI(title="attribution-ingest-service", version="0.1.0")
    app.state.handler = handler
    log_event("info", "service_initialized", bucket=config.target_bucket or None, functions=sorted(VARIANTS))

    @app.exception_handler(CallableError)
    async def _callable_error_handler(request: Request, exc: CallableError) -> JSONResponse:
        return _error_response(exc)

    @app.exception_handler(Exception)
    async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        log_event("error", "unhandled_exception", path=request.url.path, error=str(exc))
        return _error_response(Internal("INTERNAL"))

    @app.get("/v1/healthz", response_model=HealthResponse)
    def healthz() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.get("/v1/readyz", response_model=HealthResponse)
    def readyz() -> HealthResponse:
        if not config.target_bucket:
            raise HTTPException(status_code=503, detail="TARGET_BUCKET is not configured")
        return HealthResponse(status="ready")

    for variant in VARIANTS.values():
        app.add_api_route(
            f"/{variant.function_name}",
            _callable_endpoint(variant, handler),
            methods=["POST"],
            response_model=CallableResponse,
            responses={400: {"model": CallableErrorBody}, 403: {"model": CallableErrorBody}, 500: {"model": CallableErrorBody}},
            name=variant.function_name,
        )

    return app


def _callable_endpoint(variant: IngestVariant, handler: IngestHandler):
    async def endpoint(request: Request) -> CallableResponse:
        trace_id = _trace_id(request)
        require_app_check(request, config=handler.config)
        envelope = await _read_envelope(request)
        log_event("info", "callable_invoked", trace_id=trace_id, function=variant.function_name)
        result = await run_in_threadpool(handler.handle, variant, envelope.data, trace_id=trace_id)
        return CallableResponse(result=result)

    endpoint.__name__ = variant.function_name
    return endpoint


async def _read_envelope(request: Request) -> CallableRequest:
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise InvalidArgument("Request body must be JSON.") from exc
    if not isinstance(body, dict):
        raise InvalidArgument("Request body must be a JSON object with a 'data' field.")
    try:
        return CallableRequest.model_validate(body)
    except ValidationError as exc:
        raise InvalidArgument("Request body must be a JSON object with a 'data' field.") from exc


def _trace_id(request: Request) -> str:
    raw = request.headers.get(TRACE_HEADER, "")
    trace, _, _ = raw.partition("/")
    return trace.strip() or str(uuid4())


def _error_response(exc: CallableError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_body())


if __name__ == "__main__":
    import uvicorn

    port = int(os.getenv("PORT", "8080"))
    uvicorn.run("services.attribution_ingest_service.main:create_app", host="0.0.0.0", port=port, factory=True)
