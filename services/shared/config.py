from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

from services.shared.logging_utils import log_event


DEFAULT_APP_CHECK_JWKS_URL = "https://firebaseappcheck.googleapis.com/v1/jwks"


def get_env(name: str, default: str | None = None, required: bool = False) -> str:
    value = os.getenv(name, default)
    if required and (value is None or value == ""):
        raise RuntimeError(f"Missing required env var: {name}")
    return value or ""


def get_env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


@dataclass(frozen=True)
class RuntimeConfig:
    project_id: str
    target_bucket: str
    enforce_app_check: bool
    app_check_project_number: str
    app_check_jwks_url: str
    default_app_id: str
    probe_prefix: str
    raw_prefix: str


def load_runtime_config(*, dotenv: bool = True) -> RuntimeConfig:
    if dotenv:
        load_dotenv(override=False)

    if not os.getenv("TARGET_BUCKET"):
        log_event("warning", "config_target_bucket_missing", detail="TARGET_BUCKET is not set")
    if "ENFORCE_APP_CHECK" not in os.environ:
        log_event("warning", "config_app_check_defaulted", detail="ENFORCE_APP_CHECK is not set, defaulting to false")

    return RuntimeConfig(
        project_id=get_env("PROJECT_ID", ""),
        target_bucket=get_env("TARGET_BUCKET", ""),
        enforce_app_check=get_env_bool("ENFORCE_APP_CHECK", False),
        app_check_project_number=get_env("APP_CHECK_PROJECT_NUMBER", ""),
        app_check_jwks_url=get_env("APP_CHECK_JWKS_URL", DEFAULT_APP_CHECK_JWKS_URL),
        default_app_id=get_env("DEFAULT_APP_ID", ""),
        probe_prefix=get_env("PROBE_PREFIX", "_permission_probe").strip("/") or "_permission_probe",
        raw_prefix=get_env("RAW_PREFIX", "raw").strip("/") or "raw",
    )
