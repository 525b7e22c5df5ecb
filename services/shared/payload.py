from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from services.shared.errors import InvalidArgument
from services.shared.variants import IngestVariant


@dataclass(frozen=True)
class ControlValues:
    file_name: str | None = None
    folder_prefix: str | None = None
    app_id: str | None = None
    user_pseudo_id: str | None = None


@dataclass(frozen=True)
class SanitizedRequest:
    controls: ControlValues
    payload: Any


def strip_reserved(data: dict[str, Any], reserved_keys: tuple[str, ...]) -> tuple[dict[str, Any], dict[str, Any]]:
    controls: dict[str, Any] = {}
    payload: dict[str, Any] = {}
    for key, value in data.items():
        if key in reserved_keys:
            controls[key] = value
        else:
            payload[key] = value
    return controls, payload


def validate_request(data: Any, variant: IngestVariant) -> SanitizedRequest:
    if not isinstance(data, dict) or not data:
        raise InvalidArgument("Payload must be a non-empty JSON object.")

    controls, payload = strip_reserved(data, variant.reserved_keys)

    if any(_is_blank(controls.get(key)) for key in variant.required_keys):
        raise InvalidArgument(f"Missing {' or '.join(variant.required_keys)}.")

    if variant.user_id_key in variant.required_keys and not isinstance(controls[variant.user_id_key], str):
        raise InvalidArgument(f"{variant.user_id_key} must be a string.")

    app_id = None
    if variant.app_id_key:
        raw_app_id = controls.get(variant.app_id_key)
        if not _is_blank(raw_app_id):
            if not isinstance(raw_app_id, str):
                raise InvalidArgument(f"{variant.app_id_key} must be a string.")
            app_id = raw_app_id

    if variant.payload_key and variant.payload_key in controls:
        payload = controls[variant.payload_key]

    return SanitizedRequest(
        controls=ControlValues(
            file_name=_control(controls, variant.file_name_key),
            folder_prefix=_control(controls, variant.folder_prefix_key),
            app_id=app_id,
            user_pseudo_id=_control(controls, variant.user_id_key),
        ),
        payload=payload,
    )


def _control(controls: dict[str, Any], key: str | None) -> str | None:
    if not key:
        return None
    value = controls.get(key)
    if _is_blank(value):
        return None
    return _as_segment(value)


def _as_segment(value: Any) -> str:
    # Same rendering as JavaScript string interpolation for JSON scalars.
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _is_blank(value: Any) -> bool:
    # JavaScript falsy values that can arrive in JSON.
    if value is None or value is False or value == "":
        return True
    return isinstance(value, (int, float)) and not isinstance(value, bool) and value == 0
