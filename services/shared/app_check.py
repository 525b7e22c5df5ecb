from __future__ import annotations

import base64
import json
import time
from dataclasses import dataclass
from typing import Any
from urllib.request import Request as UrlRequest
from urllib.request import urlopen

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding, rsa
from fastapi import Request

from services.shared.config import RuntimeConfig
from services.shared.errors import CallableError, Internal, Unauthenticated


APP_CHECK_HEADER = "x-firebase-appcheck"
APP_CHECK_ISSUER_PREFIX = "https://firebaseappcheck.googleapis.com/"

_JWKS_CACHE_TTL_SECONDS = 300
_CLOCK_SKEW_SECONDS = 30
_jwks_cache: dict[str, tuple[float, dict[str, Any]]] = {}


@dataclass(frozen=True)
class AppCheckClaims:
    app_id: str
    issuer: str
    audiences: tuple[str, ...]
    claims: dict[str, Any]


def require_app_check(request: Request, *, config: RuntimeConfig) -> AppCheckClaims | None:
    if not config.enforce_app_check:
        return None
    if not config.app_check_project_number:
        raise Internal("APP_CHECK_PROJECT_NUMBER must be set when ENFORCE_APP_CHECK is true.")

    token = request.headers.get(APP_CHECK_HEADER, "").strip()
    if not token:
        raise Unauthenticated("Missing App Check token.")
    claims = verify_app_check_token(token, config=config)
    return AppCheckClaims(
        app_id=str(claims.get("sub") or ""),
        issuer=str(claims.get("iss") or ""),
        audiences=_normalize_aud_claim(claims.get("aud")),
        claims=claims,
    )


def verify_app_check_token(token: str, *, config: RuntimeConfig) -> dict[str, Any]:
    try:
        header, claims, signing_input, signature = _decode_unverified(token)
        algorithm = str(header.get("alg") or "")
        if algorithm != "RS256":
            raise Unauthenticated(f"Invalid App Check token: algorithm {algorithm} is not allowed")
        _verify_rs256_signature(signing_input, signature, header=header, jwks_url=config.app_check_jwks_url)
        _verify_registered_claims(claims, project_number=config.app_check_project_number)
        return claims
    except CallableError:
        raise
    except Exception as exc:
        raise Unauthenticated(f"Invalid App Check token: {exc}") from exc


def _decode_unverified(token: str) -> tuple[dict[str, Any], dict[str, Any], bytes, bytes]:
    parts = token.split(".")
    if len(parts) != 3:
        raise Unauthenticated("Invalid App Check token: malformed JWT")
    header_b64, payload_b64, signature_b64 = parts
    try:
        header = json.loads(_b64url_decode(header_b64).decode("utf-8"))
        payload = json.loads(_b64url_decode(payload_b64).decode("utf-8"))
        signature = _b64url_decode(signature_b64)
    except Exception as exc:
        raise Unauthenticated(f"Invalid App Check token: cannot decode JWT ({exc})") from exc
    if not isinstance(header, dict) or not isinstance(payload, dict):
        raise Unauthenticated("Invalid App Check token: invalid JWT sections")
    signing_input = f"{header_b64}.{payload_b64}".encode("ascii")
    return header, payload, signing_input, signature


def _verify_rs256_signature(signing_input: bytes, signature: bytes, *, header: dict[str, Any], jwks_url: str) -> None:
    jwk = _resolve_signing_jwk(jwks_url, header.get("kid"))
    n = str(jwk.get("n") or "")
    e = str(jwk.get("e") or "")
    if not n or not e:
        raise Unauthenticated("Invalid App Check token: jwk missing n/e")
    try:
        public_numbers = rsa.RSAPublicNumbers(
            e=int.from_bytes(_b64url_decode(e), "big", signed=False),
            n=int.from_bytes(_b64url_decode(n), "big", signed=False),
        )
        public_key = public_numbers.public_key()
        public_key.verify(signature, signing_input, padding.PKCS1v15(), hashes.SHA256())
    except Exception as exc:
        raise Unauthenticated(f"Invalid App Check token: bad signature ({exc})") from exc


def _resolve_signing_jwk(jwks_url: str, kid: Any) -> dict[str, Any]:
    now = time.time()
    cached = _jwks_cache.get(jwks_url)
    if cached and cached[0] > now:
        jwks = cached[1]
    else:
        jwks = _fetch_json(jwks_url)
        _jwks_cache[jwks_url] = (now + _JWKS_CACHE_TTL_SECONDS, jwks)

    keys = jwks.get("keys")
    if not isinstance(keys, list) or not keys:
        raise Internal("App Check JWKS is empty")

    if not kid:
        raise Unauthenticated("Invalid App Check token: missing kid")
    for key in keys:
        if isinstance(key, dict) and key.get("kid") == kid:
            return key
    raise Unauthenticated("Invalid App Check token: key id not found")


def _verify_registered_claims(claims: dict[str, Any], *, project_number: str) -> None:
    now = int(time.time())

    exp = claims.get("exp")
    if not isinstance(exp, (int, float)):
        raise Unauthenticated("Invalid App Check token: missing exp")
    if now > int(exp) + _CLOCK_SKEW_SECONDS:
        raise Unauthenticated("Invalid App Check token: expired")

    expected_issuer = f"{APP_CHECK_ISSUER_PREFIX}{project_number}"
    if str(claims.get("iss") or "") != expected_issuer:
        raise Unauthenticated("Invalid App Check token: issuer mismatch")

    audiences = _normalize_aud_claim(claims.get("aud"))
    if f"projects/{project_number}" not in audiences:
        raise Unauthenticated("Invalid App Check token: audience mismatch")

    if not str(claims.get("sub") or ""):
        raise Unauthenticated("Invalid App Check token: missing sub")


def _normalize_aud_claim(raw: Any) -> tuple[str, ...]:
    if isinstance(raw, str):
        value = raw.strip()
        return (value,) if value else tuple()
    if isinstance(raw, list):
        return tuple(item.strip() for item in raw if isinstance(item, str) and item.strip())
    return tuple()


def _b64url_decode(value: str) -> bytes:
    padding_len = (-len(value)) % 4
    padded = value + ("=" * padding_len)
    return base64.urlsafe_b64decode(padded.encode("ascii"))


def _fetch_json(url: str) -> dict[str, Any]:
    request = UrlRequest(url, headers={"Accept": "application/json"})
    try:
        with urlopen(request, timeout=10) as response:
            payload = response.read().decode("utf-8")
    except Exception as exc:
        raise Internal(f"Unable to fetch App Check JWKS: {exc}") from exc

    try:
        body = json.loads(payload)
    except Exception as exc:
        raise Internal(f"App Check JWKS invalid JSON: {exc}") from exc
    if not isinstance(body, dict):
        raise Internal("App Check JWKS invalid shape")
    return body
