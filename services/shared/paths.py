"""Object key construction for persisted payloads.

Keys are partitioned by local calendar date and, for user events, by
application id. The trailing token makes keys unique per request:

* attribution data uses epoch milliseconds,
* user events use a ``YYYYMMDDTHHMMSS`` stamp (two requests for the same
  user in the same second resolve to the same key and the later write wins),
* raw data uses a random hex token.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import datetime
from typing import Callable
from uuid import uuid4

from services.shared.payload import ControlValues
from services.shared.variants import IngestVariant, PathLayout


UNKNOWN_APP_ID = "unknown_app"


@dataclass(frozen=True)
class Instant:
    local: datetime
    epoch_ms: int


def capture_instant() -> Instant:
    now = time.time()
    return Instant(local=datetime.fromtimestamp(now), epoch_ms=int(now * 1000))


def random_token() -> str:
    return uuid4().hex


def date_partition(instant: Instant) -> str:
    return instant.local.strftime("%Y%m%d")


def second_timestamp(instant: Instant) -> str:
    return instant.local.strftime("%Y%m%dT%H%M%S")


def normalize_user_id(value: str) -> str:
    return value.upper().replace("-", "")


def resolve_app_id(explicit: str | None, default: str | None = None) -> str:
    return explicit or default or UNKNOWN_APP_ID


def resolve_object_path(
    variant: IngestVariant,
    controls: ControlValues,
    instant: Instant,
    *,
    default_app_id: str | None = None,
    raw_prefix: str = "raw",
    token_factory: Callable[[], str] = random_token,
) -> str:
    date_path = date_partition(instant)

    if variant.layout is PathLayout.RANDOM:
        return f"{raw_prefix}/{date_path}/{token_factory()}.json"

    if variant.layout is PathLayout.USER_APP:
        if controls.user_pseudo_id:
            stem = normalize_user_id(controls.user_pseudo_id)
        else:
            stem = controls.file_name
        app_id = resolve_app_id(controls.app_id, default_app_id)
        return f"{controls.folder_prefix}/{date_path}/{app_id}/{stem}-{second_timestamp(instant)}.json"

    return f"{controls.folder_prefix}/{date_path}/{controls.file_name}_{instant.epoch_ms}.json"
