from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any


logging.basicConfig(level=logging.INFO, stream=sys.stdout)
logger = logging.getLogger("attribution_ingest")

_CONTEXT_KEYS = ("trace_id", "function", "bucket", "object_path")


def log_event(level: str, message: str, **kwargs: Any) -> None:
    payload: dict[str, Any] = {
        "ts": datetime.now(timezone.utc).isoformat(),
        "message": message,
    }
    for key in _CONTEXT_KEYS:
        payload[key] = None
    payload.update(kwargs)
    line = json.dumps(payload, ensure_ascii=True, default=str)
    if level.lower() == "error":
        logger.error(line)
    elif level.lower() == "warning":
        logger.warning(line)
    else:
        logger.info(line)
