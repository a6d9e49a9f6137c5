from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Mapping

logger = logging.getLogger("blogapi.auth")


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(f"blogapi.{name}")


def log_auth_event(
    event: str,
    outcome: str,
    account_id: int | None = None,
    metadata: Mapping[str, Any] | None = None,
) -> None:
    # callers must never put passwords, codes or tokens in metadata
    entry = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "event": event,
        "outcome": outcome,
        "account_id": account_id,
        "metadata": dict(metadata) if metadata else {},
    }
    logger.info(json.dumps(entry, default=str))
