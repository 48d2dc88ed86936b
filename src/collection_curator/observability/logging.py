from __future__ import annotations

import logging
import sys
from typing import Optional

from collection_curator.settings import get_settings


def configure_logging(level: Optional[str] = None) -> None:
    settings = get_settings()
    log_level = level or settings.log_level
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
        stream=sys.stdout,
    )


def log_extra(correlation_id: Optional[str]) -> dict[str, str]:
    """Extra context for structured log records."""
    return {"correlation_id": correlation_id} if correlation_id else {}
