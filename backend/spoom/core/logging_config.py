from __future__ import annotations

import logging

from spoom.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Apply the process-wide log level and format once at startup."""
    resolved = (level or settings.LOG_LEVEL or "INFO").upper()
    logging.basicConfig(level=resolved, format=LOG_FORMAT)
    logging.getLogger("spoom").setLevel(resolved)
    # botocore debug output includes request parameters (SecretHash among them).
    logging.getLogger("botocore").setLevel(logging.WARNING)
