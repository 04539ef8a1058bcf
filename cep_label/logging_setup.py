from __future__ import annotations

import logging
import os


def configure_logging(level: str | None = None) -> None:
    """
    Configure root logging once. Level can be given explicitly or taken from
    LOG_LEVEL env var (default INFO).
    """
    if level is None:
        level = os.getenv("LOG_LEVEL", "INFO")
    level = level.upper()
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s:%(lineno)d | %(message)s",
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(
        logging.DEBUG if level == "DEBUG" else logging.WARNING)
