"""Logging setup shared by the API server and scripts."""

import logging

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: str = "INFO") -> None:
    """Configure the root logger.

    Args:
        level: Level name from the ``logging`` config section. Unknown
               names fall back to INFO.
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    logging.basicConfig(level=numeric_level, format=LOG_FORMAT)
    logging.getLogger().setLevel(numeric_level)

    # The Azure SDK logs every HTTP request at INFO
    logging.getLogger("azure").setLevel(max(numeric_level, logging.WARNING))
