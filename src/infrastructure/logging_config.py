"""
Process-wide logging setup, called once by each entrypoint.
Modules log through logging.getLogger(__name__) and never configure handlers.
"""

import logging

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str = "INFO") -> None:
    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        numeric = logging.INFO
    logging.basicConfig(level=numeric, format=LOG_FORMAT)
    # websockets logs every frame at DEBUG
    logging.getLogger("websockets").setLevel(max(numeric, logging.INFO))
