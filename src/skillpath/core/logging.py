"""Process-wide logging setup."""

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_handler = logging.StreamHandler()
_handler.setFormatter(logging.Formatter(LOG_FORMAT))


def configure_logging(level: str = "INFO") -> None:
    """Attach a single stream handler to the root logger."""

    root = logging.getLogger()
    root.setLevel(level.upper())
    if _handler not in root.handlers:
        root.addHandler(_handler)
