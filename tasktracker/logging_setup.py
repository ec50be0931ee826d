"""Logging configuration for the CLI and the server."""

import logging
import sys


class _ThirdPartyFilter(logging.Filter):
    """Keep our own records; let other libraries through at WARNING and up."""

    def filter(self, record: logging.LogRecord) -> bool:
        if record.name.startswith("tasktracker"):
            return True
        # httpx logs every request URL at INFO, bot token included.
        return record.levelno >= logging.WARNING


def setup_logging(level: str = "INFO") -> None:
    """Configure the root logger with one stderr handler.

    Call once, before the first log record is emitted.
    """
    root = logging.getLogger()
    root.setLevel(level.upper())

    for handler in list(root.handlers):
        root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    handler.addFilter(_ThirdPartyFilter())
    root.addHandler(handler)

    logging.captureWarnings(True)
