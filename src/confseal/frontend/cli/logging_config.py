"""Logging setup shared by the command line and the TUI."""

import logging
import sys

LOG_FORMAT = "[%(asctime)s] %(levelname)s %(name)s: %(message)s"

# third-party loggers that are only interesting when debugging
_CHATTY = ("aiohttp", "asyncio", "keyring")


def configure_logging(level: int = logging.INFO, stream=None) -> None:
    """
    Configure the root logger once.

    Records go to stderr unless ``stream`` is given; stdout is reserved for
    packaged envelopes and decrypted payloads.
    """
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt="%H:%M:%S",
        stream=stream or sys.stderr,
    )
    if level > logging.DEBUG:
        for name in _CHATTY:
            logging.getLogger(name).setLevel(logging.WARNING)
