import logging
import sys

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

VALID_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def configure_logging(level: str = "INFO") -> None:
    """Install a single stream handler on the ``blogwriter`` logger tree."""
    logger = logging.getLogger("blogwriter")
    logger.setLevel(VALID_LEVELS.get(level.upper(), logging.INFO))

    # Idempotent across repeated create_app() calls
    if not any(getattr(h, "_blogwriter", False) for h in logger.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._blogwriter = True
        logger.addHandler(handler)
