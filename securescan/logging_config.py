import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Send securescan logs to stderr. Safe to call more than once."""
    root = logging.getLogger("securescan")
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    if not any(getattr(h, "_securescan", False) for h in root.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._securescan = True
        root.addHandler(handler)
