# tracker/core/logging.py

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Single stream handler on the root logger; calling it twice does not duplicate output."""
    root = logging.getLogger()
    root.setLevel(getattr(logging, str(level).upper(), logging.INFO))
    if any(getattr(h, "_tracker_handler", False) for h in root.handlers):
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._tracker_handler = True  # type: ignore[attr-defined]
    root.addHandler(handler)
