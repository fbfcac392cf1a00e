import logging
import sys

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def get_logger(name: str = "relay") -> logging.Logger:
    """Return a logger under the ``relay`` hierarchy."""
    return logging.getLogger(name)


def configure_logging(level: str = "INFO") -> None:
    """Attach a single stdout handler to the ``relay`` root logger."""
    root = logging.getLogger("relay")
    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
