"""
Logging setup
"""
import logging

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
HANDLER_NAME = "ads_manager"

_NOISY_LOGGERS = ("httpx", "httpcore")


def setup_logging(level: str = "INFO", debug: bool = False) -> None:
    """Configure the root logger once; later calls only adjust levels."""
    root = logging.getLogger()
    if not any(h.get_name() == HANDLER_NAME for h in root.handlers):
        handler = logging.StreamHandler()
        handler.set_name(HANDLER_NAME)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)

    root.setLevel(logging.DEBUG if debug else level.upper())

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if debug else logging.WARNING)
