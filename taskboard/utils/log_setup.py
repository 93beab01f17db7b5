import logging
import os

from taskboard.config import Settings

LOG_FORMAT = "%(asctime)s [%(process)d] %(levelname)s %(name)s: %(message)s"


def setup_logging(settings: Settings) -> None:
    """Console logging at LOG_LEVEL, plus ERROR and above appended to ERROR_LOG_FILE."""
    level = settings.LOG_LEVEL.upper()
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger("taskboard").setLevel(level)

    if not settings.ERROR_LOG_FILE:
        return
    root = logging.getLogger()
    path = os.path.abspath(settings.ERROR_LOG_FILE)
    for handler in root.handlers:
        if isinstance(handler, logging.FileHandler) and handler.baseFilename == path:
            return
    file_handler = logging.FileHandler(path, delay=True)
    file_handler.setLevel(logging.ERROR)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(file_handler)
