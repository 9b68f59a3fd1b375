import logging
import logging.handlers
from pathlib import Path

from .logging_utils import LOG_FORMAT


def setup_debug_logging(logger: logging.Logger, debug_file: str | Path, level: int) -> None:
    """Send HTTP traces of ``logger`` to a rotating debug file."""
    log_path = Path(debug_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    for handler in logger.handlers:
        if (
            isinstance(handler, logging.handlers.RotatingFileHandler)
            and Path(handler.baseFilename) == log_path.resolve()
        ):
            handler.setLevel(level)
            return

    file_handler = logging.handlers.RotatingFileHandler(
        log_path,
        maxBytes=10*1024*1024,  # 10MB
        backupCount=5
    )
    file_handler.setLevel(level)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(file_handler)
