"""
Server logging setup.

Console logging for every run, plus an optional size-rotated log file:

    from api.log_rotation import configure_logging

    configure_logging(level="INFO", log_file="/var/log/telewindy/sync.log")
"""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from api.middleware.request_tracing import RequestIdLogFilter

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(request_id)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_log_rotation(
    log_file: str,
    max_bytes: int = 50 * 1024 * 1024,  # 50MB default
    backup_count: int = 10,
) -> logging.Handler:
    """
    Create a size-rotated file handler.

    Args:
        log_file: Path to log file (parent directories are created)
        max_bytes: Max size before rotation
        backup_count: Number of rotated files to keep

    Returns:
        Configured logging handler
    """
    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    handler = RotatingFileHandler(
        log_path,
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    handler.addFilter(RequestIdLogFilter())

    logger.info(
        f"Setup size-based log rotation: {log_file} (max={max_bytes / 1024 / 1024:.1f}MB, backups={backup_count})"
    )
    return handler


def configure_logging(level: str = "INFO", log_file: Optional[str] = None) -> None:
    """
    Configure root logging for the server process.

    Every root handler gets a RequestIdLogFilter so LOG_FORMAT can show the
    request id. A rotating file handler is attached once if log_file is set.
    """
    logging.basicConfig(level=level, format=LOG_FORMAT)
    root = logging.getLogger()
    root.setLevel(level)

    for handler in root.handlers:
        if not any(isinstance(f, RequestIdLogFilter) for f in handler.filters):
            handler.addFilter(RequestIdLogFilter())

    if not log_file:
        return

    target = str(Path(log_file).resolve())
    for handler in root.handlers:
        if isinstance(handler, RotatingFileHandler) and handler.baseFilename == target:
            return

    root.addHandler(setup_log_rotation(log_file))
