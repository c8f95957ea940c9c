"""Centralized logging configuration module"""

import logging
from pathlib import Path
from logging.handlers import RotatingFileHandler
from datetime import datetime
from typing import Optional, Union

# Whether already initialized
_initialized = False

LOG_FORMAT = '[%(asctime)s] [%(levelname)s] %(name)s - %(message)s'
LOG_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def _write_session_separator(log_file: Path) -> None:
    """Mark the start of a new process run in the log file"""
    with open(log_file, 'a', encoding='utf-8') as f:
        f.write("\n" + "=" * 100 + "\n")
        f.write(f"Group chat started at: {datetime.now().strftime(LOG_DATE_FORMAT)}\n")
        f.write("=" * 100 + "\n\n")


def setup_logging(
    level: Union[str, int] = "INFO",
    log_dir: Optional[Union[str, Path]] = "logs",
    base_name: str = "groupchat.log",
) -> Optional[Path]:
    """Configure console and rotating file logging for the application.

    Args:
        level: Root log level name or number
        log_dir: Directory for the rotating log file; None logs to console only
        base_name: Log file name inside log_dir

    Returns:
        Path of the active log file, or None when file logging is disabled
    """
    global _initialized

    if _initialized:
        return None

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    handlers: list[logging.Handler] = [console_handler]

    log_file: Optional[Path] = None
    if log_dir is not None:
        logs_dir = Path(log_dir)
        logs_dir.mkdir(parents=True, exist_ok=True)
        log_file = logs_dir / base_name
        _write_session_separator(log_file)

        # Max 10MB per file, keep 3 backups
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=10 * 1024 * 1024,
            backupCount=3,
            encoding='utf-8',
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    # Configure root logger
    logging.basicConfig(
        level=level,
        handlers=handlers,
        force=True
    )

    logging.getLogger('groupchat').setLevel(level)

    # Reduce log level for third-party libraries
    logging.getLogger('uvicorn.access').setLevel(logging.WARNING)
    logging.getLogger('httpx').setLevel(logging.WARNING)
    logging.getLogger('httpcore').setLevel(logging.WARNING)
    logging.getLogger('google_genai').setLevel(logging.WARNING)

    _initialized = True

    logger = logging.getLogger(__name__)
    logger.info("Logging system initialized")
    if log_file is not None:
        logger.info("Log file: %s (max 10MB per file, keep 3 backups)", log_file.absolute())
    return log_file
