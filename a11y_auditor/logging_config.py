"""Logging setup for the auditor service."""

import logging
import sys
from pathlib import Path
from typing import Optional

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# Libraries that log every HTTP connection or font lookup at INFO/DEBUG
_NOISY_LOGGERS = ('urllib3', 'charset_normalizer', 'fontTools')


def setup_logging(level: str = "INFO", log_file: Optional[str] = None) -> None:
    """Send log records to stdout and, when ``log_file`` is set, to that file too.

    Unknown level names fall back to INFO.
    """
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
