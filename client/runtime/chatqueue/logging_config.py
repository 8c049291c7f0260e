"""
Chat Runtime - Logging Setup
"""

import logging
import os
import sys
from typing import Optional

LOG_FORMAT = '[%(asctime)s] %(levelname)s: %(message)s'


def configure_logging(level: str = "INFO", log_file: Optional[str] = None) -> None:
    """Log to stdout, and to ``log_file`` as well when one is given."""
    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir and not os.path.exists(log_dir):
            os.makedirs(log_dir, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )
