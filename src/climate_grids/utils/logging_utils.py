"""
Logging setup for entry points.

Library modules only call ``logging.getLogger(__name__)``; the CLI
calls ``setup_logging()`` once.
"""

import logging
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[Path] = None,
    console: Optional[Console] = None,
) -> None:
    """Configure the root logger with a rich console handler.

    Args:
        level: Logging level (default: INFO)
        log_file: Optional path to also write plain-text logs to
        console: Console the rich handler writes to
    """
    handlers: list = [
        RichHandler(console=console, rich_tracebacks=True, show_path=False)
    ]

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(
            logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        )
        handlers.append(file_handler)

    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=handlers,
        force=True,
    )
