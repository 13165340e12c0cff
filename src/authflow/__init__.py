"""authflow - sign-in flow controller for external identity providers.

Tracks one authentication attempt at a time across password, federated,
guest and phone one-time-code sign-in, and mirrors the provider's session.
"""

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path

__version__ = "0.1.0"


def _setup_logging(log_dir: Path, console_level: str = "INFO") -> Path:
    """Configure logging to both console and rotating file."""
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / f"authflow.{os.getpid()}.log"

    # Root logger config
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)

    # File handler - detailed logging with rotation (10MB, keep 5 backups)
    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=10 * 1024 * 1024,
        backupCount=5,
        encoding="utf-8",
    )
    file_handler.setLevel(logging.DEBUG)
    file_formatter = logging.Formatter(
        "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    file_handler.setFormatter(file_formatter)

    # Console handler - less verbose
    console_handler = logging.StreamHandler()
    console_handler.setLevel(console_level.upper())
    console_handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))

    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)

    logging.info("Logging configured. Log file: %s", log_file.absolute())
    return log_file


def main() -> None:
    """Entry point for the authflow console."""
    import asyncio

    from authflow.cli import run_console
    from authflow.config import get_settings

    settings = get_settings()
    _setup_logging(settings.app.log_dir, settings.app.log_level)

    print(f"authflow v{__version__}")
    asyncio.run(run_console())


if __name__ in {"__main__", "__mp_main__"}:
    main()
