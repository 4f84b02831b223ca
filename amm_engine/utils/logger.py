import os
import sys
from typing import Optional

from loguru import logger


def setup_logger(*, json_logs: bool = False, level: str = "INFO", log_file: Optional[str] = None) -> None:
    """Configure loguru sinks for the engine.

    Console level is overridable with the LOG_LEVEL env var. When `log_file`
    is given, a rotating DEBUG file sink is added alongside the console.
    """
    console_level = os.getenv("LOG_LEVEL", level).upper()
    logger.remove()

    if json_logs:
        logger.add(sys.stdout, serialize=True, level=console_level)
    else:
        logger.add(
            sys.stdout,
            format=(
                "<green>{time:HH:mm:ss}</green> | "
                "<level>{level: <8}</level> | "
                "<cyan>{name}</cyan>:<cyan>{function}</cyan> - "
                "<level>{message}</level>"
            ),
            level=console_level,
            colorize=True,
        )

    if log_file is not None:
        logger.add(
            log_file,
            rotation="50 MB",
            retention="3 days",
            compression="gz",
            level="DEBUG",
            serialize=json_logs,
        )
