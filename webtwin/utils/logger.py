"""
Logging configuration

Console plus two daily files under LOG_DIR: everything at INFO and above,
and a separate errors file kept longer for ingest/dispatch failures.
"""
from pathlib import Path
from loguru import logger
import sys
from webtwin.config import get_settings

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>"
)


def setup_logger(settings=None):
    """Configure the shared loguru logger from Settings"""
    settings = settings or get_settings()
    log_dir = Path(settings.log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)

    logger.remove()

    logger.add(sys.stdout, colorize=True, format=CONSOLE_FORMAT, level=settings.log_level)

    logger.add(
        str(log_dir / "webtwin_{time:YYYY-MM-DD}.log"),
        rotation="00:00",
        retention=f"{settings.log_retention_days} days",
        compression="zip",
        level="INFO"
    )

    logger.add(
        str(log_dir / "errors_{time:YYYY-MM-DD}.log"),
        rotation="00:00",
        retention=f"{settings.error_log_retention_days} days",
        level="ERROR"
    )

    return logger


log = setup_logger()
