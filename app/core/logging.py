"""
Loguru setup. Import ``logger`` from here so the sinks are configured once.
"""
import sys
from loguru import logger
from app.core.config import settings


def setup_logging() -> None:
    logger.remove()
    level = "DEBUG" if settings.ENVIRONMENT == "development" else settings.LOG_LEVEL

    logger.add(
        sys.stdout,
        level=level,
        colorize=settings.ENVIRONMENT != "test",
        format=(
            "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
        ),
    )

    if settings.is_production:
        # One JSON object per line for the log shipper
        logger.add(
            settings.LOG_FILE,
            level=level,
            serialize=True,
            rotation="100 MB",
            retention="14 days",
            compression="zip",
            enqueue=True,
        )


setup_logging()

__all__ = ["logger", "setup_logging"]
