"""
Structured logging configuration using loguru.

Console verbosity follows ENVIRONMENT unless LOG_LEVEL overrides it: debug
output in development, warnings and above under test, info elsewhere.
"""
import sys
from loguru import logger
from devevent.core.config import settings

ENVIRONMENT_LEVELS = {
    "development": "DEBUG",
    "test": "WARNING",
}

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<magenta>{extra[service]}</magenta> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)


def console_level(environment: str, override=None) -> str:
    if override:
        return override.upper()
    return ENVIRONMENT_LEVELS.get(environment, "INFO")


logger.remove()
logger.configure(extra={"service": "devevent"})

logger.add(
    sys.stdout,
    format=CONSOLE_FORMAT,
    level=console_level(settings.ENVIRONMENT, settings.LOG_LEVEL),
    colorize=True,
)

if settings.ENVIRONMENT == "production":
    logger.add(
        "logs/devevent.log",
        rotation="500 MB",
        retention="10 days",
        compression="zip",
        serialize=True,
        level="INFO",
    )

__all__ = ["logger", "console_level"]
