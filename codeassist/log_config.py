import sys

from loguru import logger

from codeassist.config import settings

_configured = False


def configure_logging(level: str | None = None) -> None:
    """Install the stderr sink. Subsequent calls are no-ops."""
    global _configured
    if _configured:
        return
    logger.remove()
    logger.add(
        sys.stderr,
        level=(level or settings.log_level).upper(),
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan> - {message}",
        backtrace=settings.app_env == "development",
        diagnose=False,
    )
    _configured = True
