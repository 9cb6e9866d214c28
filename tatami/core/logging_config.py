"""loguru setup for the account API.

Standard-library loggers (uvicorn, SQLAlchemy) are routed into loguru, and
every record carries the id of the request it was emitted for.
"""
import logging
import sys
from pathlib import Path

from loguru import logger

NO_REQUEST = "-"
STDLIB_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access", "sqlalchemy")

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<magenta>{extra[request_id]}</magenta> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>"
)


class InterceptHandler(logging.Handler):
    """Forward stdlib log records to loguru, keeping their level and origin."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno
        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1
        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def _intercept_stdlib_logging(level: int) -> None:
    logging.basicConfig(handlers=[InterceptHandler()], level=level, force=True)
    for name in STDLIB_LOGGERS:
        stdlib_logger = logging.getLogger(name)
        stdlib_logger.handlers = [InterceptHandler()]
        stdlib_logger.propagate = False
    # Engine echo stays off; only warnings and errors come through.
    logging.getLogger("sqlalchemy").setLevel(logging.WARNING)


def setup_logging(environment: str = "development", log_dir: str | Path | None = "logs") -> None:
    logger.remove()
    logger.configure(extra={"request_id": NO_REQUEST})
    production = environment == "production"
    _intercept_stdlib_logging(logging.INFO if production else logging.DEBUG)

    if production:
        logger.add(sys.stdout, level="INFO", serialize=True)
        return

    logger.add(sys.stdout, format=CONSOLE_FORMAT, level="DEBUG")
    if log_dir is None:
        return
    try:
        Path(log_dir).mkdir(parents=True, exist_ok=True)
        logger.add(
            Path(log_dir) / "tatami.log",
            format=CONSOLE_FORMAT,
            rotation="100 MB",
            retention="10 days",
            compression="zip",
            level="DEBUG",
        )
    except OSError as e:
        logger.warning(f"Could not create log file in {log_dir}: {e}")
