import os
import sys

from loguru import logger

from config import LOG_DIR, LOG_LEVEL, LOG_RETENTION, LOG_ROTATION

_LOGGER_CONFIGURED = False


def setup_logging(
    level: str = LOG_LEVEL,
    log_dir: str = LOG_DIR,
    rotation: str = LOG_ROTATION,
    retention: str = LOG_RETENTION,
    force: bool = False,
) -> None:
    """
    Configure the global loguru logger once per process.

      - stderr sink at `level`
      - optional daily file sink under `log_dir` (skipped when empty)
    """
    global _LOGGER_CONFIGURED
    if _LOGGER_CONFIGURED and not force:
        return

    logger.remove()
    logger.add(
        sys.stderr,
        level=level,
        format="{time:YYYY-MM-DD HH:mm:ss} | {level:<7} | {message}",
    )

    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        logger.add(
            sink=os.path.join(log_dir, "{time:YYYY-MM-DD}.log"),
            rotation=rotation,
            retention=retention,
            level=level,
            format="{time:YYYY-MM-DD HH:mm:ss} | {level} | {name}:{line} | {message}",
            enqueue=True,
        )

    _LOGGER_CONFIGURED = True
    logger.debug("Logger initialized (level={}, log_dir={!r})", level, log_dir)
