#!filepath: genmigrate/utils/logger.py
import os
import sys
from functools import wraps
from time import perf_counter
from typing import Callable

from loguru import logger


class Logging:
    """
    Logger facade for the migration tool
    ---------------------------------------
    - one date-rotated file sink, retention window
    - re-pointed once AppConfig is known (reconfigure)
    - stdout belongs to the migrated genesis: anything a
      person must see (warnings, errors) is echoed to stderr
    ---------------------------------------
    """

    FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level:<7} | {message}"

    def __init__(
        self,
        log_dir: str = "logs",
        rotation: str = "1 day",
        retention: str = "30 days",
        log_level: str = "INFO",
    ):
        self.reconfigure(log_dir, rotation, retention, log_level)

    def reconfigure(
        self,
        log_dir: str,
        rotation: str,
        retention: str,
        log_level: str,
    ) -> None:
        """Replace every loguru sink with a file sink under ``log_dir``."""
        self.log_dir = log_dir
        self.rotation = rotation
        self.retention = retention
        self.level = log_level

        os.makedirs(self.log_dir, exist_ok=True)

        logger.remove()
        logger.add(
            sink=os.path.join(self.log_dir, "genmigrate_{time:YYYY-MM-DD}.log"),
            rotation=self.rotation,
            retention=self.retention,
            level=self.level,
            format=self.FORMAT,
            enqueue=True,
            backtrace=True,
            diagnose=False,
        )
        logger.debug(f"logger writing to {self.log_dir} at {self.level}")

    # ---------- basic interface ----------
    def debug(self, msg: str, *args, **kwargs):
        logger.debug(msg, *args, **kwargs)

    def info(self, msg: str, *args, **kwargs):
        logger.info(msg, *args, **kwargs)

    def warning(self, msg: str, *args, **kwargs):
        print(f"WARNING: {msg}", file=sys.stderr)
        logger.warning(msg, *args, **kwargs)

    def error(self, msg: str, *args, **kwargs):
        print(f"ERROR: {msg}", file=sys.stderr)
        logger.error(msg, *args, **kwargs)

    def exception(self, msg: str, *args, **kwargs):
        # traceback goes to the file only, the CLI prints the short form
        logger.exception(msg, *args, **kwargs)

    # ---------- decorator ----------
    def catch(self, msg: str = "failed", log_time: bool = True) -> Callable:
        """
        Log the traceback of anything escaping ``func`` to the file sink,
        then re-raise. Optionally log wall time of successful calls.
        """

        def decorator(func: Callable):
            @wraps(func)
            def wrapper(*args, **kwargs):
                start = perf_counter()
                try:
                    result = func(*args, **kwargs)
                except Exception:
                    logger.exception(f"[ERROR] {func.__name__}: {msg}")
                    raise

                if log_time:
                    logger.info(f"[TIME] {func.__name__} took {perf_counter() - start:.4f}s")
                return result

            return wrapper

        return decorator


# default global logs (re-pointed by the CLI once config is loaded)
logs = Logging(
    log_dir=os.getenv("GENMIGRATE_LOG_DIR", "logs"),
    log_level=os.getenv("GENMIGRATE_LOG_LEVEL", "INFO"),
)
