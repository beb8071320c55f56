from __future__ import annotations
import logging
from logging.handlers import RotatingFileHandler
import inspect, os, functools, time
from pathlib import Path

from eth_sniper.utils.errors import EthSniperError

_DEFAULT_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
_MAX_BYTES = int(os.getenv("LOG_MAX_BYTES", "1048576"))
_BACKUP_COUNT = int(os.getenv("LOG_BACKUP_COUNT", "3"))
_LOG_TO_FILE = os.getenv("LOG_TO_FILE", "true").lower() == "true"

class _LoggerManager:
    def __init__(self) -> None:
        self._configured = False
        self._module_handlers: dict[str, logging.Handler] = {}
        self._log_dir = os.getenv("LOG_DIR", "./logs")

    def _ensure(self) -> None:
        if self._configured:
            return

        level = getattr(logging, _DEFAULT_LEVEL, logging.INFO)
        fmt = logging.Formatter(
            fmt="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        )

        root = logging.getLogger()
        root.setLevel(level)
        if not any(isinstance(h, logging.StreamHandler) for h in root.handlers):
            sh = logging.StreamHandler()
            sh.setLevel(level); sh.setFormatter(fmt)
            root.addHandler(sh)

        # httpx logs every Bot API poll at INFO
        logging.getLogger("httpx").setLevel(logging.WARNING)

        if _LOG_TO_FILE:
            Path(self._log_dir).mkdir(parents=True, exist_ok=True)
        self._configured = True

    def setup_logger(self, name: str) -> logging.Logger:
        self._ensure()
        logger = logging.getLogger(name)

        if _LOG_TO_FILE and name not in self._module_handlers:
            safe_name = name.replace(".", "_").replace("/", "_")
            file_path = os.path.join(self._log_dir, f"{safe_name}.log")
            try:
                fh = RotatingFileHandler(file_path, maxBytes=_MAX_BYTES, backupCount=_BACKUP_COUNT, encoding="utf-8")
                fh.setLevel(getattr(logging, _DEFAULT_LEVEL, logging.INFO))
                fh.setFormatter(logging.Formatter(
                    fmt="%(asctime)s | %(levelname)s | %(message)s",
                    datefmt="%Y-%m-%d %H:%M:%S"
                ))
                self._module_handlers[name] = fh
                logger.addHandler(fh)
                logger.propagate = True  # console output still goes through root
            except OSError as e:
                logging.getLogger(__name__).warning(f"No file handler for {name}: {e}")

        return logger

logger_manager = _LoggerManager()

def log_function(func):
    """Trace entry, exit and duration of ``func``; log and re-raise failures.

    Works for plain functions and coroutine functions alike.
    """
    if inspect.iscoroutinefunction(func):
        @functools.wraps(func)
        async def async_wrapper(*args, **kwargs):
            logger = logger_manager.setup_logger(func.__module__)
            logger.debug(f"→ {func.__qualname__} args={args[1:] if args else args} kwargs={kwargs}")
            t0 = time.time()
            try:
                result = await func(*args, **kwargs)
                logger.debug(f"← {func.__qualname__} ({(time.time()-t0)*1000:.1f} ms)")
                return result
            except EthSniperError as e:
                logger.warning(f"✗ {func.__qualname__}: {e}")
                raise
            except Exception as e:
                logger.exception(f"✗ {func.__qualname__}: {e}")
                raise
        return async_wrapper

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        logger = logger_manager.setup_logger(func.__module__)
        logger.debug(f"→ {func.__qualname__} args={args[1:] if args else args} kwargs={kwargs}")
        t0 = time.time()
        try:
            result = func(*args, **kwargs)
            logger.debug(f"← {func.__qualname__} ({(time.time()-t0)*1000:.1f} ms)")
            return result
        except EthSniperError as e:
            logger.warning(f"✗ {func.__qualname__}: {e}")
            raise
        except Exception as e:
            logger.exception(f"✗ {func.__qualname__}: {e}")
            raise
    return wrapper
