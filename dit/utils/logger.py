# dit/utils/logger.py
# File loggers for the audit trail: "access" records redemptions and session
# lifecycle, "error" keeps full tracebacks out of client responses.

import logging
import os
import traceback

from dit import config

os.makedirs(config.LOGS_PATH, exist_ok=True)

_PLAIN = logging.Formatter("%(asctime)s [%(levelname)s] %(message)s", "%Y-%m-%d %H:%M:%S")


def _file_logger(name: str, filename: str, level: int) -> logging.Logger:
    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.propagate = False

    # Re-imports (reloaders, tests) must not stack handlers
    if not logger.handlers:
        handler = logging.FileHandler(os.path.join(config.LOGS_PATH, filename), encoding="utf-8")
        handler.setFormatter(_PLAIN)
        logger.addHandler(handler)
    return logger


access_logger = _file_logger("access", "access.log", logging.INFO)
error_logger = _file_logger("error", "error.log", logging.ERROR)


def log_info(message: str) -> None:
    access_logger.info(message)


def log_exception(e: Exception, context: str = "") -> None:
    error_logger.error(f"{context}: {type(e).__name__}: {e}\n{traceback.format_exc()}")


def redact(secret: str | None, keep: int = 6) -> str:
    """Short prefix of a code or token, safe to log."""
    if not secret:
        return ""
    return secret[:keep] + "…" if len(secret) > keep else secret
