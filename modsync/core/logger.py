from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Any


def setup_logging(log_dir: str = "logs", *, level: str = "INFO", max_bytes: int = 1_000_000, backup_count: int = 5) -> logging.Logger:
    os.makedirs(log_dir, exist_ok=True)

    logger = logging.getLogger("modsync")
    logger.setLevel(getattr(logging, str(level or "INFO").upper(), logging.INFO))
    logger.propagate = False

    if not any(isinstance(h, RotatingFileHandler) for h in logger.handlers):
        text_path = os.path.join(log_dir, "modsync.log")
        h = RotatingFileHandler(text_path, maxBytes=int(max_bytes), backupCount=int(backup_count), encoding="utf-8")
        h.setFormatter(logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s"))
        logger.addHandler(h)

    if not any(isinstance(h, logging.StreamHandler) and not isinstance(h, RotatingFileHandler) for h in logger.handlers):
        sh = logging.StreamHandler()
        sh.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(sh)

    return logger


def component_logger(name: str, logger: Any = None) -> Any:
    """Child of the injected logger, or of the package logger when none is given."""
    if logger is not None:
        return logger.getChild(name) if isinstance(logger, logging.Logger) else logger
    return logging.getLogger(f"modsync.{name}")
