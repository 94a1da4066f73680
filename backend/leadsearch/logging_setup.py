# backend/leadsearch/logging_setup.py
from __future__ import annotations

import logging
import os
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

REPO_ROOT = Path(__file__).resolve().parents[2]
DEFAULT_LOG_DIR = REPO_ROOT / "var" / "logs"

LOG_FORMAT = "%(asctime)s %(levelname)s [%(process)d] %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


class DateSizeRotatingFileHandler(RotatingFileHandler):
    """
    Log file handler for search runs.

    Each file is named ``<prefix>-<YYYYmmdd-HHMMSS-mmm>.log``. When a file
    reaches ``max_bytes`` the handler moves on to a freshly stamped file;
    old files are left where they are, so nothing is ever renamed or
    deleted here.
    """

    def __init__(
        self,
        directory: Path,
        prefix: str = "leadsearch",
        max_bytes: int = 1_000_000,
        encoding: str = "utf-8",
    ):
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)
        self.prefix = prefix
        super().__init__(
            self._stamped_path(),
            maxBytes=max_bytes,
            backupCount=0,
            encoding=encoding,
            errors="replace",
        )

    def _stamped_path(self) -> str:
        stamp = datetime.now().strftime("%Y%m%d-%H%M%S-%f")[:-3]
        return os.fspath(self.directory / f"{self.prefix}-{stamp}.log")

    def doRollover(self) -> None:
        if self.stream:
            self.stream.close()
            self.stream = None
        self.baseFilename = self._stamped_path()
        self.mode = "a"
        self.stream = self._open()


def _resolve_level(level: Optional[str | int]) -> int:
    if level is None:
        level = os.getenv("LOG_LEVEL", "INFO")
    if isinstance(level, int):
        return level
    return getattr(logging, str(level).upper(), logging.INFO)


def _resolve_log_dir(log_dir: Optional[str | Path]) -> Path:
    if log_dir is not None:
        return Path(log_dir)
    env_dir = os.getenv("LOG_DIR")
    return Path(env_dir) if env_dir else DEFAULT_LOG_DIR


def start_log(
    *,
    app_name: str = "leadsearch",
    log_dir: Optional[str | Path] = None,
    level: Optional[str | int] = None,
    to_console: bool = True,
    to_file: bool = True,
    max_bytes: int = 1_000_000,
) -> logging.Logger:
    """
    Point the root logger at a stamped log file and/or the console.

    ``level`` falls back to ``$LOG_LEVEL`` and ``log_dir`` to ``$LOG_DIR``,
    then to ``var/logs`` in the checkout. Handlers from an earlier call are
    dropped, so the app factory and the tools can both call this.
    """
    root = logging.getLogger()
    root.setLevel(_resolve_level(level))
    for existing in list(root.handlers):
        root.removeHandler(existing)

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT)
    target = "-"

    if to_file:
        directory = _resolve_log_dir(log_dir)
        file_handler = DateSizeRotatingFileHandler(directory=directory, prefix=app_name, max_bytes=max_bytes)
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)
        target = str(directory)

    if to_console:
        console = logging.StreamHandler()
        console.setFormatter(formatter)
        console.setLevel(root.level)
        root.addHandler(console)

    root.info("Log started for %s (files: %s, level %s)", app_name, target, logging.getLevelName(root.level))
    return root
