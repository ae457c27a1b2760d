# src/config/logging_config.py

"""Logging for pricewatch commands.

Every CLI invocation writes a log file inside ``logs/`` named after the
command and its start time (e.g. ``logs/sweep_20261019_030000.log``), so
a scheduled sweep's history can be read apart from interactive runs.
Only the newest ``Settings.LOG_FILES_KEPT`` files per command are kept.

The console handler writes to stderr; stdout carries only tables and
JSON.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path

from src.config.settings import Settings

_DETAILED_FORMAT = (
    "%(asctime)s | %(levelname)-8s | %(name)s | %(module)s:%(funcName)s:%(lineno)d | "
    "%(message)s"
)

_CONSOLE_FORMAT = "%(asctime)s | %(levelname)-8s | %(message)s"

_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Libraries that log per request at INFO/DEBUG
_QUIET_LOGGERS: tuple[str, ...] = ("asyncio", "curl_cffi", "urllib3")


def prune_old_logs(logs_dir: Path, command: str, keep: int) -> list[Path]:
    """Delete all but the newest *keep* log files for *command*.

    Returns the removed paths.
    """
    files = sorted(logs_dir.glob(f"{command}_*.log"), reverse=True)
    removed = files[max(keep, 0):]
    for path in removed:
        path.unlink(missing_ok=True)
    return removed


def setup_logging(verbose: bool = False, command: str = "run") -> Path:
    """Attach file and console handlers to the ``pricewatch`` logger.

    Args:
        verbose: Show INFO on the console instead of WARNING and above.
        command: CLI subcommand, used as the log file prefix.

    Returns:
        Path of the log file for this invocation.
    """
    logs_dir: Path = Settings.LOGS_DIR
    logs_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = logs_dir / f"{command}_{timestamp}.log"

    root_logger = logging.getLogger("pricewatch")
    root_logger.setLevel(logging.DEBUG)

    # Repeated calls (tests, re-entry) keep the first handlers
    if root_logger.handlers:
        return log_file

    prune_old_logs(logs_dir, command, Settings.LOG_FILES_KEPT - 1)

    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(
        logging.Formatter(_DETAILED_FORMAT, datefmt=_DATE_FORMAT)
    )

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(logging.INFO if verbose else logging.WARNING)
    console_handler.setFormatter(
        logging.Formatter(_CONSOLE_FORMAT, datefmt=_DATE_FORMAT)
    )

    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    root_logger.info("pricewatch %s logging to %s", command, log_file)
    return log_file
