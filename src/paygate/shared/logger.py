import logging
import re
import sys
from datetime import date
from pathlib import Path

from colorama import Fore, Style, just_fix_windows_console

from paygate.shared.config import Config, load_config

config: Config = load_config()

CONSOLE_FORMAT = (
    f"{Style.BRIGHT}%(levelname)-10s "
    f"{Style.DIM}%(name)-28s "
    "%(module)s.%(funcName)-24s "
    f"{Style.RESET_ALL}%(message)s"
)
# Same columns as the console, timestamped and without ANSI escapes
FILE_FORMAT = re.sub(r"\x1b\[[0-9;]*m", "", "%(asctime)s - " + CONSOLE_FORMAT)

LEVEL_COLORS = {
    logging.DEBUG: Fore.CYAN,
    logging.INFO: Fore.GREEN,
    logging.WARNING: Fore.YELLOW,
    logging.ERROR: Fore.RED,
    logging.CRITICAL: Fore.MAGENTA,
}


class ColorFormatter(logging.Formatter):
    def format(self, record):
        color = LEVEL_COLORS.get(record.levelno, Fore.WHITE)
        return f"{color}{super().format(record)}{Style.RESET_ALL}"


def console_handler() -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(ColorFormatter(CONSOLE_FORMAT))
    return handler


def daily_file_handler(log_dir: str | Path) -> logging.Handler:
    """One file per calendar day, e.g. ``logs/2026-10-19.log``."""
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)

    handler = logging.FileHandler(log_dir / f"{date.today().isoformat()}.log")
    handler.setFormatter(logging.Formatter(FILE_FORMAT))
    return handler


class Logger:
    def __init__(self, name, log_file=config.paths.logs, level=config.logging.level):
        just_fix_windows_console()

        self.logger = logging.getLogger(name)
        self.logger.setLevel(level)

        # A module imported twice keeps its first pair of handlers
        if not self.logger.handlers:
            self.logger.addHandler(daily_file_handler(log_file))
            self.logger.addHandler(console_handler())

    def get_logger(self):
        return self.logger
