"""
Logging configuration for JudgeArena

Console output gets colored level names and messages; file output is
written without ANSI codes so it stays grep-friendly. Contest-visible
log lines (solves, first bloods, admin actions) are stored separately in
the database and are not handled here.
"""

import logging
import re
import sys
from typing import Optional

# Libraries that log every request or socket frame at INFO
NOISY_LOGGERS = ("werkzeug", "engineio.server", "socketio.server")


class ColoredFormatter(logging.Formatter):
    """Formatter that colors the level name and message of console records"""

    COLORS = {
        'DEBUG': '\033[32m',      # Green text
        'INFO': '\033[36m',       # Cyan text
        'WARNING': '\033[33m',    # Yellow text
        'ERROR': '\033[31m',      # Red text
        'CRITICAL': '\033[41m\033[97m', # Red background + white text
    }
    RESET = '\033[0m'

    def format(self, record):
        color = self.COLORS.get(record.levelname)
        if not color:
            return super().format(record)

        levelname, msg = record.levelname, record.msg
        record.levelname = f"{color}{levelname}{self.RESET}"
        record.msg = f"{color}{msg}{self.RESET}"
        try:
            return super().format(record)
        finally:
            # Other handlers see the same record object
            record.levelname, record.msg = levelname, msg


class NoColorFormatter(logging.Formatter):
    """Formatter for log files; strips any ANSI codes that reached the message"""

    ANSI_ESCAPE = re.compile(r'\x1B(?:[@-Z\\-_]|\[[0-?]*[ -/]*[@-~])')

    def format(self, record):
        return self.ANSI_ESCAPE.sub('', super().format(record))


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    enable_colors: bool = True
) -> None:
    """
    Setup logging configuration

    Args:
        level: Console logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional log file path; the file always records DEBUG and up
        enable_colors: Whether to enable colored output for console
    """
    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)

    base_format = '%(asctime)s.%(msecs)03d | %(levelname)-8s | %(name)s | %(filename)s:%(lineno)d - %(message)s'
    date_format = '%Y-%m-%d %H:%M:%S'

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(getattr(logging, level.upper(), logging.INFO))
    formatter_class = ColoredFormatter if enable_colors and sys.stdout.isatty() else NoColorFormatter
    console_handler.setFormatter(formatter_class(base_format, datefmt=date_format))
    root.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, mode='a', encoding='utf-8')
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(NoColorFormatter(base_format, datefmt=date_format))
        root.addHandler(file_handler)

    root.setLevel(logging.DEBUG)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the ``judgearena`` namespace, e.g. ``judgearena.judge``"""
    return logging.getLogger(f"judgearena.{name}")
