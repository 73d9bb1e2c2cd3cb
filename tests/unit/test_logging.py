from __future__ import annotations

import logging

from judgearena.utils.logger_config import ColoredFormatter, NoColorFormatter, get_logger


def _record(msg: str) -> logging.LogRecord:
    return logging.LogRecord("judgearena.test", logging.WARNING, __file__, 1, msg, None, None)


def test_colored_formatter_leaves_record_untouched() -> None:
    record = _record("disk almost full")
    output = ColoredFormatter("%(levelname)s %(message)s").format(record)

    assert "\033[33m" in output
    assert record.levelname == "WARNING"
    assert record.msg == "disk almost full"


def test_no_color_formatter_strips_ansi() -> None:
    output = NoColorFormatter("%(levelname)s %(message)s").format(_record("\033[31mred\033[0m text"))
    assert output == "WARNING red text"


def test_loggers_share_the_package_namespace() -> None:
    assert get_logger("judge").name == "judgearena.judge"
