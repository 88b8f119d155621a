import logging

import orjson

from little_wars.core.logger import JsonFormatter, PlainFormatter, get_logger


def make_record(**extra):
    record = logging.LogRecord("little-wars.engine", logging.INFO, __file__, 1, "Round closed", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_includes_extra_fields():
    line = JsonFormatter().format(make_record(session="abc", win=2.5))
    payload = orjson.loads(line)

    assert payload["message"] == "Round closed"
    assert payload["level"] == "INFO"
    assert payload["session"] == "abc"
    assert payload["win"] == 2.5


def test_plain_formatter_has_no_colour_codes():
    line = PlainFormatter().format(make_record())
    assert "Round closed" in line
    assert "\033[" not in line


def test_child_loggers_share_the_root_name():
    assert get_logger("engine").name == "little-wars.engine"
