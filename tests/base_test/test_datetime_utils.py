#!filepath: tests/base_test/test_datetime_utils.py
from datetime import datetime, timezone

import pytest

from humiture import datetime_utils


def test_fmt_simulation_start():
    assert datetime_utils.fmt(1615251600) == "2021-03-09 09:00:00"
    assert datetime_utils.fmt(1617930000) == "2021-04-09 09:00:00"


def test_fmt_other_timezone():
    assert datetime_utils.fmt(1615251600, "UTC") == "2021-03-09 01:00:00"


def test_to_epoch_from_string():
    assert datetime_utils.to_epoch("2021-03-09 09:00:00") == 1615251600
    assert datetime_utils.to_epoch("2021-03-09T09:00:00") == 1615251600
    assert datetime_utils.to_epoch("1615251600") == 1615251600


def test_parse_int_units():
    sec = datetime_utils.parse(1615252295)
    ms = datetime_utils.parse(1615252295000)
    assert sec == ms
    assert sec.strftime("%H:%M:%S") == "09:11:35"


def test_parse_aware_datetime_converts_zone():
    dt = datetime(2021, 3, 9, 1, 0, tzinfo=timezone.utc)
    assert datetime_utils.parse(dt).hour == 9


def test_parse_invalid():
    with pytest.raises(ValueError):
        datetime_utils.parse("not a time")
    with pytest.raises(TypeError):
        datetime_utils.parse(1.5)
