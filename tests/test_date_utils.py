import re
from datetime import date, datetime

import pandas as pd
import pytest

from classbook.utils.date_utils import normalize_date, today_key, try_normalize_date


@pytest.mark.parametrize("raw", ["2024-3-5", "2024-03-05", "2024/3/5", "2024/03/05", " 2024-03-05 "])
def test_normalize_date_pads_month_and_day(raw):
    assert normalize_date(raw) == "2024-03-05"


def test_normalize_date_ignores_time_suffix():
    assert normalize_date("2024-03-05T10:30:00") == "2024-03-05"
    assert normalize_date("2024/3/5 10:30") == "2024-03-05"


def test_normalize_date_accepts_date_values():
    assert normalize_date(date(2024, 3, 5)) == "2024-03-05"
    assert normalize_date(datetime(2024, 12, 1, 23, 59)) == "2024-12-01"
    assert normalize_date(pd.Timestamp("2024-07-09")) == "2024-07-09"


@pytest.mark.parametrize("raw", ["", "   ", None, "not a date", "2024-13-01", "2024-03", "5 March 2024"])
def test_normalize_date_rejects_garbage(raw):
    with pytest.raises(ValueError):
        normalize_date(raw)


def test_try_normalize_date_returns_none_on_garbage():
    assert try_normalize_date("date") is None
    assert try_normalize_date("") is None
    assert try_normalize_date("2024-1-2") == "2024-01-02"


def test_today_key_is_normalized():
    key = today_key("Asia/Taipei")
    assert re.fullmatch(r"\d{4}-\d{2}-\d{2}", key)
