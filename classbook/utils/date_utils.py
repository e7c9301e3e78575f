import re
from datetime import date, datetime
from typing import Optional, Union

import pandas as pd
import pytz

DateLike = Union[str, date, datetime, pd.Timestamp]

_SPLIT_RE = re.compile(r"[-/]")


def normalize_date(value: DateLike) -> str:
    """
    Canonical YYYY-MM-DD key used to join class days and bookings.
    Accepts date/datetime/Timestamp values or strings like "2024-3-5",
    "2024/03/05" or "2024-03-05T10:00".
    """
    if isinstance(value, (datetime, pd.Timestamp)):
        return f"{value.year:04d}-{value.month:02d}-{value.day:02d}"
    if isinstance(value, date):
        return value.isoformat()
    if value is None:
        raise ValueError("Date is empty")

    s = str(value).strip()
    if not s:
        raise ValueError("Date is empty")

    # Drop a trailing time component
    s = re.split(r"[T\s]", s, maxsplit=1)[0]
    parts = _SPLIT_RE.split(s)
    if len(parts) != 3 or not all(p.isdigit() for p in parts):
        raise ValueError(f"Unrecognised date: {value!r}")

    year, month, day = (int(p) for p in parts)
    if not (1 <= month <= 12 and 1 <= day <= 31):
        raise ValueError(f"Unrecognised date: {value!r}")
    return f"{year:04d}-{month:02d}-{day:02d}"


def try_normalize_date(value) -> Optional[str]:
    # Blank or garbage cells never match anything
    try:
        return normalize_date(value)
    except ValueError:
        return None


def today_key(tz_name: str = "UTC") -> str:
    return normalize_date(datetime.now(pytz.timezone(tz_name)))
