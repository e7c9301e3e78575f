import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]

HEADER_ROWS = 1

CLASS_DAYS_TAB = os.getenv("CLASSBOOK_CLASS_DAYS_TAB", "ClassDays")
CLASS_DAYS_HEADERS = [
    "date",                   # YYYY-MM-DD
]

BOOKINGS_TAB = os.getenv("CLASSBOOK_BOOKINGS_TAB", "Bookings")
BOOKINGS_HEADERS = [
    "date",                   # YYYY-MM-DD
    "student_name",           # copied from Roster at booking time
    "student_id",
]

ROSTER_TAB = os.getenv("CLASSBOOK_ROSTER_TAB", "Roster")
ROSTER_HEADERS = [
    "id",                     # numeric string, never reused
    "name",
    "instagram",
    "active",                 # "true" / "false"
]

# Keys of the persisted session file
KEY_ACCESS_TOKEN = "accessToken"
KEY_SPREADSHEET_ID = "spreadsheetId"
KEY_AUTO_SYNC = "autoSync"

DEFAULT_STATE_FILE = Path.home() / ".classbook" / "session.json"


def _env_flag(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Settings:
    state_file: Path = DEFAULT_STATE_FILE
    auto_sync_seconds: float = 300.0
    timezone: str = "UTC"
    log_level: str = "INFO"
    require_empty_class_to_close: bool = False

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            state_file=Path(os.getenv("CLASSBOOK_STATE_FILE", str(DEFAULT_STATE_FILE))),
            auto_sync_seconds=float(os.getenv("CLASSBOOK_AUTO_SYNC_SECONDS", "300")),
            timezone=os.getenv("CLASSBOOK_TIMEZONE", "UTC"),
            log_level=os.getenv("CLASSBOOK_LOG_LEVEL", "INFO").upper(),
            require_empty_class_to_close=_env_flag("CLASSBOOK_REQUIRE_EMPTY_CLASS_TO_CLOSE"),
        )
