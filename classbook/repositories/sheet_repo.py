# classbook/repositories/sheet_repo.py
import logging
from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager
from typing import Callable, Dict, Iterable, List, Optional, Tuple

import gspread
from gspread.exceptions import APIError, SpreadsheetNotFound
from requests.exceptions import RequestException

from classbook.config import BOOKINGS_TAB, CLASS_DAYS_TAB, ROSTER_TAB
from classbook.models.entities import Booking, ClassDay, Student, SyncSnapshot
from classbook.repositories.row_locator import RowRef, TableRowLocator
from classbook.services.errors import (
    AuthError,
    DuplicateError,
    NotFoundError,
    RemoteError,
    SheetError,
)
from classbook.services.gsheets_client import open_spreadsheet
from classbook.utils.date_utils import normalize_date, try_normalize_date

logger = logging.getLogger(__name__)

APPEND_PARAMS = {"valueInputOption": "USER_ENTERED", "insertDataOption": "INSERT_ROWS"}
UPDATE_PARAMS = {"valueInputOption": "USER_ENTERED"}

Opener = Callable[[str, str], gspread.Spreadsheet]


def _api_status(exc: APIError) -> Optional[int]:
    code = getattr(exc, "code", None)
    if code is None and getattr(exc, "response", None) is not None:
        code = getattr(exc.response, "status_code", None)
    return code


def _api_message(exc: APIError) -> str:
    err = getattr(exc, "error", None)
    if isinstance(err, dict) and err.get("message"):
        return err["message"]
    return str(exc) or "Unknown error"


def _parse_numeric_id(value) -> Optional[int]:
    s = str(value or "").strip()
    return int(s) if s.isdigit() else None


class SheetService:
    """
    Typed access to the three booking tabs of one spreadsheet.

    Every mutation re-reads the rows it targets first; nothing here keeps a
    local copy of sheet data between calls. Only spreadsheet handles and
    resolved sheet ids are cached, and both are dropped when the token
    changes.
    """

    def __init__(self, opener: Opener = open_spreadsheet):
        self._opener = opener
        self._access_token: Optional[str] = None
        self._handles: Dict[str, gspread.Spreadsheet] = {}
        self._sheet_ids: Dict[Tuple[str, str], int] = {}

        self.class_days = TableRowLocator(CLASS_DAYS_TAB, columns=1)
        self.bookings = TableRowLocator(BOOKINGS_TAB, columns=3)
        self.roster = TableRowLocator(ROSTER_TAB, columns=4)

    # -----------------------------
    # Session
    # -----------------------------
    def set_access_token(self, token: str) -> None:
        self._access_token = token
        self._reset_cache()

    def clear_access_token(self) -> None:
        self._access_token = None
        self._reset_cache()

    @property
    def has_token(self) -> bool:
        return bool(self._access_token)

    def _reset_cache(self) -> None:
        self._handles.clear()
        self._sheet_ids.clear()

    @contextmanager
    def _api_errors(self, action: str):
        try:
            yield
        except SheetError:
            raise
        except SpreadsheetNotFound as e:
            raise NotFoundError(f"{action} failed: spreadsheet not found") from e
        except APIError as e:
            status = _api_status(e)
            if status == 401:
                self._reset_cache()
                raise AuthError("Token expired") from e
            raise RemoteError(f"{action} failed: {status} {_api_message(e)}", status=status) from e
        except RequestException as e:
            raise RemoteError(f"{action} failed: {e}") from e

    def _spreadsheet(self, spreadsheet_id: str) -> gspread.Spreadsheet:
        if not self._access_token:
            raise AuthError()
        sh = self._handles.get(spreadsheet_id)
        if sh is None:
            with self._api_errors("Open spreadsheet"):
                sh = self._opener(self._access_token, spreadsheet_id)
            self._handles[spreadsheet_id] = sh
        return sh

    # -----------------------------
    # Low-level calls
    # -----------------------------
    def fetch_range(self, spreadsheet_id: str, range_name: str) -> List[List[str]]:
        sh = self._spreadsheet(spreadsheet_id)
        try:
            with self._api_errors(f"Fetch {range_name}"):
                data = sh.values_get(range_name)
        except SheetError:
            logger.error(f"Error fetching range {range_name}", exc_info=True)
            raise
        return data.get("values", [])

    def get_sheet_id(self, spreadsheet_id: str, tab: str) -> int:
        key = (spreadsheet_id, tab)
        if key in self._sheet_ids:
            return self._sheet_ids[key]

        sh = self._spreadsheet(spreadsheet_id)
        with self._api_errors("Fetch spreadsheet info"):
            meta = sh.fetch_sheet_metadata()

        sheets = meta.get("sheets", [])
        for s in sheets:
            props = s.get("properties", {})
            if props.get("title") == tab:
                self._sheet_ids[key] = props["sheetId"]
                return props["sheetId"]

        available = [s.get("properties", {}).get("title") for s in sheets]
        logger.error(f"Sheet '{tab}' not found. Available sheets: {available}")
        raise NotFoundError(f'Sheet "{tab}" not found')

    def _append(self, spreadsheet_id: str, locator: TableRowLocator, rows: List[List[str]]) -> None:
        sh = self._spreadsheet(spreadsheet_id)
        with self._api_errors(f"Append to {locator.tab}"):
            sh.values_append(locator.append_range(), APPEND_PARAMS, {"values": rows})

    def _batch_update(self, spreadsheet_id: str, requests: List[dict], action: str) -> None:
        sh = self._spreadsheet(spreadsheet_id)
        with self._api_errors(action):
            sh.batch_update({"requests": requests})

    def _sort_best_effort(self, spreadsheet_id: str, locator: TableRowLocator, sort_col: int = 0) -> None:
        # The write already landed; a failed sort only leaves rows out of order
        try:
            sheet_id = self.get_sheet_id(spreadsheet_id, locator.tab)
            self._batch_update(spreadsheet_id, [locator.sort_request(sheet_id, sort_col)], f"Sort {locator.tab}")
        except SheetError as e:
            logger.warning(f"Failed to sort sheet {locator.tab}: {e}")

    def _delete_rows(self, spreadsheet_id: str, locator: TableRowLocator, refs: Iterable[RowRef]) -> None:
        sheet_id = self.get_sheet_id(spreadsheet_id, locator.tab)
        requests = locator.delete_requests(sheet_id, refs)
        self._batch_update(spreadsheet_id, requests, f"Delete rows from {locator.tab}")

    # -----------------------------
    # Reads
    # -----------------------------
    def get_class_days(self, spreadsheet_id: str) -> List[ClassDay]:
        values = self.fetch_range(spreadsheet_id, self.class_days.data_range())
        return [ClassDay.from_row(row) for row in values if row and str(row[0]).strip()]

    def get_bookings(self, spreadsheet_id: str) -> List[Booking]:
        values = self.fetch_range(spreadsheet_id, self.bookings.data_range())
        logger.debug(f"Fetched {len(values)} booking rows")
        return [Booking.from_row(row) for row in values if row]

    def get_students(self, spreadsheet_id: str) -> List[Student]:
        values = self.fetch_range(spreadsheet_id, self.roster.data_range())
        logger.debug(f"Fetched {len(values)} roster rows")
        return [Student.from_row(row) for row in values if row]

    def sync_all(self, spreadsheet_id: str) -> SyncSnapshot:
        # Open once up front; the three workers share this handle and its
        # requests session, which only ever sees concurrent GETs here
        self._spreadsheet(spreadsheet_id)
        try:
            with ThreadPoolExecutor(max_workers=3) as pool:
                class_days = pool.submit(self.get_class_days, spreadsheet_id)
                bookings = pool.submit(self.get_bookings, spreadsheet_id)
                students = pool.submit(self.get_students, spreadsheet_id)
                snapshot = SyncSnapshot(
                    class_days=class_days.result(),
                    bookings=bookings.result(),
                    students=students.result(),
                )
        except SheetError:
            logger.error("Error syncing all data", exc_info=True)
            raise

        logger.info(
            f"Synced {len(snapshot.class_days)} class days, "
            f"{len(snapshot.bookings)} bookings, {len(snapshot.students)} students"
        )
        return snapshot

    # -----------------------------
    # Class days
    # -----------------------------
    def add_class_day(self, spreadsheet_id: str, date) -> str:
        key = normalize_date(date)
        values = self.fetch_range(spreadsheet_id, self.class_days.data_range())
        if self.class_days.find(values, lambda row: bool(row) and try_normalize_date(row[0]) == key):
            raise DuplicateError(f"Class day {key} already exists")

        self._append(spreadsheet_id, self.class_days, [[key]])
        logger.info(f"Added class day {key}")
        self._sort_best_effort(spreadsheet_id, self.class_days)
        return key

    def delete_class_day(self, spreadsheet_id: str, date) -> str:
        key = normalize_date(date)
        values = self.fetch_range(spreadsheet_id, self.class_days.data_range())
        ref = self.class_days.find(values, lambda row: bool(row) and try_normalize_date(row[0]) == key)
        if ref is None:
            raise NotFoundError(f"Class day {key} not found")

        logger.debug(f"Deleting class day {key} at sheet row {ref.row_number}")
        self._delete_rows(spreadsheet_id, self.class_days, [ref])
        logger.info(f"Deleted class day {key}")
        return key

    # -----------------------------
    # Roster
    # -----------------------------
    def next_student_id(self, spreadsheet_id: str) -> str:
        """
        Max numeric id in column A plus one. Ids of deactivated students
        still count, so an id is never handed out twice.
        """
        values = self.fetch_range(spreadsheet_id, self.roster.data_range(columns=1))
        nums = [n for n in (_parse_numeric_id(row[0]) for row in values if row) if n is not None]
        return str(max(nums) + 1 if nums else 1)

    def add_student(self, spreadsheet_id: str, name: str, instagram: str = "") -> Student:
        name = (name or "").strip()
        if not name:
            raise ValueError("Student name is empty")

        student = Student(id=self.next_student_id(spreadsheet_id), name=name,
                          instagram=(instagram or "").strip(), active=True)
        self._append(spreadsheet_id, self.roster, [student.to_row()])
        logger.info(f"Added student {student.id} ({student.name})")
        self._sort_best_effort(spreadsheet_id, self.roster)
        return student

    def update_student(self, spreadsheet_id: str, student: Student) -> Student:
        values = self.fetch_range(spreadsheet_id, self.roster.data_range())
        ref = self.roster.find(values, lambda row: bool(row) and str(row[0]).strip() == student.id)
        if ref is None:
            raise NotFoundError(f"Student {student.id} not found", missing=[student.id])

        sh = self._spreadsheet(spreadsheet_id)
        with self._api_errors(f"Update student {student.id}"):
            sh.values_update(self.roster.row_range(ref), UPDATE_PARAMS, {"values": [student.to_row()]})
        logger.info(f"Updated student {student.id} at sheet row {ref.row_number}")
        return student

    def sync_booking_student_name(self, spreadsheet_id: str, student: Student) -> int:
        values = self.fetch_range(spreadsheet_id, self.bookings.data_range())
        refs = self.bookings.find_all(values, lambda row: len(row) > 2 and str(row[2]).strip() == student.id)
        if not refs:
            logger.debug(f"No bookings to rename for student {student.id}")
            return 0

        data = [{"range": self.bookings.cell_range(ref, 2), "values": [[student.name]]} for ref in refs]
        sh = self._spreadsheet(spreadsheet_id)
        with self._api_errors(f"Rename bookings of student {student.id}"):
            sh.values_batch_update({"valueInputOption": "USER_ENTERED", "data": data})
        logger.info(f"Renamed {len(refs)} booking rows for student {student.id}")
        return len(refs)

    # -----------------------------
    # Bookings
    # -----------------------------
    def add_booking(self, spreadsheet_id: str, date, student_ids: Iterable[str]) -> List[Booking]:
        key = normalize_date(date)
        if isinstance(student_ids, str):
            raise ValueError("student_ids must be a list of ids, not a single string")
        ids = list(dict.fromkeys(str(i).strip() for i in student_ids))
        if not ids:
            raise ValueError("No students selected")

        by_id = {s.id: s for s in self.get_students(spreadsheet_id)}
        missing = [i for i in ids if i not in by_id]
        if missing:
            raise NotFoundError(f"Students not found: {', '.join(missing)}", missing=missing)

        bookings = [Booking.create(key, by_id[i]) for i in ids]
        self._append(spreadsheet_id, self.bookings, [b.to_row() for b in bookings])
        logger.info(f"Added {len(bookings)} bookings on {key}")
        self._sort_best_effort(spreadsheet_id, self.bookings)
        return bookings

    def remove_booking(self, spreadsheet_id: str, student_id: str, date) -> int:
        key = normalize_date(date)
        student_id = str(student_id).strip()
        values = self.fetch_range(spreadsheet_id, self.bookings.data_range())
        refs = self.bookings.find_all(
            values,
            lambda row: len(row) > 2
            and try_normalize_date(row[0]) == key
            and str(row[2]).strip() == student_id,
        )
        if not refs:
            logger.info(f"No booking of student {student_id} on {key} to remove")
            return 0

        self._delete_rows(spreadsheet_id, self.bookings, refs)
        logger.info(f"Removed {len(refs)} bookings of student {student_id} on {key}")
        return len(refs)
