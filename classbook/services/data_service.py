# classbook/services/data_service.py
import logging
import threading
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Callable, List, Optional, Set, Tuple

import pytz

from classbook.config import KEY_ACCESS_TOKEN, KEY_AUTO_SYNC, KEY_SPREADSHEET_ID, Settings
from classbook.models.entities import BookingInfo, ClassDay, Student
from classbook.repositories.sheet_repo import SheetService
from classbook.services.aggregate import build_booking_infos
from classbook.services.auto_sync import AutoSync
from classbook.services.errors import NotFoundError, SheetError, is_auth_failure
from classbook.services.session_store import SessionStore
from classbook.utils.date_utils import normalize_date, today_key

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DataServiceState:
    is_authenticated: bool = False
    spreadsheet_id: Optional[str] = None
    students: Tuple[Student, ...] = field(default_factory=tuple)
    bookings: Tuple[BookingInfo, ...] = field(default_factory=tuple)
    class_days: Tuple[ClassDay, ...] = field(default_factory=tuple)
    is_loading: bool = False
    error: Optional[str] = None
    last_synced_at: Optional[datetime] = None
    auto_sync: bool = False


Listener = Callable[[DataServiceState], None]


class DataService:
    """
    Observable front of the booking sheet.

    Every mutation performs one remote write and then re-reads all three
    tabs; there is no optimistic local update. Errors end up as a single
    message in ``state.error``. Auth failures also log the user out.
    """

    def __init__(self, sheets: SheetService, store: Optional[SessionStore] = None,
                 settings: Optional[Settings] = None):
        self.settings = settings or Settings.from_env()
        self.sheets = sheets
        self.store = store or SessionStore(self.settings.state_file)
        self._listeners: Set[Listener] = set()
        self._lock = threading.RLock()

        token = self.store.get(KEY_ACCESS_TOKEN)
        if token:
            self.sheets.set_access_token(token)

        self._state = DataServiceState(
            is_authenticated=bool(token),
            spreadsheet_id=self.store.get(KEY_SPREADSHEET_ID),
            auto_sync=bool(self.store.get(KEY_AUTO_SYNC, False)),
        )
        self._auto = AutoSync(
            self.sync_all,
            self.settings.auto_sync_seconds,
            should_run=lambda: self._state.is_authenticated,
        )
        if self._state.auto_sync and self._state.is_authenticated:
            self._auto.start()
        if self._state.is_authenticated and self._state.spreadsheet_id:
            # A stale stored token ends in a forced logout here
            self.sync_all()

    # -----------------------------
    # Observable
    # -----------------------------
    def get_state(self) -> DataServiceState:
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        with self._lock:
            self._listeners.add(listener)

        def unsubscribe() -> None:
            with self._lock:
                self._listeners.discard(listener)

        return unsubscribe

    def _set_state(self, **changes) -> None:
        with self._lock:
            self._state = replace(self._state, **changes)
            state = self._state
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(state)
            except Exception:
                logger.error("State listener raised", exc_info=True)

    # -----------------------------
    # Session
    # -----------------------------
    def login(self, token: str) -> None:
        token = (token or "").strip()
        if not token:
            raise ValueError("Access token is empty")
        self.sheets.set_access_token(token)
        self.store.set(KEY_ACCESS_TOKEN, token)
        self._set_state(is_authenticated=True, error=None)
        if self._state.auto_sync:
            self._auto.start()
        logger.info("Logged in")

    def logout(self) -> None:
        self.store.remove(KEY_ACCESS_TOKEN)
        self.store.remove(KEY_SPREADSHEET_ID)
        self.sheets.clear_access_token()
        self._auto.stop()
        self._set_state(is_authenticated=False, spreadsheet_id=None)
        logger.info("Logged out")

    def set_spreadsheet_id(self, spreadsheet_id: str) -> None:
        spreadsheet_id = (spreadsheet_id or "").strip()
        if not spreadsheet_id:
            raise ValueError("Spreadsheet id is empty")
        self.store.set(KEY_SPREADSHEET_ID, spreadsheet_id)
        self._set_state(spreadsheet_id=spreadsheet_id)

    def set_auto_sync(self, enabled: bool) -> None:
        self.store.set(KEY_AUTO_SYNC, bool(enabled))
        self._set_state(auto_sync=bool(enabled))
        if enabled and self._state.is_authenticated:
            self._auto.start()
        else:
            self._auto.stop()

    # -----------------------------
    # Sync
    # -----------------------------
    def sync_all(self) -> bool:
        state = self._state
        if not state.spreadsheet_id or not state.is_authenticated:
            self._set_state(error="No spreadsheet selected or not logged in")
            return False

        self._set_state(is_loading=True, error=None)
        try:
            snapshot = self.sheets.sync_all(state.spreadsheet_id)
            self._set_state(
                students=tuple(snapshot.students),
                bookings=tuple(build_booking_infos(snapshot)),
                class_days=tuple(snapshot.class_days),
                error=None,
                last_synced_at=datetime.now(pytz.UTC),
            )
            return True
        except Exception as e:
            logger.error(f"Sync failed: {e}", exc_info=True)
            self._set_state(error=str(e) or "Sync failed")
            if is_auth_failure(e):
                self.logout()
            return False
        finally:
            self._set_state(is_loading=False)

    def _mutate(self, action: str, write: Callable[[str], object]):
        self._set_state(is_loading=True, error=None)
        try:
            spreadsheet_id = self._state.spreadsheet_id
            if not spreadsheet_id:
                raise SheetError("No spreadsheet selected")
            result = write(spreadsheet_id)
        except Exception as e:
            logger.error(f"{action} failed: {e}", exc_info=True)
            self._set_state(is_loading=False, error=str(e) or f"{action} failed")
            if is_auth_failure(e):
                self.logout()
            raise
        self.sync_all()
        return result

    # -----------------------------
    # Class days
    # -----------------------------
    def start_class(self, date=None) -> str:
        def write(sid: str) -> str:
            key = normalize_date(date) if date is not None else today_key(self.settings.timezone)
            return self.sheets.add_class_day(sid, key)

        return self._mutate("Start class", write)

    def close_class(self, date) -> str:
        def write(sid: str) -> str:
            key = normalize_date(date)
            if self.settings.require_empty_class_to_close:
                booked = [b for b in self.sheets.get_bookings(sid) if b.date == key]
                if booked:
                    raise SheetError(f"Cannot close class {key}: {len(booked)} students booked")
            return self.sheets.delete_class_day(sid, key)

        return self._mutate("Close class", write)

    # -----------------------------
    # Students
    # -----------------------------
    def add_student(self, name: str, instagram: str = "") -> Student:
        return self._mutate("Add student", lambda sid: self.sheets.add_student(sid, name, instagram))

    def _find_student(self, student_id: str) -> Student:
        for s in self._state.students:
            if s.id == student_id:
                return s
        raise NotFoundError(f"Student {student_id} not found", missing=[student_id])

    def edit_student(self, student_id: str, name: Optional[str] = None, active: Optional[bool] = None,
                     instagram: Optional[str] = None) -> Student:
        def write(sid: str) -> Student:
            current = self._find_student(student_id)
            updated = replace(
                current,
                name=name.strip() if name is not None else current.name,
                active=current.active if active is None else bool(active),
                instagram=current.instagram if instagram is None else instagram.strip(),
            )
            self.sheets.update_student(sid, updated)
            if updated.name != current.name:
                self.sheets.sync_booking_student_name(sid, updated)
            return updated

        return self._mutate("Edit student", write)

    def deactivate_student(self, student_id: str) -> Student:
        return self.edit_student(student_id, active=False)

    def reactivate_student(self, student_id: str) -> Student:
        return self.edit_student(student_id, active=True)

    # -----------------------------
    # Bookings
    # -----------------------------
    def add_booking(self, date, student_ids: List[str]):
        return self._mutate("Add booking", lambda sid: self.sheets.add_booking(sid, date, student_ids))

    def remove_booking(self, student_id: str, date) -> int:
        return self._mutate("Remove booking", lambda sid: self.sheets.remove_booking(sid, student_id, date))
