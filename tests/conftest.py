# tests/conftest.py
import pytest

from classbook.config import BOOKINGS_HEADERS, BOOKINGS_TAB, CLASS_DAYS_HEADERS, CLASS_DAYS_TAB, \
    ROSTER_HEADERS, ROSTER_TAB, Settings
from classbook.repositories.sheet_repo import SheetService
from classbook.services.data_service import DataService
from classbook.services.session_store import SessionStore
from tests.fakes import FakeSpreadsheet


@pytest.fixture
def fake_sheet():
    return (
        FakeSpreadsheet()
        .add_tab(CLASS_DAYS_TAB, CLASS_DAYS_HEADERS)
        .add_tab(BOOKINGS_TAB, BOOKINGS_HEADERS)
        .add_tab(ROSTER_TAB, ROSTER_HEADERS)
    )


@pytest.fixture
def opened():
    return []


@pytest.fixture
def sheets(fake_sheet, opened):
    def opener(token, spreadsheet_id):
        opened.append((token, spreadsheet_id))
        return fake_sheet

    service = SheetService(opener=opener)
    service.set_access_token("tok-123")
    return service


@pytest.fixture
def settings(tmp_path):
    return Settings(state_file=tmp_path / "session.json", auto_sync_seconds=3600, timezone="UTC")


@pytest.fixture
def store(settings):
    return SessionStore(settings.state_file)


@pytest.fixture
def data_service(sheets, store, settings):
    store.set("accessToken", "tok-123")
    store.set("spreadsheetId", "sheet-1")
    return DataService(sheets, store=store, settings=settings)
