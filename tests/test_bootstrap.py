import logging
from unittest.mock import MagicMock, patch

from classbook.bootstrap import create_data_service
from classbook.config import Settings
from classbook.repositories.sheet_repo import SheetService
from classbook.services import gsheets_client


def test_create_data_service_wires_defaults(tmp_path):
    settings = Settings(state_file=tmp_path / "session.json", log_level="DEBUG")
    service = create_data_service(settings)
    assert isinstance(service.sheets, SheetService)
    assert service.store.path == settings.state_file
    assert service.get_state().is_authenticated is False
    assert logging.getLogger("classbook").handlers


def test_open_spreadsheet_uses_bearer_token():
    client = MagicMock()
    with patch.object(gsheets_client.gspread, "authorize", return_value=client) as authorize:
        sh = gsheets_client.open_spreadsheet("tok-abc", "sheet-1")

    creds = authorize.call_args[0][0]
    assert creds.token == "tok-abc"
    client.open_by_key.assert_called_once_with("sheet-1")
    assert sh is client.open_by_key.return_value
