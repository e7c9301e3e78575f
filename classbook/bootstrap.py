from typing import Optional

from classbook.config import Settings
from classbook.repositories.sheet_repo import SheetService
from classbook.services.data_service import DataService
from classbook.services.session_store import SessionStore
from classbook.utils.logger import setup_logger


def create_data_service(settings: Optional[Settings] = None) -> DataService:
    """Wire the default Sheets-backed service from environment settings."""
    settings = settings or Settings.from_env()
    setup_logger("classbook", settings.log_level)
    return DataService(
        sheets=SheetService(),
        store=SessionStore(settings.state_file),
        settings=settings,
    )
