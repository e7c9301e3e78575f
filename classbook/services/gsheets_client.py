import gspread
from google.oauth2.credentials import Credentials

from classbook.config import SCOPES


# -----------------------------
# Google Sheets client (one per access token)
# -----------------------------
def build_client(access_token: str) -> gspread.Client:
    # Token comes from the browser implicit flow; there is no refresh token.
    credentials = Credentials(token=access_token, scopes=SCOPES)
    return gspread.authorize(credentials)


def open_spreadsheet(access_token: str, spreadsheet_id: str) -> gspread.Spreadsheet:
    client = build_client(access_token)
    return client.open_by_key(spreadsheet_id)
