"""
Google Sheets Storage Implementation

DESIGN DECISION: The same key-value documents that normally live in JSON
files can be mirrored into a single worksheet, one row per key:

    key | payload | updated_at

This gives the user a copy of their data they can inspect in Sheets
without any database setup.

TRADEOFFS:
- A cell holds at most 50,000 characters, so very large shift histories
  will not fit (we're fine for personal use)
- No transactions: a write updates one row, which is all we need
- Every read goes back to the API; DataStore only reads on load
"""

from datetime import datetime
from typing import Optional

import gspread
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from worktracker.config import GoogleSheetsSettings, get_settings
from worktracker.services.storage.interface import (
    StorageBackend,
    StorageConnectionError,
    StorageError,
)


STORE_COLUMNS = [
    "key",
    "payload",
    "updated_at",
]

# gspread cell limit
MAX_CELL_CHARS = 50000


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = settings or get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise StorageConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise StorageConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise StorageConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def get_store_sheet(self) -> gspread.Worksheet:
        """Get or create the key-value worksheet."""
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(self._settings.store_sheet_name)
        except gspread.WorksheetNotFound:
            # Create the sheet with headers
            sheet = spreadsheet.add_worksheet(
                title=self._settings.store_sheet_name,
                rows=100,
                cols=len(STORE_COLUMNS),
            )
            sheet.append_row(STORE_COLUMNS)
        return sheet


class GoogleSheetsBackend(StorageBackend):
    """
    Google Sheets implementation of StorageBackend.

    Rows are located by their key column; row 1 is the header.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _find_row(self, rows: list[list[str]], key: str) -> Optional[int]:
        """1-based sheet row index of a key, or None."""
        for idx, row in enumerate(rows[1:], start=2):  # Start from 2 (row 1 is header)
            if row and row[0] == key:
                return idx
        return None

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def read(self, key: str) -> Optional[str]:
        try:
            sheet = self._client.get_store_sheet()
            rows = sheet.get_all_values()
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to read {key}: {e}")

        idx = self._find_row(rows, key)
        if idx is None:
            return None
        row = rows[idx - 1]
        return row[1] if len(row) > 1 else ""

    def write(self, key: str, payload: str) -> None:
        if len(payload) > MAX_CELL_CHARS:
            raise StorageError(
                f"Payload for {key} is {len(payload)} characters, "
                f"over the {MAX_CELL_CHARS} cell limit"
            )
        self._put_row(key, payload)

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def _put_row(self, key: str, payload: str) -> None:
        """Insert or overwrite the row for a key."""
        try:
            sheet = self._client.get_store_sheet()
            rows = sheet.get_all_values()
            new_row = [key, payload, datetime.now().isoformat()]

            idx = self._find_row(rows, key)
            if idx is None:
                sheet.append_row(new_row, value_input_option="RAW")
            else:
                sheet.update(
                    range_name=f"A{idx}:C{idx}",
                    values=[new_row],
                    value_input_option="RAW",
                )
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to write {key}: {e}")

    def remove(self, key: str) -> None:
        try:
            sheet = self._client.get_store_sheet()
            idx = self._find_row(sheet.get_all_values(), key)
            if idx is not None:
                sheet.delete_rows(idx)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to remove {key}: {e}")

    def keys(self) -> list[str]:
        try:
            sheet = self._client.get_store_sheet()
            rows = sheet.get_all_values()[1:]  # Skip header
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to list keys: {e}")
        return sorted(row[0] for row in rows if row and row[0])
