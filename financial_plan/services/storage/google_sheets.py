"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is offered as a storage backend because:
1. Accountants can inspect the manual log directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)

Layout:
- State sheet: one row per company/location, the full payload serialized
  as JSON in a single cell. The row is replaced on every save.
- Manual log sheet: append-only, one row per audit entry. The log is never
  rewritten; each save appends the entries it produced.

TRADEOFFS:
- A cell holds at most 50,000 characters, which bounds the size of the
  override maps per context (plenty for a yearly plan of a small company)
- No transactions: the state row is written before the log rows, so a
  failure in between leaves the state saved and the log short, never the
  opposite
"""

import json
from datetime import datetime, timezone
from typing import Optional

import gspread
from google.oauth2.service_account import Credentials
from pydantic import ValidationError
from tenacity import retry, stop_after_attempt, wait_exponential

from financial_plan.config import GoogleSheetsSettings, get_settings
from financial_plan.models.state import PlanContext, PlanStatePayload
from financial_plan.services.storage.interface import (
    ConnectionError,
    PlanStateStorageInterface,
    StorageError,
)


# Column mappings for the state sheet
STATE_COLUMNS = [
    "context_key",
    "updated_at",
    "causali_version",
    "state_json",
]

# Column mappings for the manual log sheet
MANUAL_LOG_COLUMNS = [
    "context_key",
    "id",
    "created_at",
    "year",
    "month",
    "macro_category",
    "category",
    "causale",
    "value",
]


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
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

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
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def _get_or_create_sheet(self, title: str, columns: list[str], rows: int) -> gspread.Worksheet:
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            # Create the sheet with headers
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=rows,
                cols=len(columns),
            )
            sheet.append_row(columns)
        return sheet

    def get_state_sheet(self) -> gspread.Worksheet:
        """Get or create the plan state worksheet."""
        return self._get_or_create_sheet(
            self._settings.state_sheet_name, STATE_COLUMNS, rows=100
        )

    def get_manual_log_sheet(self) -> gspread.Worksheet:
        """Get or create the manual log worksheet."""
        return self._get_or_create_sheet(
            self._settings.manual_log_sheet_name, MANUAL_LOG_COLUMNS, rows=5000
        )


class GoogleSheetsPlanStateStorage(PlanStateStorageInterface):
    """
    Google Sheets implementation of plan state storage.

    The manual log is split off the payload on save: it goes to its own
    append-only sheet, and the state cell keeps everything else.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    @staticmethod
    def _find_row(all_rows: list[list], context_key: str) -> Optional[int]:
        """1-based sheet row index of the context, header excluded."""
        for idx, row in enumerate(all_rows[1:], start=2):  # Row 1 is header
            if row and row[0] == context_key:
                return idx
        return None

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def _read_state_rows(self) -> list[list]:
        try:
            return self._client.get_state_sheet().get_all_values()
        except ConnectionError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to read plan state: {e}")

    async def fetch_state(self, context: PlanContext) -> Optional[PlanStatePayload]:
        """Read the state row for this context, or None if it was never saved."""
        all_rows = self._read_state_rows()

        row_idx = self._find_row(all_rows, context.storage_key)
        if row_idx is None:
            return None

        row = all_rows[row_idx - 1]
        state_json = row[3] if len(row) > 3 else ""
        if not state_json:
            return None
        try:
            return PlanStatePayload.model_validate(json.loads(state_json))
        except (json.JSONDecodeError, ValidationError) as e:
            raise StorageError(
                f"Malformed plan state for {context.storage_key}: {e}"
            )

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def _write_state_row(self, context_key: str, state_row: list) -> None:
        """Replace (or append) the state row. Safe to repeat."""
        try:
            sheet = self._client.get_state_sheet()
            row_idx = self._find_row(sheet.get_all_values(), context_key)
            if row_idx is None:
                sheet.append_row(state_row, value_input_option="RAW")
            else:
                sheet.update(
                    range_name=f"A{row_idx}:D{row_idx}",
                    values=[state_row],
                    value_input_option="RAW",
                )
        except ConnectionError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to persist plan state: {e}")

    def _append_log_rows(self, rows: list[list]) -> None:
        """Append manual log rows. Runs once per save."""
        try:
            self._client.get_manual_log_sheet().append_rows(rows, value_input_option="RAW")
        except ConnectionError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to append manual log: {e}")

    async def persist_state(self, context: PlanContext, payload: PlanStatePayload) -> None:
        """Replace the state row, then append the manual log entries."""
        context_key = context.storage_key
        state_only = payload.model_copy(update={"manual_log": []})
        state_row = [
            context_key,
            datetime.now(timezone.utc).isoformat(),
            payload.causali_version or "",
            json.dumps(state_only.to_storage_dict(), ensure_ascii=False),
        ]

        self._write_state_row(context_key, state_row)

        if payload.manual_log:
            self._append_log_rows(
                [[context_key] + entry.to_sheets_row() for entry in payload.manual_log]
            )
