"""
Google Sheets Task/Rollup Table

DESIGN DECISION: The reporting table lives in Google Sheets because
the people reading it (investors, the site foreman) already open
spreadsheets and need no database setup.

TRADEOFFS:
- Not suitable for high-volume data (a few hundred rows per project)
- No transactions (upserts find-then-write)
- No queries: the portal only appends tasks and upserts rollups

Nothing in the portal's CRUD path writes here. The table is fed on
demand from the settings page, and the implementation follows
TaskTableInterface so it can be swapped for a SQL table later.
"""

from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Optional

import gspread
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from portal.config import get_settings
from portal.services.storage.interface import (
    ConnectionError,
    DailyRollup,
    StorageError,
    TaskRow,
    TaskTableInterface,
)


TASK_COLUMNS = [
    "task_name",
    "type",
    "status",
    "owner",
    "due_date",
    "cost",
    "created_at",
]

ROLLUP_COLUMNS = [
    "project_id",
    "day",
    "paid",
    "unpaid",
    "updated_at",
]


def _to_decimal(value: str) -> Decimal:
    try:
        return Decimal(value) if value else Decimal("0")
    except InvalidOperation:
        return Decimal("0")


class GoogleSheetsClient:
    """
    Thin gspread wrapper shared by the task table.

    Owns the gspread client; worksheet lookups are retried.
    """

    def __init__(self):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Authorise with the service account and cache the client.

        Credentials come from GOOGLE_SHEETS_CREDENTIALS_PATH.
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
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(self._settings.spreadsheet_id)
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def _get_or_create(self, title: str, columns: list[str]) -> gspread.Worksheet:
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(title=title, rows=1000, cols=len(columns))
            sheet.append_row(columns)
        return sheet

    def get_tasks_sheet(self) -> gspread.Worksheet:
        """Get or create the Tasks worksheet."""
        return self._get_or_create(self._settings.tasks_sheet_name, TASK_COLUMNS)

    def get_rollups_sheet(self) -> gspread.Worksheet:
        """Get or create the rollups worksheet."""
        return self._get_or_create(self._settings.rollups_sheet_name, ROLLUP_COLUMNS)


class GoogleSheetsTaskTable(TaskTableInterface):
    """
    Google Sheets implementation of the task/rollup table.

    One task per row in the Tasks sheet; one (project, day) rollup per
    row in the rollups sheet.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    @staticmethod
    def _task_to_row(task: TaskRow) -> list:
        return [
            task.task_name,
            task.type,
            task.status,
            task.owner,
            task.due_date.isoformat() if task.due_date else "",
            str(task.cost),
            datetime.now(timezone.utc).isoformat(),
        ]

    @staticmethod
    def _row_to_task(row: list) -> TaskRow:
        def safe_get(index: int) -> str:
            try:
                return row[index] or ""
            except IndexError:
                return ""

        due = safe_get(4)
        return TaskRow(
            task_name=safe_get(0),
            type=safe_get(1),
            status=safe_get(2),
            owner=safe_get(3),
            due_date=date.fromisoformat(due) if due else None,
            cost=_to_decimal(safe_get(5)),
        )

    @staticmethod
    def _rollup_to_row(rollup: DailyRollup) -> list:
        return [
            rollup.project_id,
            rollup.day.isoformat(),
            str(rollup.paid),
            str(rollup.unpaid),
            datetime.now(timezone.utc).isoformat(),
        ]

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def insert_task(self, task: TaskRow) -> bool:
        try:
            sheet = self._client.get_tasks_sheet()
            sheet.append_row(self._task_to_row(task), value_input_option="RAW")
            return True
        except Exception as e:
            raise StorageError(f"Failed to insert task: {e}")

    async def list_tasks(self, limit: int = 100) -> list[TaskRow]:
        try:
            sheet = self._client.get_tasks_sheet()
            all_rows = sheet.get_all_values()[1:]  # Skip header
        except Exception as e:
            raise StorageError(f"Failed to list tasks: {e}")

        tasks = []
        # Rows are appended, so newest are last
        for row in reversed(all_rows):
            if not row or not row[0]:
                continue
            try:
                tasks.append(self._row_to_task(row))
            except ValueError:
                continue  # Skip malformed rows
            if len(tasks) >= limit:
                break
        return tasks

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def upsert_daily_rollup(self, rollup: DailyRollup) -> bool:
        try:
            sheet = self._client.get_rollups_sheet()
            all_rows = sheet.get_all_values()
            new_row = self._rollup_to_row(rollup)

            for idx, row in enumerate(all_rows[1:], start=2):  # Row 1 is header
                if len(row) >= 2 and row[0] == rollup.project_id and row[1] == rollup.day.isoformat():
                    sheet.update(f"A{idx}:E{idx}", [new_row])
                    return True

            sheet.append_row(new_row, value_input_option="RAW")
            return True
        except Exception as e:
            raise StorageError(f"Failed to upsert rollup: {e}")

    async def list_rollups(self, project_id: Optional[str] = None) -> list[DailyRollup]:
        try:
            sheet = self._client.get_rollups_sheet()
            all_rows = sheet.get_all_values()[1:]
        except Exception as e:
            raise StorageError(f"Failed to list rollups: {e}")

        rollups = []
        for row in all_rows:
            if len(row) < 4 or not row[0]:
                continue
            if project_id and row[0] != project_id:
                continue
            try:
                rollups.append(DailyRollup(
                    project_id=row[0],
                    day=date.fromisoformat(row[1]),
                    paid=_to_decimal(row[2]),
                    unpaid=_to_decimal(row[3]),
                ))
            except ValueError:
                continue
        rollups.sort(key=lambda r: r.day, reverse=True)
        return rollups
