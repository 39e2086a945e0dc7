"""
=====================================================
AI Receptionist - Interaction Logger
=====================================================

Records one row per processed turn:
- Primary sink: Google Sheets (human-browsable, append-only)
- Backup sink: local JSON-lines file, used when the sheet is
  unreachable or not configured (and for every entry when mirroring)

record() never raises. A failed log write must not abort reply delivery.
"""

import asyncio
import json
import os
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from loguru import logger

FORWARDED_TO_MANAGER = "Forwarded to manager"
VOICEMAIL_REPLY = "(voicemail)"

SHEET_COLUMNS = ["Timestamp", "Name", "Phone", "Message", "Intent", "Language", "Channel", "AI Reply"]


def _now() -> str:
    return datetime.now().strftime("%Y-%m-%d %H:%M:%S")


@dataclass
class InteractionLogEntry:
    """One logged turn"""
    name: str
    phone: str
    message: str
    intent: str
    language: str
    channel: str
    reply: str
    timestamp: str = field(default_factory=_now)

    def to_row(self) -> List[str]:
        """Sheet row in column order A:H"""
        return [
            self.timestamp,
            self.name,
            self.phone,
            self.message,
            self.intent,
            self.language,
            self.channel,
            self.reply,
        ]


class LogSinkBase(ABC):
    """Destination for interaction log entries"""

    @abstractmethod
    async def append(self, entry: InteractionLogEntry) -> None:
        """Append one entry; raise on failure"""
        pass


class GoogleSheetsLogSink(LogSinkBase):
    """
    Appends rows to a Google Sheet with a service account.

    gspread is synchronous, so calls run in a worker thread.
    """

    def __init__(
        self,
        sheet_id: str,
        worksheet: str = "",
        service_account_file: str = "",
        service_account_json: str = "",
    ):
        self.sheet_id = sheet_id
        self.worksheet_name = worksheet
        self._service_account_file = service_account_file
        self._service_account_json = service_account_json
        self._spreadsheet = None
        self._worksheet = None

    def _open_spreadsheet(self):
        """Authorize and open the spreadsheet (cached)"""
        if self._spreadsheet is None:
            import gspread

            if self._service_account_json:
                client = gspread.service_account_from_dict(json.loads(self._service_account_json))
            else:
                client = gspread.service_account(filename=self._service_account_file)
            self._spreadsheet = client.open_by_key(self.sheet_id)
            logger.info(f"Sheets: Opened spreadsheet {self.sheet_id}")
        return self._spreadsheet

    def _open_worksheet(self):
        if self._worksheet is None:
            spreadsheet = self._open_spreadsheet()
            if self.worksheet_name:
                self._worksheet = spreadsheet.worksheet(self.worksheet_name)
            else:
                self._worksheet = spreadsheet.sheet1
            logger.info(f"Sheets: Logging to worksheet '{self._worksheet.title}'")
        return self._worksheet

    def _append_sync(self, row: List[str]) -> None:
        worksheet = self._open_worksheet()
        worksheet.append_row(row, value_input_option="USER_ENTERED")

    async def append(self, entry: InteractionLogEntry) -> None:
        await asyncio.to_thread(self._append_sync, entry.to_row())
        logger.info("Sheets: Logged interaction")

    def ensure_analytics_tab(self) -> bool:
        """
        Create an 'Analytics' tab with COUNTIF formulas over the log sheet

        Returns:
            True if the tab was created, False if it already existed
        """
        spreadsheet = self._open_spreadsheet()
        titles = [ws.title for ws in spreadsheet.worksheets()]
        if "Analytics" in titles:
            logger.info("Sheets: Analytics tab exists")
            return False

        primary = self._open_worksheet().title
        source = f"'{primary}'"
        summary = [
            ["Metric", "Value"],
            ["Total interactions", f"=COUNTA({source}!A2:A)"],
            ["Voice interactions", f'=COUNTIF({source}!G2:G,"voice")'],
            ["Chat interactions", f'=COUNTIF({source}!G2:G,"chat")'],
            ["Tours", f'=COUNTIF({source}!E2:E,"tour")'],
            ["Fees", f'=COUNTIF({source}!E2:E,"fees")'],
            ["Hours", f'=COUNTIF({source}!E2:E,"hours")'],
            ["Urgent/Manager", f'=COUNTIF({source}!E2:E,"urgent")+COUNTIF({source}!E2:E,"manager")'],
            ["Voicemail", f'=COUNTIF({source}!E2:E,"voicemail")'],
            ["General", f'=COUNTIF({source}!E2:E,"general")'],
            ["English", f'=COUNTIF({source}!F2:F,"English")'],
            ["French", f'=COUNTIF({source}!F2:F,"French")'],
        ]

        analytics = spreadsheet.add_worksheet(title="Analytics", rows=200, cols=8)
        analytics.update(
            values=summary,
            range_name=f"A1:B{len(summary)}",
            value_input_option="USER_ENTERED",
        )
        logger.info(f"Sheets: Analytics tab created and linked to {primary}")
        return True


class LocalBackupLogSink(LogSinkBase):
    """Append-only JSON-lines file"""

    def __init__(self, path: str):
        self.path = path

    async def append(self, entry: InteractionLogEntry) -> None:
        await asyncio.to_thread(self._write_line, json.dumps(asdict(entry), ensure_ascii=False))

    def _write_line(self, line: str) -> None:
        os.makedirs(os.path.dirname(os.path.abspath(self.path)), exist_ok=True)
        with open(self.path, "a", encoding="utf-8") as f:
            f.write(line + "\n")

    def read_all(self) -> List[InteractionLogEntry]:
        """Load every backed-up entry (oldest first)"""
        if not os.path.exists(self.path):
            return []
        entries = []
        with open(self.path, "r", encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if line:
                    entries.append(InteractionLogEntry(**json.loads(line)))
        return entries


class InteractionLogger:
    """
    Best-effort interaction log with a local backup.

    Args:
        primary: Durable sink (None when not configured)
        backup: Local sink used when the primary fails
        mirror_locally: Write every entry to the backup as well
        timeout: Seconds to wait for the primary sink
    """

    def __init__(
        self,
        primary: Optional[LogSinkBase] = None,
        backup: Optional[LogSinkBase] = None,
        mirror_locally: bool = False,
        timeout: float = 5.0,
    ):
        self.primary = primary
        self.backup = backup
        self.mirror_locally = mirror_locally
        self.timeout = timeout

    async def record(self, entry: InteractionLogEntry) -> None:
        primary_ok = False

        if self.primary is not None:
            try:
                await asyncio.wait_for(self.primary.append(entry), timeout=self.timeout)
                primary_ok = True
            except asyncio.TimeoutError:
                # The worker thread keeps running, so the row may still land in the sheet.
                # A duplicate in the backup beats a lost entry.
                logger.warning(
                    f"InteractionLogger: Primary sink timed out after {self.timeout}s, "
                    f"sheet status unknown, keeping entry locally: {entry.to_row()}"
                )
            except Exception as e:
                logger.error(f"InteractionLogger: Primary sink failed ({type(e).__name__}: {e}), keeping entry locally")

        if self.backup is not None and (self.mirror_locally or not primary_ok):
            try:
                await self.backup.append(entry)
            except Exception as e:
                logger.error(f"InteractionLogger: Backup sink failed, entry lost: {e} - {entry.to_row()}")
        elif not primary_ok:
            logger.warning(f"InteractionLogger: No sink available, entry not persisted: {entry.to_row()}")

    async def ensure_analytics_tab(self) -> bool:
        """Create the Analytics tab on the primary spreadsheet (if it supports one)"""
        if not isinstance(self.primary, GoogleSheetsLogSink):
            logger.warning("InteractionLogger: Analytics tab needs the Google Sheets sink")
            return False
        return await asyncio.to_thread(self.primary.ensure_analytics_tab)

    def local_entries(self) -> List[InteractionLogEntry]:
        """Entries kept in the local backup (empty when there is none)"""
        if isinstance(self.backup, LocalBackupLogSink):
            return self.backup.read_all()
        return []


def create_interaction_logger(config: dict) -> InteractionLogger:
    """
    Factory function to create the interaction logger from config

    Args:
        config: Configuration dictionary (from Settings)

    Returns:
        Configured InteractionLogger
    """
    primary = None
    sheet_id = config.get("sheet_id")
    has_credentials = config.get("google_service_account_file") or config.get("google_service_account_json")
    if sheet_id and has_credentials:
        primary = GoogleSheetsLogSink(
            sheet_id=sheet_id,
            worksheet=config.get("sheet_worksheet", ""),
            service_account_file=config.get("google_service_account_file", ""),
            service_account_json=config.get("google_service_account_json", ""),
        )
    else:
        logger.warning("InteractionLogger: Google Sheets not configured (SHEET_ID / service account), using local backup only")

    backup_path = config.get("log_backup_path") or str(Path("data") / "interactions.jsonl")

    return InteractionLogger(
        primary=primary,
        backup=LocalBackupLogSink(backup_path),
        mirror_locally=config.get("log_mirror_locally", False),
        timeout=config.get("log_sink_timeout_seconds", 5.0),
    )


# Global instance
_interaction_logger: Optional[InteractionLogger] = None


def get_interaction_logger() -> InteractionLogger:
    """Get global interaction logger instance"""
    global _interaction_logger
    if _interaction_logger is None:
        from config.settings import get_settings
        _interaction_logger = create_interaction_logger(get_settings().model_dump())
    return _interaction_logger
