# backend/opportunity_research/services/sheet_log.py
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import gspread
from google.oauth2.service_account import Credentials

from ..core.config import Settings, get_settings
from ..schemas.opportunities import ResearchPayload, Subject

logger = logging.getLogger(__name__)

SHEETS_SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]
SHEET_COLUMNS = ["Timestamp", "Name", "Title", "Company", "Research", "Opportunities"]


@dataclass(frozen=True)
class LogEntry:
    timestamp: str
    name: str
    title: str
    company: str
    research_text: str
    opportunities_text: str

    def as_row(self) -> List[str]:
        return [
            self.timestamp,
            self.name,
            self.title,
            self.company,
            self.research_text,
            self.opportunities_text,
        ]


def render_research_text(payload: ResearchPayload) -> str:
    research = payload.research
    return (
        f"PERSON: {research.person}\n\n"
        f"ROLE: {research.role}\n\n"
        f"COMPANY: {research.company}"
    )


def render_opportunities_text(payload: ResearchPayload) -> str:
    return "\n\n".join(
        f"{idx}. {opp.title}: {opp.description}"
        for idx, opp in enumerate(payload.opportunities, start=1)
    )


def build_log_entry(
    subject: Subject,
    payload: ResearchPayload,
    now: Optional[datetime] = None,
) -> LogEntry:
    stamp = (now or datetime.now(timezone.utc)).isoformat()
    return LogEntry(
        timestamp=stamp,
        name=subject.name,
        title=subject.title,
        company=subject.company,
        research_text=render_research_text(payload),
        opportunities_text=render_opportunities_text(payload),
    )


class SheetLogSink:
    """
    Appends one row per successful lookup to the first worksheet of a
    Google Sheet. Disabled (writes are skipped) unless both the sheet id and
    the service-account key are configured.
    """

    def __init__(
        self,
        sheet_id: Optional[str],
        service_account_info: Optional[Dict[str, Any]],
    ) -> None:
        self._sheet_id = sheet_id
        self._service_account_info = service_account_info
        self._client: Optional[gspread.Client] = None
        self._columns: Optional[List[str]] = None

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "SheetLogSink":
        settings = settings or get_settings()
        info: Optional[Dict[str, Any]] = None
        if settings.SERVICE_ACCOUNT_KEY:
            try:
                info = json.loads(settings.SERVICE_ACCOUNT_KEY)
            except json.JSONDecodeError:
                logger.error("SERVICE_ACCOUNT_KEY is not valid JSON; sheet logging disabled.")
        return cls(settings.GOOGLE_SHEET_ID, info)

    @property
    def enabled(self) -> bool:
        return bool(self._sheet_id and self._service_account_info)

    def _get_client(self) -> gspread.Client:
        if self._client is None:
            creds = Credentials.from_service_account_info(
                self._service_account_info,
                scopes=SHEETS_SCOPES,
            )
            self._client = gspread.authorize(creds)
        return self._client

    def append(self, entry: LogEntry) -> None:
        """
        Write one row. Raises on any Sheets/auth failure.

        Cells go under the header row's column names, so a sheet whose columns
        were reordered still lines up. A sheet without a full header gets the
        SHEET_COLUMNS order.
        """
        sheet = self._get_client().open_by_key(self._sheet_id).sheet1
        values = dict(zip(SHEET_COLUMNS, entry.as_row()))
        sheet.append_row([values.get(column, "") for column in self._columns_for(sheet)])

    def _columns_for(self, sheet: gspread.Worksheet) -> List[str]:
        # Header is read once per sink
        if self._columns is None:
            header = [str(cell).strip() for cell in sheet.row_values(1)]
            if set(SHEET_COLUMNS).issubset(header):
                self._columns = header
            else:
                if any(header):
                    logger.warning(
                        "Sheet header %s does not name every column %s; writing in default order.",
                        header,
                        SHEET_COLUMNS,
                    )
                self._columns = list(SHEET_COLUMNS)
        return self._columns

    def log_result(self, entry: LogEntry, request_id: Optional[str] = None) -> None:
        """
        Best-effort, fire-and-forget write.
        Failure must NEVER change the response already sent to the caller.
        """
        extra = {"request_id": request_id, "step": "sheet_log"}
        if not self.enabled:
            logger.info("Sheet logging disabled (no sheet id or service account); skipping.", extra=extra)
            return
        try:
            self.append(entry)
        except Exception:
            logger.exception("Failed to log result to Google Sheets", extra=extra)
            return
        logger.info("Logged result to Google Sheets", extra=extra)
