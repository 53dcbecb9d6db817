"""JSONL-backed storage for agent reports."""

from __future__ import annotations

import json
import os
import secrets
import threading
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from .models import AgentReport


class ReportNotFoundError(LookupError):
    """Raised when no report has the requested ID."""


def _generate_report_id() -> str:
    return "rp-" + secrets.token_hex(2)


@dataclass
class ReportFilter:
    """Criteria for listing reports; ``handled`` of None matches both states."""

    agent_id: str | None = None
    agent_name: str | None = None
    bead_id: str | None = None
    type: str | None = None
    handled: bool | None = None

    def matches(self, report: AgentReport) -> bool:
        checks = (
            (self.agent_id, report.agent_id),
            (self.agent_name, report.agent_name),
            (self.bead_id, report.bead_id),
            (self.type, report.type),
        )
        if any(wanted and wanted != actual for wanted, actual in checks):
            return False
        return self.handled is None or report.handled == self.handled


class ReportStore:
    """Reports kept one per line in ``reports.jsonl`` inside a directory."""

    def __init__(self, directory: str | os.PathLike[str]) -> None:
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)
        self.open_file = self.directory / "reports.jsonl"
        self._lock = threading.RLock()

    def create(self, report: AgentReport) -> AgentReport:
        """Assign an ID and timestamp, mark unhandled and store the report."""
        with self._lock:
            report.id = _generate_report_id()
            report.timestamp = datetime.now().astimezone()
            report.handled = False
            with self.open_file.open("a", encoding="utf-8") as handle:
                handle.write(json.dumps(report.to_dict()) + "\n")
            return report

    def list(self, report_filter: ReportFilter | None = None) -> list[AgentReport]:
        report_filter = report_filter or ReportFilter()
        with self._lock:
            return [r for r in self._read_all() if report_filter.matches(r)]

    def get(self, report_id: str) -> AgentReport:
        with self._lock:
            for report in self._read_all():
                if report.id == report_id:
                    return report
        raise ReportNotFoundError(f"report not found: {report_id}")

    def mark_handled(self, report_id: str) -> AgentReport:
        with self._lock:
            reports = self._read_all()
            for report in reports:
                if report.id == report_id:
                    report.handled = True
                    self._write_all(reports)
                    return report
        raise ReportNotFoundError(f"report not found: {report_id}")

    def _read_all(self) -> list[AgentReport]:
        try:
            handle = self.open_file.open(encoding="utf-8")
        except FileNotFoundError:
            return []
        reports = []
        with handle:
            for line in handle:
                try:
                    reports.append(AgentReport.from_dict(json.loads(line)))
                except (ValueError, KeyError, TypeError, AttributeError):
                    continue
        return reports

    def _write_all(self, reports: list[AgentReport]) -> None:
        tmp = self.open_file.with_name(self.open_file.name + ".tmp")
        try:
            with tmp.open("w", encoding="utf-8") as handle:
                for report in reports:
                    handle.write(json.dumps(report.to_dict()) + "\n")
        except BaseException:
            tmp.unlink(missing_ok=True)
            raise
        os.replace(tmp, self.open_file)