"""In-memory stores for tests, dry runs and local experiments."""

from __future__ import annotations

import threading
import uuid
from datetime import datetime
from typing import Callable, Optional, Sequence

from petmatch.errors import AlertNotFound
from petmatch.models import AlertStatus, MatchAlert, Report, ReportStatus, ReportType, ScoreResult
from petmatch.store.base import REPORT_FILTER_FIELDS, check_transition, sort_alerts
from petmatch.utils.time import utc_now


def _field_value(report: Report, field: str) -> str:
    value = getattr(report, field)
    return value.value if hasattr(value, "value") else value


class InMemoryReportStore:
    """Dict-backed report store."""

    def __init__(self) -> None:
        self._reports: dict[str, Report] = {}
        self._lock = threading.Lock()

    def add_report(self, report: Report) -> Report:
        """Store a report, assigning id and created_at when missing."""
        update: dict[str, object] = {}
        if report.id is None:
            update["id"] = uuid.uuid4().hex
        if report.created_at is None:
            update["created_at"] = utc_now()
        stored = report.model_copy(update=update) if update else report
        with self._lock:
            self._reports[stored.id] = stored
        return stored

    def get_report(self, report_id: str) -> Optional[Report]:
        with self._lock:
            return self._reports.get(report_id)

    def query_reports(self, **filters: str) -> list[Report]:
        unknown = set(filters) - set(REPORT_FILTER_FIELDS)
        if unknown:
            raise ValueError(f"Unsupported report filters: {sorted(unknown)}")

        with self._lock:
            reports = list(self._reports.values())
        return [
            report
            for report in reports
            if all(_field_value(report, field) == value for field, value in filters.items())
        ]

    def set_image_vector(self, report_id: str, vector: Sequence[float]) -> bool:
        with self._lock:
            report = self._reports.get(report_id)
            if report is None or report.image_vector:
                return False
            self._reports[report_id] = report.model_copy(update={"image_vector": list(vector)})
            return True

    def list_open_lost_reports(self, limit: Optional[int] = None) -> list[Report]:
        reports = self.query_reports(
            report_type=ReportType.LOST.value,
            status=ReportStatus.OPEN.value,
        )
        reports.sort(key=lambda report: (report.created_at or utc_now(), report.id or ""))
        return reports[:limit] if limit is not None else reports


class InMemoryMatchAlertStore:
    """Dict-backed alert store; a lock makes create_if_absent atomic."""

    def __init__(self, clock: Callable[[], datetime] = utc_now) -> None:
        self._alerts: dict[str, MatchAlert] = {}
        self._by_pair: dict[tuple[str, str], str] = {}
        self._lock = threading.Lock()
        self._clock = clock

    def create_if_absent(
        self,
        user_id: str,
        lost_report_id: str,
        found_report_id: str,
        score_result: ScoreResult,
    ) -> MatchAlert:
        pair = (lost_report_id, found_report_id)
        with self._lock:
            existing_id = self._by_pair.get(pair)
            if existing_id is not None:
                return self._alerts[existing_id]

            now = self._clock()
            alert = MatchAlert(
                id=uuid.uuid4().hex,
                user_id=user_id,
                lost_report_id=lost_report_id,
                found_report_id=found_report_id,
                match_score=score_result.score,
                match_level=score_result.match_level,
                match_details=score_result.match_details.model_copy(deep=True),
                status=AlertStatus.PENDING,
                created_at=now,
                updated_at=now,
            )
            self._alerts[alert.id] = alert
            self._by_pair[pair] = alert.id
            return alert

    def set_status(self, match_id: str, status: AlertStatus) -> MatchAlert:
        requested = AlertStatus(status)
        with self._lock:
            alert = self._alerts.get(match_id)
            if alert is None:
                raise AlertNotFound(f"Match alert not found: {match_id}")
            check_transition(match_id, alert.status, requested)
            updated = alert.model_copy(update={"status": requested, "updated_at": self._clock()})
            self._alerts[match_id] = updated
            return updated

    def dismiss(self, match_id: str) -> MatchAlert:
        return self.set_status(match_id, AlertStatus.DISMISSED)

    def get_alert(self, match_id: str) -> Optional[MatchAlert]:
        with self._lock:
            return self._alerts.get(match_id)

    def find_alert(self, lost_report_id: str, found_report_id: str) -> Optional[MatchAlert]:
        with self._lock:
            alert_id = self._by_pair.get((lost_report_id, found_report_id))
            return self._alerts.get(alert_id) if alert_id else None

    def list_for_user(self, user_id: str) -> list[MatchAlert]:
        with self._lock:
            alerts = [alert for alert in self._alerts.values() if alert.user_id == user_id]
        return sort_alerts(alerts)
