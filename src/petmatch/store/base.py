"""Storage protocols and shared alert lifecycle rules."""

from __future__ import annotations

from typing import Optional, Protocol, Sequence

from petmatch.errors import InvalidTransition
from petmatch.models import AlertStatus, MatchAlert, Report, ScoreResult


REPORT_FILTER_FIELDS = ("report_type", "status", "species", "reporter_id")

ALLOWED_TRANSITIONS: dict[AlertStatus, frozenset[AlertStatus]] = {
    AlertStatus.PENDING: frozenset({AlertStatus.DISMISSED, AlertStatus.CONFIRMED}),
    AlertStatus.DISMISSED: frozenset(),
    AlertStatus.CONFIRMED: frozenset(),
}


def check_transition(match_id: str, current: AlertStatus, requested: AlertStatus) -> None:
    """Raise InvalidTransition unless current -> requested is a legal move."""
    if requested not in ALLOWED_TRANSITIONS[current]:
        raise InvalidTransition(match_id, current.value, requested.value)


def sort_alerts(alerts: Sequence[MatchAlert]) -> list[MatchAlert]:
    """Best score first, newest first among equal scores."""
    return sorted(
        alerts,
        key=lambda alert: (
            -alert.match_score,
            -(alert.created_at.timestamp() if alert.created_at else 0.0),
            alert.id or "",
        ),
    )


class ReportStore(Protocol):
    """Document store view of reports used by the matching core."""

    def get_report(self, report_id: str) -> Optional[Report]:
        """Return a report by id, or None."""

    def query_reports(self, **filters: str) -> list[Report]:
        """Return reports whose fields equal every given filter value."""

    def set_image_vector(self, report_id: str, vector: Sequence[float]) -> bool:
        """Attach an embedding if none is set yet. Returns True when written."""

    def list_open_lost_reports(self, limit: Optional[int] = None) -> list[Report]:
        """Return open lost reports for periodic re-scans."""


class MatchAlertStore(Protocol):
    """Persistence for match alerts with idempotent creation."""

    def create_if_absent(
        self,
        user_id: str,
        lost_report_id: str,
        found_report_id: str,
        score_result: ScoreResult,
    ) -> MatchAlert:
        """Insert a pending alert unless the pair exists; return the stored alert."""

    def set_status(self, match_id: str, status: AlertStatus) -> MatchAlert:
        """Move an alert to a terminal status."""

    def dismiss(self, match_id: str) -> MatchAlert:
        """Mark an alert as not a match."""

    def get_alert(self, match_id: str) -> Optional[MatchAlert]:
        """Return an alert by id, or None."""

    def find_alert(self, lost_report_id: str, found_report_id: str) -> Optional[MatchAlert]:
        """Return the alert for a pair, or None."""

    def list_for_user(self, user_id: str) -> list[MatchAlert]:
        """Return a user's alerts sorted best first."""
