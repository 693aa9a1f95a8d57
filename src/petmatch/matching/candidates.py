"""Candidate discovery for a lost report."""

from __future__ import annotations

from petmatch.models import Report, ReportStatus, ReportType
from petmatch.store.base import ReportStore
from petmatch.utils.logging import get_logger


logger = get_logger(__name__)


class CandidateSelector:
    """Select open found reports of the same species filed by someone else."""

    def __init__(self, report_store: ReportStore) -> None:
        self.report_store = report_store

    def find_candidates(self, lost_report: Report) -> list[Report]:
        """Return plausible found reports for the lost report. Order is unspecified."""
        reports = self.report_store.query_reports(
            report_type=ReportType.FOUND.value,
            status=ReportStatus.OPEN.value,
            species=lost_report.species,
        )
        candidates = [
            report
            for report in reports
            if report.reporter_id != lost_report.reporter_id and report.id != lost_report.id
        ]
        logger.info(
            "candidates.selected lost_report_id=%s species=%s fetched=%s kept=%s",
            lost_report.id,
            lost_report.species,
            len(reports),
            len(candidates),
        )
        return candidates
