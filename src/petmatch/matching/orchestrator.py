"""Matching run: candidates -> embeddings -> scores -> alerts."""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Optional, Protocol

from petmatch.config import Settings
from petmatch.errors import EmbeddingError, InvalidInput
from petmatch.matching.candidates import CandidateSelector
from petmatch.matching.scoring import MatchScoringEngine, rank_key
from petmatch.models import AlertStatus, AlertView, MatchAlert, Report, ReportType, ScoreResult
from petmatch.providers.verification import VerificationVerdict
from petmatch.store.base import MatchAlertStore, ReportStore
from petmatch.utils.logging import get_logger
from petmatch.utils.time import utc_now


logger = get_logger(__name__)


class Embedder(Protocol):
    def get_embedding(self, image_url: str) -> list[float]:
        """Return a vector for the image or raise EmbeddingError."""


class Verifier(Protocol):
    def verify(self, image_a_url: str, image_b_url: str) -> VerificationVerdict:
        """Return a verdict; unavailable verdicts instead of errors."""


class MatchingOrchestrator:
    """Entry point of the matching core."""

    def __init__(
        self,
        report_store: ReportStore,
        alert_store: MatchAlertStore,
        settings: Optional[Settings] = None,
        embedding_client: Optional[Embedder] = None,
        verification_client: Optional[Verifier] = None,
    ) -> None:
        self.settings = settings or Settings()
        self.report_store = report_store
        self.alert_store = alert_store
        self.selector = CandidateSelector(report_store)
        self.engine = MatchScoringEngine(self.settings)
        self.embedding_client = embedding_client
        self.verification_client = verification_client

    def run_matching_for_id(self, report_id: str, dry_run: bool = False) -> list[MatchAlert]:
        """Load a lost report by id and run matching for it."""
        report = self.report_store.get_report(report_id)
        if report is None:
            raise InvalidInput(f"Report not found: {report_id}")
        return self.run_matching(report, dry_run=dry_run)

    def run_matching(self, lost_report: Report, dry_run: bool = False) -> list[MatchAlert]:
        """Score every candidate for a lost report and record alerts for the survivors.

        Safe to repeat: alerts are created with insert-if-absent, so a second run
        returns the existing alerts instead of duplicating them.
        """
        if lost_report.report_type != ReportType.LOST:
            raise InvalidInput(
                f"Matching requires a lost report, got {lost_report.report_type.value!r}"
            )
        if not lost_report.id:
            raise InvalidInput("Lost report has no id")

        logger.info(
            "matching.run.start lost_report_id=%s species=%s dry_run=%s",
            lost_report.id,
            lost_report.species,
            dry_run,
        )

        candidates = self.selector.find_candidates(lost_report)
        if not candidates:
            logger.info("matching.run.no_candidates lost_report_id=%s", lost_report.id)
            return []

        vectors = self._resolve_vectors([lost_report, *candidates], dry_run=dry_run)
        lost_view = self._with_vector(lost_report, vectors)

        scored: list[tuple[Report, ScoreResult]] = []
        discarded = 0
        for candidate in candidates:
            result = self.engine.score(lost_view, self._with_vector(candidate, vectors))
            if result.score < self.settings.match_min_score:
                discarded += 1
                continue
            scored.append((candidate, result))

        scored.sort(key=lambda item: rank_key(item[1].score, item[0]))

        alerts: list[MatchAlert] = []
        for candidate, result in scored:
            result = self._maybe_verify(lost_report, candidate, result)
            if dry_run:
                alerts.append(self._unsaved_alert(lost_report, candidate, result))
                continue
            alerts.append(
                self.alert_store.create_if_absent(
                    user_id=lost_report.reporter_id,
                    lost_report_id=lost_report.id,
                    found_report_id=candidate.id,
                    score_result=result,
                )
            )

        found_by_id = {candidate.id: candidate for candidate in candidates}
        alerts.sort(key=lambda alert: rank_key(alert.match_score, found_by_id[alert.found_report_id]))

        logger.info(
            "matching.run.complete lost_report_id=%s candidates=%s alerts=%s discarded=%s dry_run=%s",
            lost_report.id,
            len(candidates),
            len(alerts),
            discarded,
            dry_run,
        )
        return alerts

    def rescan_open_lost_reports(
        self,
        limit: Optional[int] = None,
        dry_run: bool = False,
    ) -> dict[str, int]:
        """Re-run matching over open lost reports. Returns alert counts per report."""
        reports = self.report_store.list_open_lost_reports(limit=limit)
        logger.info("matching.rescan.start reports=%s dry_run=%s", len(reports), dry_run)

        counts: dict[str, int] = {}
        for report in reports:
            counts[report.id] = len(self.run_matching(report, dry_run=dry_run))

        logger.info(
            "matching.rescan.complete reports=%s alerts=%s", len(counts), sum(counts.values())
        )
        return counts

    def list_user_alerts(self, user_id: str) -> list[AlertView]:
        """Return a user's alerts, best first, with the lost and found reports attached."""
        reports: dict[str, Optional[Report]] = {}
        views: list[AlertView] = []
        for alert in self.alert_store.list_for_user(user_id):
            for report_id in (alert.lost_report_id, alert.found_report_id):
                if report_id not in reports:
                    reports[report_id] = self.report_store.get_report(report_id)
            views.append(
                AlertView(
                    alert=alert,
                    lost_report=reports[alert.lost_report_id],
                    found_report=reports[alert.found_report_id],
                )
            )
        return views

    def _resolve_vectors(self, reports: list[Report], dry_run: bool) -> dict[str, list[float]]:
        """Fetch missing embeddings concurrently within the run deadline."""
        vectors = {
            report.id: report.image_vector for report in reports if report.image_vector
        }
        pending = [
            report for report in reports if not report.image_vector and report.primary_photo
        ]
        if not pending or self.embedding_client is None:
            return vectors

        executor = ThreadPoolExecutor(
            max_workers=max(1, self.settings.embedding_max_workers),
            thread_name_prefix="embedding",
        )
        try:
            futures: dict[Future[list[float]], Report] = {
                executor.submit(self.embedding_client.get_embedding, report.primary_photo): report
                for report in pending
            }
            done, not_done = wait(futures, timeout=self.settings.match_run_timeout_seconds)

            for future in not_done:
                future.cancel()
                logger.warning(
                    "matching.embedding.timeout report_id=%s timeout_seconds=%s",
                    futures[future].id,
                    self.settings.match_run_timeout_seconds,
                )

            for future in done:
                report = futures[future]
                try:
                    vector = future.result()
                except EmbeddingError as exc:
                    logger.warning(
                        "matching.embedding.failed",
                        extra={
                            "report_id": report.id,
                            "error_type": type(exc).__name__,
                            "error": str(exc),
                        },
                    )
                    continue

                vectors[report.id] = vector
                if not dry_run:
                    self.report_store.set_image_vector(report.id, vector)
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

        return vectors

    @staticmethod
    def _with_vector(report: Report, vectors: dict[str, list[float]]) -> Report:
        vector = vectors.get(report.id)
        if vector is None or report.image_vector:
            return report
        return report.model_copy(update={"image_vector": vector})

    def _maybe_verify(self, lost: Report, found: Report, result: ScoreResult) -> ScoreResult:
        if self.verification_client is None or not self.settings.verification_enabled:
            return result
        if not (
            self.settings.verification_min_score
            <= result.score
            < self.settings.verification_max_score
        ):
            return result
        if not lost.primary_photo or not found.primary_photo:
            return result
        if self.alert_store.find_alert(lost.id, found.id) is not None:
            return result

        verdict = self.verification_client.verify(lost.primary_photo, found.primary_photo)
        logger.info(
            "matching.verification lost_report_id=%s found_report_id=%s available=%s probability=%s",
            lost.id,
            found.id,
            verdict.available,
            verdict.probability,
        )
        if not verdict.available:
            return result

        details = result.match_details.model_copy(
            update={
                "verification_probability": verdict.probability,
                "verification_reason": verdict.rationale,
            }
        )
        return result.model_copy(update={"match_details": details})

    @staticmethod
    def _unsaved_alert(lost: Report, found: Report, result: ScoreResult) -> MatchAlert:
        now = utc_now()
        return MatchAlert(
            user_id=lost.reporter_id,
            lost_report_id=lost.id,
            found_report_id=found.id,
            match_score=result.score,
            match_level=result.match_level,
            match_details=result.match_details,
            status=AlertStatus.PENDING,
            created_at=now,
            updated_at=now,
        )
