"""Postgres-backed report and match alert stores."""

from __future__ import annotations

import uuid
from typing import Any, Optional, Sequence

from psycopg.rows import dict_row
from psycopg.types.json import Jsonb

from petmatch.config import Settings
from petmatch.db.client import db_cursor
from petmatch.errors import AlertNotFound
from petmatch.models import (
    AlertStatus,
    Location,
    MatchAlert,
    MatchDetails,
    Report,
    ReportStatus,
    ReportType,
    ScoreResult,
)
from petmatch.store.base import REPORT_FILTER_FIELDS, check_transition, sort_alerts
from petmatch.utils.logging import get_logger


logger = get_logger(__name__)

REPORT_COLUMNS = (
    "id",
    "report_type",
    "status",
    "reporter_id",
    "species",
    "breed",
    "color",
    "sex",
    "address",
    "latitude",
    "longitude",
    "occurred_at",
    "created_at",
    "image_vector",
    "photos",
)

ALERT_COLUMNS = (
    "id",
    "user_id",
    "lost_report_id",
    "found_report_id",
    "match_score",
    "match_level",
    "match_details",
    "status",
    "created_at",
    "updated_at",
)


def _row_to_report(row: dict[str, Any]) -> Report:
    return Report(
        id=row["id"],
        report_type=row["report_type"],
        status=row["status"],
        reporter_id=row["reporter_id"],
        species=row["species"],
        breed=row["breed"],
        color=row["color"],
        sex=row["sex"],
        location=Location(
            address=row["address"],
            latitude=row["latitude"],
            longitude=row["longitude"],
        ),
        occurred_at=row["occurred_at"],
        created_at=row["created_at"],
        image_vector=row["image_vector"],
        photos=row["photos"] or [],
    )


def _row_to_alert(row: dict[str, Any]) -> MatchAlert:
    return MatchAlert(
        id=row["id"],
        user_id=row["user_id"],
        lost_report_id=row["lost_report_id"],
        found_report_id=row["found_report_id"],
        match_score=row["match_score"],
        match_level=row["match_level"],
        match_details=MatchDetails.model_validate(row["match_details"] or {}),
        status=row["status"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


class PostgresReportStore:
    """Read reports and attach embeddings in the reports table."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self.settings = settings or Settings()

    def get_report(self, report_id: str) -> Optional[Report]:
        query = f"select {', '.join(REPORT_COLUMNS)} from reports where id = %s"
        with db_cursor(self.settings, row_factory=dict_row) as cursor:
            cursor.execute(query, (report_id,))
            row = cursor.fetchone()
        return _row_to_report(row) if row else None

    def query_reports(self, **filters: str) -> list[Report]:
        unknown = set(filters) - set(REPORT_FILTER_FIELDS)
        if unknown:
            raise ValueError(f"Unsupported report filters: {sorted(unknown)}")

        conditions = [f"{field} = %s" for field in filters]
        params = list(filters.values())
        query = f"select {', '.join(REPORT_COLUMNS)} from reports"
        if conditions:
            query += f" where {' and '.join(conditions)}"

        with db_cursor(self.settings, row_factory=dict_row) as cursor:
            cursor.execute(query, params)
            rows = cursor.fetchall()
        return [_row_to_report(row) for row in rows]

    def set_image_vector(self, report_id: str, vector: Sequence[float]) -> bool:
        with db_cursor(self.settings) as cursor:
            cursor.execute(
                "update reports set image_vector = %s where id = %s "
                "and (image_vector is null or cardinality(image_vector) = 0)",
                (list(vector), report_id),
            )
            written = bool(cursor.rowcount)
        logger.debug("reports.image_vector report_id=%s written=%s", report_id, written)
        return written

    def list_open_lost_reports(self, limit: Optional[int] = None) -> list[Report]:
        query = (
            f"select {', '.join(REPORT_COLUMNS)} from reports "
            "where report_type = %s and status = %s order by created_at, id"
        )
        params: list[object] = [ReportType.LOST.value, ReportStatus.OPEN.value]
        if limit is not None:
            query += " limit %s"
            params.append(limit)

        with db_cursor(self.settings, row_factory=dict_row) as cursor:
            cursor.execute(query, params)
            rows = cursor.fetchall()
        return [_row_to_report(row) for row in rows]


class PostgresMatchAlertStore:
    """Match alerts guarded by the (lost_report_id, found_report_id) unique constraint."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self.settings = settings or Settings()

    def create_if_absent(
        self,
        user_id: str,
        lost_report_id: str,
        found_report_id: str,
        score_result: ScoreResult,
    ) -> MatchAlert:
        insert_sql = (
            "insert into match_alerts (id, user_id, lost_report_id, found_report_id, "
            "match_score, match_level, match_details, status) "
            "values (%s, %s, %s, %s, %s, %s, %s, %s) "
            "on conflict (lost_report_id, found_report_id) do nothing "
            f"returning {', '.join(ALERT_COLUMNS)}"
        )
        select_sql = (
            f"select {', '.join(ALERT_COLUMNS)} from match_alerts "
            "where lost_report_id = %s and found_report_id = %s"
        )

        with db_cursor(self.settings, row_factory=dict_row) as cursor:
            cursor.execute(
                insert_sql,
                (
                    uuid.uuid4().hex,
                    user_id,
                    lost_report_id,
                    found_report_id,
                    score_result.score,
                    score_result.match_level.value,
                    Jsonb(score_result.match_details.model_dump(mode="json")),
                    AlertStatus.PENDING.value,
                ),
            )
            row = cursor.fetchone()
            if row is None:
                cursor.execute(select_sql, (lost_report_id, found_report_id))
                row = cursor.fetchone()

        if row is None:
            raise RuntimeError(
                f"Alert for pair ({lost_report_id}, {found_report_id}) neither inserted nor found"
            )
        return _row_to_alert(row)

    def set_status(self, match_id: str, status: AlertStatus) -> MatchAlert:
        requested = AlertStatus(status)
        with db_cursor(self.settings, row_factory=dict_row) as cursor:
            cursor.execute("select status from match_alerts where id = %s for update", (match_id,))
            row = cursor.fetchone()
            if row is None:
                raise AlertNotFound(f"Match alert not found: {match_id}")

            check_transition(match_id, AlertStatus(row["status"]), requested)
            cursor.execute(
                "update match_alerts set status = %s, updated_at = now() where id = %s "
                f"returning {', '.join(ALERT_COLUMNS)}",
                (requested.value, match_id),
            )
            updated = cursor.fetchone()
        return _row_to_alert(updated)

    def dismiss(self, match_id: str) -> MatchAlert:
        return self.set_status(match_id, AlertStatus.DISMISSED)

    def get_alert(self, match_id: str) -> Optional[MatchAlert]:
        query = f"select {', '.join(ALERT_COLUMNS)} from match_alerts where id = %s"
        with db_cursor(self.settings, row_factory=dict_row) as cursor:
            cursor.execute(query, (match_id,))
            row = cursor.fetchone()
        return _row_to_alert(row) if row else None

    def find_alert(self, lost_report_id: str, found_report_id: str) -> Optional[MatchAlert]:
        query = (
            f"select {', '.join(ALERT_COLUMNS)} from match_alerts "
            "where lost_report_id = %s and found_report_id = %s"
        )
        with db_cursor(self.settings, row_factory=dict_row) as cursor:
            cursor.execute(query, (lost_report_id, found_report_id))
            row = cursor.fetchone()
        return _row_to_alert(row) if row else None

    def list_for_user(self, user_id: str) -> list[MatchAlert]:
        query = f"select {', '.join(ALERT_COLUMNS)} from match_alerts where user_id = %s"
        with db_cursor(self.settings, row_factory=dict_row) as cursor:
            cursor.execute(query, (user_id,))
            rows = cursor.fetchall()
        return sort_alerts([_row_to_alert(row) for row in rows])
