"""Typer CLI entry point."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from petmatch.config import Settings
from petmatch.db.client import db_cursor
from petmatch.errors import MatchingError
from petmatch.matching.orchestrator import MatchingOrchestrator
from petmatch.models import AlertStatus, MatchAlert, Report
from petmatch.providers.embedding import EmbeddingClient
from petmatch.providers.verification import VerificationClient
from petmatch.store.postgres import PostgresMatchAlertStore, PostgresReportStore
from petmatch.utils.logging import configure_logging, get_logger


app = typer.Typer(help="Lost/found pet matching CLI")
match_app = typer.Typer(help="Matching commands")
alerts_app = typer.Typer(help="Match alert commands")
db_app = typer.Typer(help="Database utilities")

app.add_typer(match_app, name="match")
app.add_typer(alerts_app, name="alerts")
app.add_typer(db_app, name="db")

logger = get_logger(__name__)

SCHEMA_PATH = Path(__file__).resolve().parents[1] / "sql" / "schema.sql"


@app.callback()
def main() -> None:
    """Initialize logging for all commands."""
    settings = Settings()
    configure_logging(settings.log_level)


def build_orchestrator(settings: Settings) -> MatchingOrchestrator:
    """Wire Postgres stores and whichever providers are configured."""
    embedding_client = None
    if settings.hf_api_key:
        embedding_client = EmbeddingClient(settings)
    else:
        logger.warning("cli.embedding.disabled reason=missing_hf_api_key")

    verification_client = None
    if settings.verification_enabled:
        verification_client = VerificationClient(settings)

    return MatchingOrchestrator(
        report_store=PostgresReportStore(settings),
        alert_store=PostgresMatchAlertStore(settings),
        settings=settings,
        embedding_client=embedding_client,
        verification_client=verification_client,
    )


def _echo_alert(alert: MatchAlert, found: Optional[Report] = None) -> None:
    details = alert.match_details
    line = (
        f"{alert.id or '-'}\tfound={alert.found_report_id}\tscore={alert.match_score}\t"
        f"level={alert.match_level.value}\tstatus={alert.status.value}\t"
        f"visual={details.visual.value}\tdistance_km={details.distance_km}\t"
        f"days={details.days_difference}"
    )
    if found is not None:
        line += (
            f"\tspecies={found.species}\tbreed={found.breed or '-'}\t"
            f"address={found.location.address or '-'}\tphoto={found.primary_photo or '-'}"
        )
    typer.echo(line)


@match_app.command("run")
def match_run(
    report_id: str = typer.Option(..., help="Lost report id"),
    dry_run: bool = typer.Option(False, help="Do not write alerts or embeddings"),
) -> None:
    """Run matching for one lost report."""
    settings = Settings()
    orchestrator = build_orchestrator(settings)
    try:
        alerts = orchestrator.run_matching_for_id(report_id, dry_run=dry_run)
    except MatchingError as exc:
        logger.error("match.run.failed report_id=%s error=%s", report_id, exc)
        typer.echo(f"Matching failed: {exc}", err=True)
        raise typer.Exit(1)

    for alert in alerts:
        _echo_alert(alert)


@match_app.command("rescan")
def match_rescan(
    limit: Optional[int] = typer.Option(None, help="Max lost reports to rescan"),
    dry_run: bool = typer.Option(False, help="Do not write alerts or embeddings"),
) -> None:
    """Re-run matching over all open lost reports (for cron)."""
    settings = Settings()
    orchestrator = build_orchestrator(settings)
    counts = orchestrator.rescan_open_lost_reports(limit=limit, dry_run=dry_run)
    typer.echo(f"Rescanned {len(counts)} reports, {sum(counts.values())} alerts")


@alerts_app.command("list")
def alerts_list(
    user_id: str = typer.Option(..., help="Owner of the lost reports"),
) -> None:
    """List a user's match alerts, best first."""
    settings = Settings()
    orchestrator = MatchingOrchestrator(
        report_store=PostgresReportStore(settings),
        alert_store=PostgresMatchAlertStore(settings),
        settings=settings,
    )
    for view in orchestrator.list_user_alerts(user_id):
        _echo_alert(view.alert, view.found_report)


@alerts_app.command("set-status")
def alerts_set_status(
    match_id: str = typer.Option(..., help="Match alert id"),
    status: AlertStatus = typer.Option(..., help="dismissed or confirmed"),
) -> None:
    """Move a pending alert to dismissed or confirmed."""
    settings = Settings()
    try:
        alert = PostgresMatchAlertStore(settings).set_status(match_id, status)
    except MatchingError as exc:
        logger.error("alerts.set_status.failed match_id=%s error=%s", match_id, exc)
        typer.echo(f"Status change failed: {exc}", err=True)
        raise typer.Exit(1)
    _echo_alert(alert)


@db_app.command("check")
def db_check() -> None:
    """Check database connectivity."""
    try:
        with db_cursor() as cursor:
            cursor.execute("select 1")
            logger.info("db.check.ok")
    except Exception as exc:
        logger.error("db.check.failed: %s", exc)
        typer.echo(f"Database check failed: {exc}", err=True)
        raise typer.Exit(1)


@db_app.command("init")
def db_init(
    schema_path: Path = typer.Option(SCHEMA_PATH, help="SQL schema file to apply"),
) -> None:
    """Create the reports and match_alerts tables."""
    if not schema_path.exists():
        typer.echo(f"Schema file not found: {schema_path}", err=True)
        raise typer.Exit(1)

    with db_cursor() as cursor:
        cursor.execute(schema_path.read_text(encoding="utf-8"))
    logger.info("db.init.ok schema=%s", schema_path)


if __name__ == "__main__":
    app()
