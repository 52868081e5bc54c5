"""
Opsdesk CLI - Command line interface for running agent jobs.

Usage:
    opsdesk --help                 Show all commands
    opsdesk run-jobs               Run every due agent job once
    opsdesk run-job <job-id>       Run a single job now
    opsdesk list-jobs              List job definitions and next run times
    opsdesk next-run daily         Preview when a schedule fires next
    opsdesk action-kinds           List registered action kinds
"""

import asyncio
from datetime import datetime

import typer

app = typer.Typer(
    name="opsdesk",
    help="Opsdesk CLI - Agent job runner",
    no_args_is_help=True,
)


# --- Printer helpers ---


def _print_success(message: str) -> None:
    """Print a success message."""
    typer.echo(f"  ✅ {message}")


def _print_failure(message: str) -> None:
    """Print a failed item."""
    typer.echo(f"  ❌ {message}")


def _print_error(message: str) -> None:
    """Print an error message to stderr."""
    typer.echo(f"❌ {message}", err=True)


def _parse_now(value: str | None) -> datetime | None:
    if value is None:
        return None
    from app.core.datetime_utils import to_naive_utc

    try:
        return to_naive_utc(datetime.fromisoformat(value))
    except ValueError:
        _print_error(f"Invalid datetime: {value} (expected ISO 8601)")
        raise typer.Exit(code=2) from None


def _print_summaries(summaries) -> None:
    for s in summaries:
        line = f"{s.job_type} [{s.job_id}]"
        if s.success:
            _print_success(f"{line}: {s.summary} ({s.actions_taken} actions)")
        else:
            _print_failure(f"{line}: {s.error}")


@app.command("run-jobs")
def run_jobs(
    now: str | None = typer.Option(
        None, "--now", help="Run as if at this UTC time (ISO 8601). Defaults to now."
    ),
):
    """Run every active job whose next run time has passed."""
    from app.core.database import AsyncSessionLocal
    from app.core.errors import SchedulerError
    from app.core.logging import setup_logging
    from app.jobs.runner import run_due_jobs

    setup_logging()
    effective_now = _parse_now(now)

    async def _run():
        async with AsyncSessionLocal() as db:
            return await run_due_jobs(db, now=effective_now)

    try:
        summaries = asyncio.run(_run())
    except SchedulerError as e:
        _print_error(str(e))
        raise typer.Exit(code=1) from None

    if not summaries:
        typer.echo("No jobs due to run")
        return

    typer.echo(f"Ran {len(summaries)} job(s):")
    _print_summaries(summaries)
    if any(not s.success for s in summaries):
        raise typer.Exit(code=1)


@app.command("run-job")
def run_job(
    job_id: str = typer.Argument(..., help="AgentJob ID"),
    now: str | None = typer.Option(None, "--now", help="Effective UTC time (ISO 8601)"),
):
    """Run a single job immediately, whether or not it is due."""
    from app.core.database import AsyncSessionLocal
    from app.core.errors import JobNotFoundError
    from app.core.logging import setup_logging
    from app.jobs.runner import run_job_now

    setup_logging()
    effective_now = _parse_now(now)

    async def _run():
        async with AsyncSessionLocal() as db:
            return await run_job_now(db, job_id, now=effective_now)

    try:
        summary = asyncio.run(_run())
    except JobNotFoundError as e:
        _print_error(str(e))
        raise typer.Exit(code=1) from None

    _print_summaries([summary])
    if not summary.success:
        raise typer.Exit(code=1)


@app.command("list-jobs")
def list_jobs(
    tenant: str | None = typer.Option(None, "--tenant", "-t", help="Filter by workspace ID"),
):
    """List job definitions with their schedule and next run time."""
    from sqlalchemy import select

    from app.core.database import AsyncSessionLocal
    from app.models.agent_job import AgentJob

    async def _load():
        async with AsyncSessionLocal() as db:
            query = select(AgentJob).order_by(AgentJob.next_run_at.asc().nulls_first())
            if tenant:
                query = query.where(AgentJob.workspace_id == tenant)
            result = await db.execute(query)
            return list(result.scalars().all())

    jobs = asyncio.run(_load())
    if not jobs:
        typer.echo("No jobs defined")
        return

    for job in jobs:
        state = "active" if job.is_active else "paused"
        next_run = job.next_run_at.isoformat() if job.next_run_at else "due now"
        last = job.last_run_status or "never run"
        typer.echo(
            f"{job.id}  {job.job_type:<20} {job.schedule:<8} {state:<7} "
            f"next={next_run}  last={last}"
        )


@app.command("next-run")
def next_run(
    schedule: str = typer.Argument(..., help="hourly, daily, weekly or a cron string"),
    from_time: str | None = typer.Option(
        None, "--from", help="Compute from this UTC time (ISO 8601). Defaults to now."
    ),
):
    """Show when a schedule would fire next."""
    from app.core.datetime_utils import utc_now
    from app.jobs.schedule import SCHEDULE_KEYWORDS, compute_next_run

    base = _parse_now(from_time) or utc_now()
    typer.echo(compute_next_run(schedule, base).isoformat())
    if schedule.strip().lower() not in SCHEDULE_KEYWORDS:
        typer.echo("(unrecognized schedule, using +1 day)", err=True)


@app.command("action-kinds")
def action_kinds():
    """List registered action kinds and their parameters."""
    from app.actions import list_action_kinds

    for spec in list_action_kinds():
        optional = f" [{', '.join(spec.optional)}]" if spec.optional else ""
        typer.echo(f"{spec.entity:<13} {spec.kind:<24} {', '.join(spec.required)}{optional}")


if __name__ == "__main__":
    app()
