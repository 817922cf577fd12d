"""kioku CLI: study queue, reviews, quotas and statistics over a study file."""

import json
import logging
import sys
from dataclasses import asdict
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Annotated

import typer

from kioku.application.allocator import allocate
from kioku.application.config import AppConfig, resolve_config
from kioku.application.due_filter import due_items
from kioku.application.factory import get_study_repository
from kioku.application.queue_builder import build_session
from kioku.application.schemas import ItemRecord
from kioku.application.scheduler import apply_review, new_item, quality_label
from kioku.application.stats import StudyStatsService
from kioku.domain.errors import InvalidRating
from kioku.domain.models import ReviewEvent, SchedulableItem
from kioku.domain.ports import StudyData, StudyRepository
from kioku.infrastructure.adapters.study_file import StudyFileError

# ---------------------------------------------------------------------------
# Root app
# ---------------------------------------------------------------------------

app = typer.Typer(
    help="kioku: spaced-repetition scheduling for multi-exam study.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s:%(name)s:%(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)

# config.verbose plus the -v count -> level for the kioku logger tree
_LOG_LEVELS = {0: logging.WARNING, 1: logging.INFO}
LOG_FILE_NAME = "kioku.log"


def _setup_logging(log_dir: Path, level: int) -> None:
    """Set the kioku logger level and mirror its records into log_dir."""
    kioku_logger = logging.getLogger("kioku")
    kioku_logger.setLevel(level)

    # One file handler per process, even when the app is invoked repeatedly
    for handler in [h for h in kioku_logger.handlers if isinstance(h, RotatingFileHandler)]:
        kioku_logger.removeHandler(handler)
        handler.close()

    log_dir.mkdir(parents=True, exist_ok=True)
    file_handler = RotatingFileHandler(
        log_dir / LOG_FILE_NAME,
        maxBytes=1024 * 1024,
        backupCount=3,
        encoding="utf-8",
    )
    file_handler.setFormatter(
        logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    )
    kioku_logger.addHandler(file_handler)


config_app = typer.Typer(help="Manage kioku configuration.")
app.add_typer(config_app, name="config")


# ---------------------------------------------------------------------------
# Global callback
# ---------------------------------------------------------------------------


@app.callback()
def main_callback(
    ctx: typer.Context,
    study_file: Annotated[
        Path | None, typer.Option("--file", "-f", help="Study file (YAML or JSON).")
    ] = None,
    now: Annotated[
        datetime | None,
        typer.Option(help="Pretend the current time is this instant (UTC if no offset)."),
    ] = None,
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose", "-v", count=True, help="Increase verbosity. Repeat for more detail."
        ),
    ] = 0,
    quiet: Annotated[
        bool, typer.Option("--quiet", "-q", help="Only log warnings and errors.")
    ] = False,
):
    """Global settings for kioku."""
    ctx.ensure_object(dict)
    ctx.obj["study_file"] = study_file
    ctx.obj["now"] = now
    config = resolve_config()
    level = 0 if quiet else config.verbose + verbose
    _setup_logging(config.log_dir, _LOG_LEVELS.get(level, logging.DEBUG))


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _config(ctx: typer.Context) -> AppConfig:
    return resolve_config({"study_file": (ctx.obj or {}).get("study_file")})


def _now(ctx: typer.Context) -> datetime:
    # The only place the wall clock is read; everything below takes `now`.
    now = (ctx.obj or {}).get("now") or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now


def _open(ctx: typer.Context) -> tuple[AppConfig, StudyRepository, StudyData]:
    config = _config(ctx)
    repo = get_study_repository(config)
    try:
        data = repo.load()
    except StudyFileError as e:
        typer.secho(f"Could not read study file: {e}", fg="red")
        raise typer.Exit(1) from e
    return config, repo, data


def _item_line(item: SchedulableItem) -> str:
    where = " / ".join(p for p in (item.goal_id, item.subject) if p)
    return f"{item.id:<20} due {item.next_review_at:%Y-%m-%d %H:%M}  {where}"


def _heat_cell(count: int) -> str:
    if count == 0:
        return "."
    if count < 5:
        return "░"
    if count < 20:
        return "▒"
    return "█"


def _dump_items(items: list[SchedulableItem]) -> str:
    return json.dumps(
        [ItemRecord.from_domain(i).model_dump(mode="json") for i in items],
        indent=2,
        ensure_ascii=False,
    )


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.command()
def due(
    ctx: typer.Context,
    goal: Annotated[str | None, typer.Option(help="Only items of this goal id.")] = None,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """List items that are due now, oldest first."""
    _, _, data = _open(ctx)
    items = data.items
    if goal:
        items = [i for i in items if i.goal_id == goal]

    result = due_items(items, _now(ctx))
    if json_output:
        typer.echo(_dump_items(result))
        return

    typer.echo(f"Due: {len(result)}")
    for item in result:
        typer.echo(f"  {_item_line(item)}")


@app.command()
def add(
    ctx: typer.Context,
    item_id: Annotated[str, typer.Argument(help="New item id.")],
    goal: Annotated[str | None, typer.Option(help="Goal id the item belongs to.")] = None,
    subject: Annotated[str | None, typer.Option(help="Subject label.")] = None,
    correct_rate: Annotated[
        float | None,
        typer.Option(help="Historical correct rate (%) used to pick the starting ease."),
    ] = None,
):
    """Add a new item, due immediately."""
    _, repo, data = _open(ctx)
    if data.find_item(item_id):
        typer.secho(f"Item '{item_id}' already exists.", fg="red")
        raise typer.Exit(2)

    item = new_item(item_id, _now(ctx), goal_id=goal, subject=subject, correct_rate=correct_rate)
    repo.save_items([item])
    typer.secho(f"Added '{item_id}' (ease {item.ease_factor:.1f}).", fg="green")


@app.command()
def review(
    ctx: typer.Context,
    item_id: Annotated[str, typer.Argument(help="Item that was answered.")],
    quality: Annotated[
        int,
        typer.Argument(help="Rating 0-5 (0-1 again, 2 hard-fail, 3 hard, 4 good, 5 easy)."),
    ],
):
    """Record an answer and reschedule the item."""
    _, repo, data = _open(ctx)
    item = data.find_item(item_id)
    if item is None:
        typer.secho(f"Unknown item '{item_id}'.", fg="red")
        raise typer.Exit(2)

    now = _now(ctx)
    try:
        updated = apply_review(item, quality, now)
    except InvalidRating as e:
        typer.secho(str(e), fg="red")
        raise typer.Exit(2) from e

    repo.record_review(
        updated,
        ReviewEvent(
            item_id=item.id,
            quality=quality,
            reviewed_at=now,
            goal_id=item.goal_id,
            subject=item.subject,
        ),
    )

    if updated.interval < 1:
        spacing = f"{round(updated.interval * 1440)} min"
    else:
        spacing = f"{updated.interval:g} d"
    typer.echo(
        f"{quality_label(quality)}: next review {updated.next_review_at:%Y-%m-%d %H:%M} "
        f"({spacing}, repetition {updated.repetition}, ease {updated.ease_factor:.2f})"
    )


@app.command()
def quota(
    ctx: typer.Context,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """Show today's card quota per goal."""
    _, _, data = _open(ctx)
    if not data.goals:
        typer.secho("No goals configured.", fg="yellow")
        return

    plan = allocate(data.goals, data.items, _now(ctx))

    if json_output:
        typer.echo(
            json.dumps(
                {
                    "total": plan.total,
                    "goals": [
                        {
                            "goal_id": goal.id,
                            "quota": plan.quota_for(goal.id),
                            "share": plan.shares[goal.id],
                            **asdict(plan.snapshots[goal.id]),
                            "remaining_items": plan.snapshots[goal.id].remaining_items,
                            "mastery_ratio": plan.snapshots[goal.id].mastery_ratio,
                        }
                        for goal in data.goals
                    ],
                },
                indent=2,
            )
        )
        return

    for goal in data.goals:
        snap = plan.snapshots[goal.id]
        typer.echo(
            f"{goal.name:<24} {plan.quota_for(goal.id):>4}/day  "
            f"{snap.days_left}d left | Due {snap.due_items} | "
            f"mastered {snap.mastered_items}/{snap.total_items} ({snap.mastery_ratio:.0%})"
        )
    typer.echo(f"Total: {plan.total}/day")


@app.command()
def queue(
    ctx: typer.Context,
    limit: Annotated[int | None, typer.Option(help="Maximum cards in the session.")] = None,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """Build today's interleaved study queue across all goals."""
    config, _, data = _open(ctx)
    session = build_session(
        data.items,
        data.goals,
        _now(ctx),
        signals=data.signals,
        limit=limit if limit is not None else config.session_limit,
    )

    if json_output:
        typer.echo(_dump_items(session.items))
        return

    if not session.items:
        typer.secho("Nothing due.", fg="green")
        return

    typer.echo(f"Session: {len(session.items)} cards (daily quota {session.quota_total})")
    for pos, item in enumerate(session.items, start=1):
        typer.echo(f"{pos:>4}. {_item_line(item)}")


@app.command()
def stats(
    ctx: typer.Context,
    days: Annotated[int, typer.Option(help="Days in the daily series.")] = 7,
):
    """Show streak, today's accuracy, the weakest subjects and recent activity."""
    _, repo, _ = _open(ctx)
    summary = StudyStatsService(repo).summarize(_now(ctx).date(), days=days)

    typer.echo(f"Streak: {summary.streak} day(s)")
    typer.echo(
        f"Today: {summary.cards_studied_today} cards, "
        f"{summary.correct_rate_today:.0f}% correct"
    )
    typer.echo("Daily:")
    for day in summary.daily:
        typer.echo(f"  {day.date.isoformat()}  {day.correct:>3}/{day.total:<3}")
    if summary.weakest_subjects:
        typer.echo("Weakest subjects:")
        for s in summary.weakest_subjects:
            label = f"{s.exam_name}: {s.subject}" if s.exam_name else s.subject
            typer.echo(f"  {label:<32} {s.rate:5.1f}% ({s.correct}/{s.total})")

    typer.echo(f"Activity: {summary.active_days} of the last {len(summary.heatmap)} days")
    for start in range(0, len(summary.heatmap), 7):
        week = summary.heatmap[start : start + 7]
        cells = "".join(_heat_cell(day.count) for day in week)
        typer.echo(f"  {week[0].date.isoformat()}  {cells}")


@app.command()
def serve(
    ctx: typer.Context,
    port: Annotated[int | None, typer.Option(help="Port to bind the server to.")] = None,
    host: Annotated[str | None, typer.Option(help="Host to bind the server to.")] = None,
    reload: Annotated[bool, typer.Option(help="Enable auto-reload.")] = False,
):
    """Run the scheduling HTTP service."""
    import uvicorn

    config = _config(ctx)
    uvicorn.run(
        "kioku.server:app",
        host=host or config.host,
        port=port or config.port,
        reload=reload,
    )


@app.command()
def logs(ctx: typer.Context):
    """Print the log directory, creating it if needed."""
    config = _config(ctx)
    config.log_dir.mkdir(parents=True, exist_ok=True)
    typer.echo(str(config.log_dir))


# ---------------------------------------------------------------------------
# Config subgroup
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show(ctx: typer.Context):
    """Display final resolved configuration."""
    config = _config(ctx)
    d = {k: str(v) if isinstance(v, Path) else v for k, v in config.model_dump().items()}
    typer.echo(json.dumps(d, indent=2))
