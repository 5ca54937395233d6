"""CLI commands for refreshing and listing tracked issues."""

import asyncio
from datetime import datetime, timezone

import typer
from rich.console import Console
from rich.table import Table

from ..config import TrackerSettings
from ..storage.cache import CacheStore, IssueCacheEntry, visible_issues
from ..sync.engine import RefreshOutcome, RefreshStatus
from .context import build_context

console = Console()


def load_settings(repository: str | None) -> TrackerSettings:
    settings = TrackerSettings.from_env()
    if repository:
        settings = settings.model_copy(update={"repository": repository})
    return settings


def _print_outcome(outcome: RefreshOutcome) -> None:
    if outcome.status == RefreshStatus.SKIPPED:
        console.print("⏸️  Refresh skipped, try again in a minute")
        return
    if outcome.status == RefreshStatus.LIST_UNAVAILABLE:
        console.print(f"⚠️  Could not list your issues: {outcome.error}")
        return

    console.print(
        f"✅ Updated {len(outcome.updated)} of {len(outcome.requested)} issues"
    )
    for issue_id, error in outcome.failed.items():
        console.print(f"⚠️  #{issue_id}: {error}", markup=False)


def _milestone_text(entry: IssueCacheEntry) -> str:
    milestone = entry.milestone
    if milestone is None:
        return ""
    if milestone.state == "closed":
        return f"{milestone.title} (Closed)"
    text = f"{milestone.title} ({int(milestone.completion * 100)}%"
    if milestone.due_on is not None:
        text += f", planned for {milestone.due_on.date().isoformat()}"
    return text + ")"


def issues_table(entries: list[IssueCacheEntry], feedback_labels: list[str]) -> Table:
    table = Table(title="Your issues")
    table.add_column("Issue #", style="cyan")
    table.add_column("State", style="green")
    table.add_column("Title", style="white")
    table.add_column("Labels", style="magenta")
    table.add_column("Milestone", style="blue")
    table.add_column("Comments", justify="right", style="yellow")

    for entry in entries:
        labels = [label for label in entry.labels if label not in feedback_labels]
        if any(label in feedback_labels for label in entry.labels):
            labels.append("⚠️ feedback required")
        table.add_row(
            f"#{entry.number}",
            "Open" if entry.state == "open" else "Closed",
            entry.title[:50] + "..." if len(entry.title) > 50 else entry.title,
            ", ".join(labels),
            _milestone_text(entry),
            str(entry.comments),
        )
    return table


def refresh(
    force: bool = typer.Option(
        False, "--force", "-f", help="Re-fetch issues even if the cache is fresh"
    ),
    issue_numbers: list[int] | None = typer.Option(
        None, "--issue", "-i", help="Track this issue (can be used multiple times)"
    ),
    repository: str | None = typer.Option(
        None, "--repo", "-r", help="Repository as owner/name"
    ),
) -> None:
    """Fetch your issues from GitHub and update the local cache."""
    try:
        ctx = build_context(load_settings(repository), console, issue_numbers)
    except ValueError as e:
        console.print(f"❌ Error: {e}")
        raise typer.Exit(1)

    outcome = asyncio.run(ctx.engine.refresh(force=force))
    _print_outcome(outcome)
    if outcome.status == RefreshStatus.LIST_UNAVAILABLE:
        raise typer.Exit(1)


def issues(
    show_all: bool = typer.Option(
        False, "--all", "-a", help="Include closed issues without recent activity"
    ),
    repository: str | None = typer.Option(
        None, "--repo", "-r", help="Repository as owner/name"
    ),
) -> None:
    """Show the cached issues, most recently updated first."""
    settings = load_settings(repository)
    cache = CacheStore(settings.cache_path)
    now = datetime.now(timezone.utc)
    if show_all:
        entries = sorted(
            cache.issues.values(), key=lambda entry: entry.last_updated, reverse=True
        )
    else:
        entries = visible_issues(cache.issues, now, settings.hide_after)

    if not entries:
        console.print("No reported issues")
        return
    console.print(issues_table(entries, settings.feedback_labels))


def outstanding(
    issue_numbers: list[int] | None = typer.Option(
        None, "--issue", "-i", help="Track this issue (can be used multiple times)"
    ),
    repository: str | None = typer.Option(
        None, "--repo", "-r", help="Repository as owner/name"
    ),
) -> None:
    """List issues on which the maintainers wait for your response."""
    try:
        ctx = build_context(load_settings(repository), console, issue_numbers)
    except ValueError as e:
        console.print(f"❌ Error: {e}")
        raise typer.Exit(1)

    outcome = asyncio.run(ctx.engine.refresh(force=True))
    if outcome.status == RefreshStatus.LIST_UNAVAILABLE:
        _print_outcome(outcome)
        raise typer.Exit(1)

    pending = ctx.session.outstanding_issues
    if not pending:
        console.print("No Feedback Response Required")
        return

    table = Table(title="Awaiting your response")
    table.add_column("Issue #", style="cyan")
    table.add_column("Title", style="white")
    table.add_column("Maintainer", style="magenta")
    table.add_column("Comment", style="yellow")
    for item in pending:
        table.add_row(
            f"#{item.number}",
            item.issue.title,
            item.last_dev_comment.user.login,
            item.last_dev_comment.body,
        )
    console.print(table)
