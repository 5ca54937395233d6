"""CLI command for answering a maintainer's feedback request."""

import asyncio
from pathlib import Path

import typer
from rich.console import Console

from ..errors import AttachmentTooLarge, ValidationError
from ..feedback.channels import FeedbackChannel, GitHubCommentChannel, OutboxChannel
from ..feedback.coordinator import FeedbackSubmissionCoordinator, SubmitStatus
from ..feedback.models import AttachmentKind
from ..feedback.sysinfo import format_size
from ..sync.engine import RefreshStatus
from .context import AppContext, build_context
from .issues import load_settings

console = Console()


async def _respond(
    ctx: AppContext,
    channel: FeedbackChannel,
    issue_number: int,
    message: str,
    kinds: list[AttachmentKind],
    files: list[Path],
    anonymous: bool,
) -> SubmitStatus:
    outcome = await ctx.engine.refresh(force=True)
    if outcome.status == RefreshStatus.LIST_UNAVAILABLE:
        console.print(f"❌ Could not list your issues: {outcome.error}")
        return SubmitStatus.REJECTED

    coordinator = FeedbackSubmissionCoordinator(
        cache=ctx.cache,
        session=ctx.session,
        channel=channel,
        notifier=ctx.notifier,
        settings=ctx.settings,
        attachment_context=ctx.attachment_context([outcome.model_dump(mode="json")]),
    )
    if not coordinator.select(issue_number):
        console.print(f"❌ Issue #{issue_number} is not awaiting a response")
        return SubmitStatus.REJECTED

    coordinator.set_anonymous(anonymous)
    coordinator.set_message(message)
    try:
        for kind in kinds:
            coordinator.attach_kind(kind)
        for path in files:
            if coordinator.attach_path(path) is None:
                console.print(f"⚠️  Skipping missing file {path}")
    except AttachmentTooLarge as e:
        coordinator.discard()
        console.print(f"❌ Attachment too big: {e}")
        return SubmitStatus.REJECTED

    for attached in coordinator.state.files.values():
        console.print(f"📎 {attached.filename} ({format_size(attached.size)})")
    if coordinator.anonymity_warning:
        console.print(f"⚠️  {coordinator.anonymity_warning}")

    try:
        result = await coordinator.submit()
    except ValidationError as e:
        coordinator.discard()
        console.print(f"❌ {e}")
        return SubmitStatus.REJECTED

    if result.status == SubmitStatus.SUCCEEDED and result.responder_closed:
        console.print("🎉 No more issues await your response")
    return result.status


def respond(
    issue_number: int = typer.Option(..., "--issue", "-i", help="Issue to respond to"),
    message: str = typer.Option(..., "--message", "-m", help="Your response"),
    attach: list[AttachmentKind] | None = typer.Option(
        None, "--attach", help="Attach application data (can be used multiple times)"
    ),
    files: list[Path] | None = typer.Option(
        None, "--file", help="Attach a file (can be used multiple times)"
    ),
    anonymous: bool = typer.Option(
        False, "--anonymous", help="Do not identify yourself"
    ),
    outbox: Path | None = typer.Option(
        None, "--outbox", help="Write the report to this directory instead of GitHub"
    ),
    track: list[int] | None = typer.Option(
        None, "--track", help="Track this issue instead of listing your own"
    ),
    repository: str | None = typer.Option(
        None, "--repo", "-r", help="Repository as owner/name"
    ),
) -> None:
    """Send your response to a maintainer's question on one of your issues.

    Examples:
        gh-feedback respond --issue 42 --message "Still happens on 1.2" --attach log
        gh-feedback respond -i 42 -m "Here is my config" --file config.json
    """
    settings = load_settings(repository)
    try:
        ctx = build_context(settings, console, track)
    except ValueError as e:
        console.print(f"❌ Error: {e}")
        raise typer.Exit(1)

    channel: FeedbackChannel
    if outbox is not None:
        channel = OutboxChannel(outbox)
    else:
        channel = GitHubCommentChannel(settings)

    status = asyncio.run(
        _respond(
            ctx, channel, issue_number, message, attach or [], files or [], anonymous
        )
    )
    if status != SubmitStatus.SUCCEEDED:
        raise typer.Exit(1)
