"""Notification sink used to report progress and results to the user."""

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol

from rich.console import Console
from rich.panel import Panel


@dataclass
class NotificationAction:
    """A button attached to a notification or dialog."""

    title: str
    action: Callable[[], None] | None = field(default=None)


class NotificationSink(Protocol):
    """Host services for activity indicators, notices and dialogs."""

    def start_activity(self, message: str, notification_id: str) -> None: ...

    def dismiss(self, notification_id: str) -> None: ...

    def show_error(
        self, message: str, detail: str | None = None, notification_id: str | None = None
    ) -> None: ...

    def show_info(
        self, message: str, action: NotificationAction | None = None
    ) -> None: ...

    def show_success(self, message: str) -> None: ...

    def show_dialog(
        self,
        kind: str,
        title: str,
        content: str,
        actions: list[NotificationAction],
    ) -> None: ...


class ConsoleNotifier:
    """Renders notifications on the terminal.

    A terminal has no buttons, so actions attached to an info notice are run
    right away when ``expand_actions`` is set.
    """

    def __init__(self, console: Console | None = None, expand_actions: bool = True):
        self.console = console or Console()
        self.expand_actions = expand_actions
        self._activities: dict[str, str] = {}

    def start_activity(self, message: str, notification_id: str) -> None:
        self._activities[notification_id] = message
        self.console.print(f"⏳ {message}...")

    def dismiss(self, notification_id: str) -> None:
        self._activities.pop(notification_id, None)

    def show_error(
        self, message: str, detail: str | None = None, notification_id: str | None = None
    ) -> None:
        if notification_id is not None:
            self.dismiss(notification_id)
        text = f"❌ {message}"
        if detail:
            text += f": {detail}"
        self.console.print(text, style="red", markup=False)

    def show_info(
        self, message: str, action: NotificationAction | None = None
    ) -> None:
        self.console.print(f"ℹ️  {message}")
        if action is not None and action.action is not None and self.expand_actions:
            action.action()

    def show_success(self, message: str) -> None:
        self.console.print(f"✅ {message}")

    def show_dialog(
        self,
        kind: str,
        title: str,
        content: str,
        actions: list[NotificationAction],
    ) -> None:
        style = "red" if kind == "error" else "cyan"
        self.console.print(Panel(content, title=title, border_style=style))
