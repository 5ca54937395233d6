"""Materialize attachments for a feedback response."""

import json
import logging
import os
import tempfile
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .models import AttachmentKind, FeedbackFile, FileCategory

logger = logging.getLogger(__name__)


def _no_state(key: str) -> Any:
    return {}


def _no_actions() -> list[Any]:
    return []


@dataclass
class AttachmentContext:
    """Where attachment handlers find their data.

    Attributes:
        data_dir: Directory holding the application log files
        log_name: Base name of the application log (``<log_name>.log``)
        state_provider: Returns the JSON-serializable state slice for a key
            ('session', 'settings' or 'persistent')
        action_history: Returns the recent state changes
        temp_dir: Directory for generated dumps, system default if None
    """

    data_dir: Path
    log_name: str = "gh-feedback"
    state_provider: Callable[[str], Any] = field(default=_no_state)
    action_history: Callable[[], Any] = field(default=_no_actions)
    temp_dir: Path | None = None


def stat_file(
    file_path: Path | str, category: FileCategory, filename: str | None = None
) -> FeedbackFile | None:
    """Describe an existing file; returns None if it does not exist."""
    path = Path(file_path)
    try:
        size = path.stat().st_size
    except FileNotFoundError:
        logger.debug(f"Not attaching missing file {path}")
        return None
    return FeedbackFile(
        filename=filename or path.name,
        file_path=str(path),
        type=category,
        size=size,
    )


def dump_json(
    data: Any,
    prefix: str,
    filename: str,
    category: FileCategory,
    temp_dir: Path | None = None,
) -> FeedbackFile:
    """Write ``data`` to a new temporary JSON file."""
    payload = json.dumps(data, indent=2, default=str).encode("utf-8")
    fd, tmp_path = tempfile.mkstemp(
        prefix=f"{prefix}-", suffix=".json", dir=str(temp_dir) if temp_dir else None
    )
    with os.fdopen(fd, "wb") as f:
        f.write(payload)
    return FeedbackFile(
        filename=filename, file_path=tmp_path, type=category, size=len(payload)
    )


def _existing(*files: FeedbackFile | None) -> list[FeedbackFile]:
    return [file for file in files if file is not None]


def attach_log(context: AttachmentContext) -> list[FeedbackFile]:
    return _existing(
        stat_file(context.data_dir / f"{context.log_name}.log", FileCategory.LOG),
        stat_file(context.data_dir / f"{context.log_name}1.log", FileCategory.LOG),
    )


def attach_netlog(context: AttachmentContext) -> list[FeedbackFile]:
    return _existing(stat_file(context.data_dir / "network.log", FileCategory.LOG))


def _state_dump(state_key: str, name: str) -> Callable[[AttachmentContext], list[FeedbackFile]]:
    def handler(context: AttachmentContext) -> list[FeedbackFile]:
        data = context.state_provider(state_key)
        return [dump_json(data, state_key, name, FileCategory.STATE, context.temp_dir)]

    return handler


def attach_actions(context: AttachmentContext) -> list[FeedbackFile]:
    return [
        dump_json(
            context.action_history(),
            "events",
            "Action History",
            FileCategory.ACTIONS,
            context.temp_dir,
        )
    ]


ATTACHMENT_HANDLERS: dict[
    AttachmentKind, Callable[[AttachmentContext], list[FeedbackFile]]
] = {
    AttachmentKind.LOG: attach_log,
    AttachmentKind.NETLOG: attach_netlog,
    AttachmentKind.SESSION: _state_dump("session", "Session State"),
    AttachmentKind.SETTINGS: _state_dump("settings", "Application Settings"),
    AttachmentKind.STATE: _state_dump("persistent", "Application State"),
    AttachmentKind.ACTIONS: attach_actions,
}


def collect_attachment(
    kind: AttachmentKind, context: AttachmentContext
) -> list[FeedbackFile]:
    """Produce the files for one attachment kind."""
    return ATTACHMENT_HANDLERS[kind](context)


def remove_temporary_files(files: list[FeedbackFile]) -> dict[str, str]:
    """Delete generated files; user files are never touched.

    Returns:
        Mapping of path -> error for files that could not be removed
    """
    failures: dict[str, str] = {}
    for file in files:
        if not file.type.is_temporary:
            continue
        try:
            os.remove(file.file_path)
        except FileNotFoundError:
            continue
        except OSError as e:
            logger.warning(f"Failed to remove {file.file_path}: {e}")
            failures[file.file_path] = str(e)
    return failures
