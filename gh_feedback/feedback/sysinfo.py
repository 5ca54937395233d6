"""System information header prepended to every feedback report."""

import os
import platform


def format_size(size: int) -> str:
    """Human readable byte count, e.g. ``1.5 MB``."""
    if size < 1024:
        return f"{size} B"
    value = size / 1024
    for unit in ("KB", "MB"):
        if value < 1024:
            return f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} GB"


def total_memory() -> int | None:
    """Physical memory in bytes, None where the platform does not tell."""
    try:
        return os.sysconf("SC_PAGE_SIZE") * os.sysconf("SC_PHYS_PAGES")
    except (AttributeError, ValueError, OSError):
        return None


def system_info(app_name: str, app_version: str) -> str:
    memory = total_memory()
    return "\n".join(
        [
            f"{app_name} Version: {app_version}",
            "Memory: " + (format_size(memory) if memory is not None else "unknown"),
            "System: "
            f"{platform.system().lower()} {platform.machine()} ({platform.release()})",
        ]
    )
