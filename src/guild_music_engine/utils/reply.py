"""Utility functions for formatting Discord messages."""

from __future__ import annotations

from functools import cache

DISCORD_MESSAGE_LIMIT = 2000


@cache
def format_duration(seconds: int | float | None) -> str:
    if seconds is None:
        return "–"

    total_seconds = int(seconds)
    hours, remainder = divmod(total_seconds, 3600)
    minutes, secs = divmod(remainder, 60)

    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


@cache
def truncate(text: str, max_length: int = 90) -> str:
    if len(text) <= max_length:
        return text
    return text[: max_length - 1] + "…"


def clamp_lines(lines: list[str], limit: int = DISCORD_MESSAGE_LIMIT) -> str:
    """Join ``lines`` with newlines, dropping trailing ones that would overflow ``limit``.

    A final ``…`` line marks that something was cut.
    """
    kept: list[str] = []
    used = 0
    for index, line in enumerate(lines):
        cost = len(line) + (1 if kept else 0)
        has_more = index < len(lines) - 1
        reserve = 2 if has_more else 0
        if used + cost + reserve > limit:
            kept.append("…")
            break
        kept.append(line)
        used += cost
    return truncate("\n".join(kept), limit)
