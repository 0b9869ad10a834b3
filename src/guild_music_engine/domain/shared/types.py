"""Reusable Pydantic Annotated types for domain-wide validation.

Every constrained type used by the engine is defined here once, so models can
simply annotate their fields::

    from guild_music_engine.domain.shared.types import DiscordSnowflake, HttpUrlStr

    class MyModel(BaseModel):
        guild_id: DiscordSnowflake
        url: HttpUrlStr
"""

from __future__ import annotations

from typing import Annotated

from pydantic import Field

# ── Numeric constraints ─────────────────────────────────────────────

DiscordSnowflake = Annotated[int, Field(gt=0, lt=2**64)]
"""Positive integer that fits a Discord snowflake (1 … 2^64-1)."""

NonNegativeInt = Annotated[int, Field(ge=0)]
"""Integer >= 0."""

PositiveInt = Annotated[int, Field(gt=0)]
"""Integer > 0."""


# ── String constraints ──────────────────────────────────────────────

NonEmptyStr = Annotated[str, Field(min_length=1)]
"""String with at least one character."""

TrackTitleStr = Annotated[str, Field(min_length=1, max_length=500)]
"""Track title: 1-500 characters."""

HttpUrlStr = Annotated[str, Field(pattern=r"^https?://")]
"""String that starts with http:// or https://."""


# ── Domain-specific numeric constraints ─────────────────────────────

DurationSeconds = Annotated[int, Field(ge=0, le=86_400)]
"""Track duration in seconds: 0 … 86 400 (24 hours)."""

QueueIndex = Annotated[int, Field(ge=0)]
"""Zero-based position in the pending queue."""

HistorySize = Annotated[int, Field(ge=1, le=500)]
"""Number of finished tracks kept for replay: 1 … 500."""
