"""Immutable value objects for the music bounded context."""

from __future__ import annotations

from dataclasses import dataclass

from guild_music_engine.domain.shared.exceptions import InvalidRemovalSpecError
from guild_music_engine.domain.shared.messages import ErrorMessages


@dataclass(frozen=True)
class RemovalSpec:
    """A validated queue position or inclusive range.

    Callers speak 1-based positions; ``start`` and ``end`` are stored 0-based
    and already ordered, so ``"4-2"`` and ``"2-4"`` parse identically.
    """

    start: int
    end: int

    def __post_init__(self) -> None:
        if self.start < 0 or self.end < 0:
            raise ValueError(ErrorMessages.REMOVAL_POSITION_NOT_POSITIVE)
        if self.start > self.end:
            start, end = self.end, self.start
            object.__setattr__(self, "start", start)
            object.__setattr__(self, "end", end)

    @property
    def is_range(self) -> bool:
        return self.start != self.end

    def __str__(self) -> str:
        if self.is_range:
            return f"{self.start + 1}-{self.end + 1}"
        return str(self.start + 1)

    @classmethod
    def parse(cls, raw: str) -> RemovalSpec:
        """Parse ``"3"`` or ``"2-4"`` (1-based, either order) into a spec."""
        text = raw.strip()
        if not text:
            raise InvalidRemovalSpecError(raw, ErrorMessages.EMPTY_REMOVAL_SPEC)

        parts = [p.strip() for p in text.split("-")]
        if len(parts) > 2 or not all(p.isdecimal() and p.isascii() for p in parts):
            raise InvalidRemovalSpecError(raw)

        positions = [int(p) for p in parts]
        if any(p < 1 for p in positions):
            raise InvalidRemovalSpecError(raw, ErrorMessages.REMOVAL_POSITION_NOT_POSITIVE)

        return cls(start=positions[0] - 1, end=positions[-1] - 1)
