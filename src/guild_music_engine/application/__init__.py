"""
Application Layer

Intents, the per-guild orchestration services and the command-dispatch
boundary. Depends on the domain layer and on the ports in ``interfaces``;
adapters live in ``infrastructure``.
"""

from guild_music_engine.application.dispatcher import CommandContext, CommandDispatcher
from guild_music_engine.application.intents import Intent, Outcome, OutcomeStatus

__all__ = [
    "CommandContext",
    "CommandDispatcher",
    "Intent",
    "Outcome",
    "OutcomeStatus",
]
