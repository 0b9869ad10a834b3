"""Command Dispatcher - the boundary between chat commands and the playback engine.

Checks that voice commands come from someone who can actually hear the
result, routes the intent to the guild's orchestrator, and renders whatever
comes back through the reply sink. Nothing raised below this layer reaches
the chat client: unexpected errors are logged and answered with a generic
failure message.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from ..domain.shared.exceptions import NoPermissionError
from ..domain.shared.messages import LogTemplates
from ..domain.shared.types import DiscordSnowflake
from .intents import VOICE_INTENTS, Intent, Outcome, OutcomeStatus
from .presenter import render_outcome

if TYPE_CHECKING:
    from .interfaces.collaborators import PermissionOracle, ReplySink
    from .services.registry import GuildPlaybackRegistry

logger = logging.getLogger(__name__)

# Replies that would clutter the channel if left around.
_TRANSIENT = frozenset({OutcomeStatus.QUEUE_LISTED, OutcomeStatus.REMOVED})


@dataclass(frozen=True)
class CommandContext:
    """Who asked, from where, and where the answer goes."""

    guild_id: DiscordSnowflake
    requester: Any
    requester_name: str
    reply_target: Any
    voice_channel: Any | None = None
    voice_channel_id: DiscordSnowflake | None = None


class CommandDispatcher:
    def __init__(
        self,
        *,
        registry: GuildPlaybackRegistry,
        reply_sink: ReplySink,
        permission_oracle: PermissionOracle,
        reply_delete_delay: float = 30.0,
    ) -> None:
        self._registry = registry
        self._replies = reply_sink
        self._permissions = permission_oracle
        self._delete_delay = reply_delete_delay

    async def handle(self, context: CommandContext, intent: Intent) -> Outcome:
        """Run ``intent`` for ``context`` and reply with the result."""
        outcome = await self._run(context, intent)
        await self._respond(context, outcome)
        return outcome

    async def _run(self, context: CommandContext, intent: Intent) -> Outcome:
        try:
            if isinstance(intent, VOICE_INTENTS):
                if context.voice_channel is None:
                    return Outcome(status=OutcomeStatus.NOT_IN_VOICE)
                self._authorize(context)

            return await self._registry.dispatch(context.guild_id, self._stamp(context, intent))
        except NoPermissionError as e:
            logger.info(LogTemplates.VOICE_NO_PERMISSION, e.channel_id)
            return Outcome(status=OutcomeStatus.NO_PERMISSION, detail=e.message)
        except Exception:
            logger.exception(LogTemplates.COMMAND_FAILED, type(intent).__name__, context.guild_id)
            return Outcome(status=OutcomeStatus.ERROR)

    def _authorize(self, context: CommandContext) -> None:
        if not self._permissions.can_connect_and_speak(context.requester, context.voice_channel):
            raise NoPermissionError(getattr(context.requester, "id", 0), context.voice_channel_id)

    @staticmethod
    def _stamp(context: CommandContext, intent: Intent) -> Intent:
        updates: dict[str, Any] = {"requested_by": context.requester_name}
        if "channel_id" in type(intent).model_fields and getattr(intent, "channel_id") is None:
            updates["channel_id"] = context.voice_channel_id
        return intent.model_copy(update=updates)

    async def _respond(self, context: CommandContext, outcome: Outcome) -> None:
        text = render_outcome(outcome)
        try:
            if text is None:
                await self._replies.delete_now(context.reply_target)
                return

            await self._replies.reply(context.reply_target, text)
            if outcome.status in _TRANSIENT:
                await self._replies.delete_after_delay(context.reply_target, self._delete_delay)
        except Exception as e:
            logger.warning(LogTemplates.REPLY_FAILED, e)
