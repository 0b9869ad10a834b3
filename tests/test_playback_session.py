"""
Unit Tests for PlaybackSession

Tests for:
- Binding to a voice channel and rolling back on failure
- Starting streams, lazy stream resolution and generations
- Superseded requests
- Pause / resume / stop
- End-of-stream de-duplication
"""

import asyncio
from unittest.mock import AsyncMock

import pytest

from conftest import CHANNEL_ID, GUILD_ID, OTHER_CHANNEL_ID, make_track
from guild_music_engine.application.intents import TrackEnded
from guild_music_engine.domain.shared.exceptions import (
    ConnectFailedError,
    ResolutionFailedError,
    StreamFailedError,
)


@pytest.fixture
def finished(session):
    """Capture TrackEnded intents forwarded by the session."""
    callback = AsyncMock()
    session.set_on_finished(callback)
    return callback


class TestBind:
    """Tests for joining a voice channel."""

    @pytest.mark.asyncio
    async def test_bind_connects(self, session, voice):
        """Binding records the channel."""
        assert await session.bind(CHANNEL_ID) == CHANNEL_ID
        assert session.is_bound
        assert session.channel_id == CHANNEL_ID
        assert voice.channels[GUILD_ID] == CHANNEL_ID

    @pytest.mark.asyncio
    async def test_bind_same_channel_is_noop(self, session, voice):
        """Binding twice to the same channel connects once."""
        await session.bind(CHANNEL_ID)
        await session.bind(CHANNEL_ID)
        assert voice.count("ensure_connected") == 1

    @pytest.mark.asyncio
    async def test_bind_other_channel_moves(self, session, voice):
        """Binding to a different channel goes through the adapter again."""
        await session.bind(CHANNEL_ID)
        await session.bind(OTHER_CHANNEL_ID)
        assert session.channel_id == OTHER_CHANNEL_ID
        assert voice.count("ensure_connected") == 2

    @pytest.mark.asyncio
    async def test_bind_failure_rolls_back(self, session, voice):
        """A failed connect leaves the session unbound and raises."""
        voice.connect_ok = False
        with pytest.raises(ConnectFailedError) as exc_info:
            await session.bind(CHANNEL_ID)

        assert exc_info.value.channel_id == CHANNEL_ID
        assert not session.is_bound
        assert voice.count("disconnect") == 1


class TestPlay:
    """Tests for starting streams."""

    @pytest.mark.asyncio
    async def test_play_binds_and_streams(self, session, voice):
        """Playing with a channel joins it and starts generation 1."""
        track = make_track("a")
        assert await session.play(track, channel_id=CHANNEL_ID)

        assert session.is_streaming
        assert session.stream.generation == 1
        assert session.stream.track == track
        assert voice.played_urls == [track.url]

    @pytest.mark.asyncio
    async def test_each_stream_gets_new_generation(self, session, voice):
        """Generations increase with every started stream."""
        await session.play(make_track("a"), channel_id=CHANNEL_ID)
        await session.play(make_track("b"))
        assert session.stream.generation == 2
        assert voice.generations[GUILD_ID] == 2

    @pytest.mark.asyncio
    async def test_play_retires_previous_stream(self, session, voice):
        """Starting a new stream stops the old one first."""
        await session.play(make_track("a"), channel_id=CHANNEL_ID)
        await session.play(make_track("b"))
        assert voice.count("stop") == 1

    @pytest.mark.asyncio
    async def test_play_resolves_missing_stream_url(self, session, voice, provider):
        """A track without a stream url is resolved before playing."""
        track = provider.add("a")
        assert await session.play(track, channel_id=CHANNEL_ID)

        assert voice.played[0].stream_url == "https://stream.example/a"
        assert session.stream.track.stream_url == "https://stream.example/a"

    @pytest.mark.asyncio
    async def test_play_unresolvable_raises(self, session, voice):
        """A stream that cannot be resolved raises and plays nothing."""
        with pytest.raises(ResolutionFailedError):
            await session.play(make_track("a", stream=False), channel_id=CHANNEL_ID)
        assert voice.played == []
        assert not session.is_streaming

    @pytest.mark.asyncio
    async def test_play_without_binding_raises(self, session):
        """Playing with no channel and no binding is a connect failure."""
        with pytest.raises(ConnectFailedError):
            await session.play(make_track("a"))

    @pytest.mark.asyncio
    async def test_play_refused_raises(self, session, voice):
        """The voice layer refusing to stream raises StreamFailedError."""
        voice.play_ok = False
        with pytest.raises(StreamFailedError):
            await session.play(make_track("a"), channel_id=CHANNEL_ID)
        assert not session.is_streaming

    @pytest.mark.asyncio
    async def test_play_superseded_by_newer_play(self, session, voice, provider):
        """A play suspended on resolution gives way to a newer one."""
        gate = asyncio.Event()
        slow = make_track("slow", stream=False)

        async def resolve_stream(track):
            if track.url == slow.url:
                await gate.wait()
            return "https://stream.example/x"

        provider.resolve_stream = resolve_stream
        await session.bind(CHANNEL_ID)

        pending = asyncio.create_task(session.play(slow))
        await asyncio.sleep(0)
        assert await session.play(make_track("fast"))
        gate.set()

        assert await pending is False
        assert session.stream.track.title == "Song fast"
        assert voice.count("play") == 1

    @pytest.mark.asyncio
    async def test_play_superseded_by_stop_while_connecting(self, session, voice):
        """A stop during connect leaves the channel instead of lingering."""
        gate = asyncio.Event()
        original = voice.ensure_connected

        async def slow_connect(guild_id, channel_id):
            await gate.wait()
            return await original(guild_id, channel_id)

        voice.ensure_connected = slow_connect

        pending = asyncio.create_task(session.play(make_track("a"), channel_id=CHANNEL_ID))
        await asyncio.sleep(0)
        await session.stop()
        gate.set()

        assert await pending is False
        assert not session.is_bound
        assert GUILD_ID not in voice.channels
        assert voice.played == []


class TestPauseResumeStop:
    """Tests for pausing, resuming and stopping."""

    @pytest.mark.asyncio
    async def test_pause_without_stream(self, session):
        """Nothing to pause returns False."""
        assert not await session.pause()
        assert not await session.resume()

    @pytest.mark.asyncio
    async def test_pause_and_resume(self, session):
        """Pause and resume toggle the stream's paused flag."""
        await session.play(make_track("a"), channel_id=CHANNEL_ID)

        assert await session.pause()
        assert session.paused
        assert await session.resume()
        assert not session.paused

    @pytest.mark.asyncio
    async def test_pause_and_resume_are_idempotent(self, session, voice):
        """Repeating pause or resume on a live stream succeeds without re-asking voice."""
        await session.play(make_track("a"), channel_id=CHANNEL_ID)

        assert await session.resume()
        assert await session.pause()
        assert await session.pause()
        assert session.paused
        assert voice.count("pause") == 1
        assert voice.count("resume") == 0

    @pytest.mark.asyncio
    async def test_stop_tears_down(self, session, voice):
        """Stopping clears the stream and leaves voice."""
        await session.play(make_track("a"), channel_id=CHANNEL_ID)

        assert await session.stop()
        assert not session.is_streaming
        assert not session.is_bound
        assert GUILD_ID not in voice.channels

    @pytest.mark.asyncio
    async def test_stop_when_idle(self, session):
        """Stopping an idle session reports that nothing was stopped."""
        assert not await session.stop()

    @pytest.mark.asyncio
    async def test_listeners_require_binding(self, session, voice):
        """An unbound session has no listeners."""
        assert not await session.has_listeners_present()
        await session.bind(CHANNEL_ID)
        assert await session.has_listeners_present()
        voice.listeners = []
        assert not await session.has_listeners_present()


class TestStreamEnd:
    """Tests for end-of-stream delivery."""

    @pytest.mark.asyncio
    async def test_live_generation_forwarded_once(self, session, finished):
        """The first end signal for the live stream is forwarded exactly once."""
        await session.play(make_track("a"), channel_id=CHANNEL_ID)

        await session.handle_stream_end(1)
        await session.handle_stream_end(1)

        finished.assert_awaited_once()
        intent = finished.await_args.args[0]
        assert isinstance(intent, TrackEnded)
        assert intent.generation == 1
        assert intent.error is None
        assert not session.is_streaming

    @pytest.mark.asyncio
    async def test_stale_generation_dropped(self, session, finished):
        """End signals from replaced streams are ignored."""
        await session.play(make_track("a"), channel_id=CHANNEL_ID)
        await session.play(make_track("b"))

        await session.handle_stream_end(1)

        finished.assert_not_awaited()
        assert session.stream.generation == 2

    @pytest.mark.asyncio
    async def test_end_after_stop_dropped(self, session, finished):
        """Stopping makes the old stream's end signal irrelevant."""
        await session.play(make_track("a"), channel_id=CHANNEL_ID)
        await session.stop()

        await session.handle_stream_end(1)
        finished.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_error_text_forwarded(self, session, finished):
        """A player error travels with the intent as text."""
        await session.play(make_track("a"), channel_id=CHANNEL_ID)
        await session.handle_stream_end(1, RuntimeError("ffmpeg died"))
        assert finished.await_args.args[0].error == "ffmpeg died"

    @pytest.mark.asyncio
    async def test_callback_failure_is_logged(self, session, caplog):
        """A failing owner callback does not propagate."""
        session.set_on_finished(AsyncMock(side_effect=RuntimeError("boom")))
        await session.play(make_track("a"), channel_id=CHANNEL_ID)

        await session.handle_stream_end(1)
        assert any("Error delivering stream end" in r.message for r in caplog.records)
