import pytest

from guild_music_engine.application.interfaces.collaborators import ActivityDisplay
from guild_music_engine.application.interfaces.metadata_provider import MetadataProvider
from guild_music_engine.application.interfaces.voice_adapter import VoiceAdapter
from guild_music_engine.application.services.orchestrator import PlaybackOrchestrator
from guild_music_engine.application.services.playback_session import PlaybackSession
from guild_music_engine.domain.music.entities import PlaybackQueue, TrackMetadata

GUILD_ID = 111222333444555666
CHANNEL_ID = 777888999000111222
OTHER_CHANNEL_ID = 777888999000111333


def make_track(name: str, duration: int | None = 180, stream: bool = True) -> TrackMetadata:
    """Build a track whose url and stream url are derived from ``name``."""
    return TrackMetadata(
        url=f"https://youtube.com/watch?v={name}",
        title=f"Song {name}",
        duration_seconds=duration,
        stream_url=f"https://stream.example/{name}" if stream else None,
    )


# ============================================================================
# Port Fakes
# ============================================================================


class FakeVoiceAdapter(VoiceAdapter):
    """In-memory voice layer that records what the engine asked of it."""

    def __init__(self) -> None:
        self.connect_ok = True
        self.play_ok = True
        self.listeners: list[int] = [42]
        self.channels: dict[int, int] = {}
        self.generations: dict[int, int] = {}
        self.played: list[TrackMetadata] = []
        self.calls: list[tuple[str, int]] = []
        self.callback = None

    @property
    def played_urls(self) -> list[str]:
        return [track.url for track in self.played]

    async def ensure_connected(self, guild_id, channel_id):
        self.calls.append(("ensure_connected", guild_id))
        if not self.connect_ok:
            return False
        self.channels[guild_id] = channel_id
        return True

    async def disconnect(self, guild_id):
        self.calls.append(("disconnect", guild_id))
        self.channels.pop(guild_id, None)
        return True

    async def play(self, guild_id, track, *, generation):
        self.calls.append(("play", guild_id))
        if not self.play_ok:
            return False
        self.played.append(track)
        self.generations[guild_id] = generation
        return True

    async def stop(self, guild_id):
        self.calls.append(("stop", guild_id))
        return True

    async def pause(self, guild_id):
        self.calls.append(("pause", guild_id))
        return True

    async def resume(self, guild_id):
        self.calls.append(("resume", guild_id))
        return True

    def is_connected(self, guild_id):
        return guild_id in self.channels

    def get_current_channel_id(self, guild_id):
        return self.channels.get(guild_id)

    async def get_listeners(self, guild_id):
        return list(self.listeners) if guild_id in self.channels else []

    def set_on_stream_end_callback(self, callback):
        self.callback = callback

    async def finish(self, guild_id: int = GUILD_ID, error: Exception | None = None) -> None:
        """Report the end of the most recently started stream."""
        await self.callback(guild_id, self.generations[guild_id], error)

    def count(self, name: str) -> int:
        return sum(1 for call, _ in self.calls if call == name)


class FakeMetadataProvider(MetadataProvider):
    """Resolves from dictionaries keyed by query, playlist id and track url."""

    def __init__(self) -> None:
        self.tracks: dict[str, TrackMetadata] = {}
        self.playlists: dict[str, list[TrackMetadata]] = {}
        self.streams: dict[str, str] = {}

    def add(self, name: str, duration: int | None = 180) -> TrackMetadata:
        track = make_track(name, duration=duration, stream=False)
        self.tracks[name] = track
        self.streams[track.url] = f"https://stream.example/{name}"
        return track

    async def resolve(self, query):
        return self.tracks.get(query)

    async def resolve_playlist(self, playlist_id):
        return list(self.playlists.get(playlist_id, []))

    async def resolve_stream(self, track):
        return self.streams.get(track.url)


class RecordingActivityDisplay(ActivityDisplay):
    def __init__(self) -> None:
        self.states: list[str] = []

    @property
    def last(self) -> str | None:
        return self.states[-1] if self.states else None

    async def set_default(self) -> None:
        self.states.append("default")

    async def set_music_playing(self) -> None:
        self.states.append("playing")


# ============================================================================
# Engine Fixtures
# ============================================================================


@pytest.fixture
def voice():
    """Create a fake voice adapter with one listener present."""
    return FakeVoiceAdapter()


@pytest.fixture
def provider():
    """Create an empty fake metadata provider."""
    return FakeMetadataProvider()


@pytest.fixture
def display():
    """Create a recording activity display."""
    return RecordingActivityDisplay()


@pytest.fixture
def queue():
    """Create an empty playback queue."""
    return PlaybackQueue()


@pytest.fixture
def session(voice, provider):
    """Create a playback session for GUILD_ID."""
    return PlaybackSession(guild_id=GUILD_ID, voice_adapter=voice, metadata_provider=provider)


@pytest.fixture
def orchestrator(voice, provider, display, queue, session):
    """Create an orchestrator whose stream ends flow back through its session."""
    orch = PlaybackOrchestrator(
        guild_id=GUILD_ID,
        queue=queue,
        session=session,
        metadata_provider=provider,
        activity_display=display,
        max_consecutive_failures=3,
    )

    async def route(guild_id, generation, error):
        await session.handle_stream_end(generation, error)

    voice.set_on_stream_end_callback(route)
    return orch
