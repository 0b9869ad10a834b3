"""Centralized message constants for error messages, log templates, and user feedback."""

from __future__ import annotations


class ErrorMessages:
    """Error messages for exceptions and validation failures."""

    # Removal argument errors
    EMPTY_REMOVAL_SPEC = "Removal position cannot be empty"
    REMOVAL_POSITION_NOT_POSITIVE = "Queue positions start at 1"

    # Settings Validation Errors
    INVALID_LOG_LEVEL = "Invalid log level: {level}. Must be one of {valid_levels}"

    # Audio/Stream Errors
    NO_URL_IN_INFO_DICT = "No URL found in info dict"

    # Session Errors
    SESSION_NOT_BOUND = "Session is not bound to a voice channel"

    # Wiring Errors
    BOT_NOT_INITIALIZED = "Bot not initialized. Call set_bot() first."


class LogTemplates:
    """Log message templates for structured logging.

    Use these with logger.info(), logger.error(), etc. and pass values as parameters
    for proper log formatting and structured logging support.
    """

    # Queue Operations
    QUEUE_ENQUEUED = "Queued %d track(s) in guild %s, %d pending"
    QUEUE_REMOVED = "%s removed %d song(s) in guild %s"
    QUEUE_SHUFFLED = "%s shuffled the queue in guild %s"
    QUEUE_EMPTY = "Queue exhausted in guild %s"
    SONG_LOOP_CHANGED = "%s %s looping the current song in guild %s"
    QUEUE_LOOP_CHANGED = "%s %s looping the queue in guild %s"

    # Track Lifecycle
    TRACK_STARTED = "Started playing %s in guild %s"
    TRACK_ENDED = "Stream ended in guild %s (generation %d, error=%s)"
    TRACK_SKIPPED = "%s skipped %s in guild %s"
    TRACK_REPLAYED = "%s replayed %s in guild %s"
    TRACK_FAILED = "Could not play %s in guild %s: %s"
    TRACK_RESOLVING_STREAM = "Resolving stream URL for %s"
    PLAYLIST_IMPORTED = "%s imported a playlist of %d song(s) in guild %s"

    # Playback Control
    PLAYBACK_STOPPED = "%s stopped playback in guild %s"
    PLAYBACK_PAUSED = "Playback paused in guild %s"
    PLAYBACK_RESUMED = "Playback resumed in guild %s"
    PLAYBACK_NO_LISTENERS = "No listeners left in guild %s, stopping"
    PLAYBACK_FAILURES_EXHAUSTED = "Gave up after %d consecutive failures in guild %s"

    # Session / stream-end bookkeeping
    SESSION_STALE_REQUEST = "Discarding stale play request %d in guild %s (current %d)"
    SESSION_IGNORING_STREAM_END = "Ignoring end signal for generation %d in guild %s (live %s)"
    SESSION_CALLBACK_ERROR = "Error delivering stream end in guild %s: %s"
    SESSION_CREATED = "Created playback context for guild %s"
    SESSION_DISCARDED = "Discarded playback context for guild %s"

    # Voice Connection
    VOICE_CONNECTED = "Connected to voice channel %s in guild %s"
    VOICE_DISCONNECTED = "Disconnected from voice in guild %s"
    VOICE_MOVED = "Moved to voice channel %s"
    VOICE_CONNECTION_TIMEOUT = "Timed out connecting to voice channel %s"
    VOICE_NO_PERMISSION = "No permission to join voice channel %s"
    VOICE_CLIENT_ERROR = "Voice client error: %s"
    VOICE_NOT_CONNECTED = "Not connected to voice in guild %s"
    VOICE_STALE_CLEANUP = "Cleaning up stale voice client in guild %s"
    VOICE_SELF_DEAFEN_FAILED = "Could not self-deafen in guild %s: %s"
    VOICE_CONNECT_FAILED = "Failed to connect to voice channel %s"
    VOICE_DISCONNECT_FAILED = "Failed to disconnect from voice in guild %s"
    VOICE_STREAM_STARTED = "Streaming %s in guild %s (generation %d)"
    VOICE_STREAM_FAILED = "Failed to start stream in guild %s: %s"
    VOICE_NO_STREAM_END_CALLBACK = "Stream ended in guild %s but no callback is registered"
    VOICE_STREAM_END_CALLBACK_FAILED = "Stream-end callback failed in guild %s (generation %d)"
    GUILD_NOT_FOUND = "Guild %s not found"
    CHANNEL_NOT_VOICE = "Channel %s is not a voice channel"
    PLAYBACK_ERROR = "Player error in guild %s: %s"

    # yt-dlp
    YTDLP_FAILED_EXTRACT_INFO = "Failed to extract info for %s"
    YTDLP_FAILED_SEARCH = "Failed to search for %s"
    YTDLP_FAILED_EXTRACT_PLAYLIST = "Failed to extract playlist %s"
    YTDLP_NO_STREAM_URL = "No stream URL found for %s"
    CACHE_HIT_URL = "Cache hit for %s"

    # Collaborators
    REPLY_FAILED = "Failed to send reply: %s"
    DELETE_FAILED = "Failed to delete message: %s"
    ACTIVITY_UPDATE_FAILED = "Failed to update activity display: %s"
    COMMAND_FAILED = "Unhandled error while handling %s in guild %s"

    # Extension lifecycle
    EXTENSION_LOADED = "Music engine loaded (environment=%s)"
    EXTENSION_UNLOADED = "Music engine unloaded, %d session(s) stopped"
    LISTENER_UPDATE_FAILED = "Failed to handle voice state update in guild %s"


class ReplyMessages:
    """User-facing reply texts."""

    # Queueing
    QUEUED = ":musical_note: Queued: ***{title}*** at ***{url}***"
    QUEUED_URL_ONLY = ":musical_note: Queued: ***{url}***"
    PLAYLIST_STARTED = "You started playing a YouTube Playlist!"
    PLAYLIST_QUEUED = "Queued {count} songs from the playlist."
    PLAYLIST_EMPTY = "That playlist has no playable songs."

    # Playback control
    SKIPPED = "You skipped a song!"
    STOPPED = "Bye Bye :smiling_face_with_tear:"
    PAUSED = "You paused the music."
    RESUMED = "You resumed the music."
    REPLAYED = "You replayed a song!"
    NOTHING_TO_REPLAY = "It seems there is no song to replay."

    # Loop / shuffle
    SONG_LOOP_ON = "You started looping the current song!"
    SONG_LOOP_OFF = "You stopped looping the current song!"
    QUEUE_LOOP_ON = "You started looping the queue!"
    QUEUE_LOOP_OFF = "You stopped looping the queue!"
    SHUFFLED = "You shuffled the music."
    NOTHING_TO_SHUFFLE = "There are not enough songs in the queue to shuffle."

    # Removal
    REMOVED_HEADER = "***Removed {count} songs:***"
    INVALID_REMOVE = "Give a queue position like `3` or a range like `2-4`."

    # Info
    CURRENT_SONG = "Current song: ***{title}*** at ***{url}***"
    QUEUE_CURRENT = "***Current song: *** {title}"
    QUEUE_HEADER = "***The queue has {count} songs:***"
    QUEUE_EMPTY = "The queue is empty."
    QUEUE_TOTAL = "Total length: {duration}"
    QUEUE_LOOPING = "Looping: {modes}"
    TRACK_LINE = "{position}. {title} at {url}"

    # Errors
    NOT_PLAYING = "Not playing a song currently!"
    NOT_IN_VOICE = "You need to be in a channel to execute this command!"
    NO_PERMISSION = "You don't have the correct permissions"
    RESOLUTION_FAILED = "No video results found."
    CONNECT_FAILED = "I couldn't join your voice channel."
    STREAM_FAILED = "I couldn't play that song."
    GENERIC_FAILURE = "There was an error trying to execute that command!"
    SERVER_ONLY = "Music commands only work inside a server."
