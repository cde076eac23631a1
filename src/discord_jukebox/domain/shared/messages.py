"""Centralized message constants for errors, log lines and user feedback."""

from __future__ import annotations


class ErrorMessages:
    """Error messages for exceptions and validation failures."""

    # Resolution Errors
    NO_SEARCH_RESULTS = "No results found for '{query}'"
    VIDEO_INFO_UNAVAILABLE = "Could not fetch video info for {url}"
    RESOLVED_WITHOUT_URL = "Resolved '{query}' but the result has no playable URL"
    SPOTIFY_NOT_CONFIGURED = "Spotify links are not supported: Spotify credentials are not configured"
    SPOTIFY_NOT_A_TRACK = "Only single Spotify tracks are supported"
    SPOTIFY_LOOKUP_FAILED = "Could not look up Spotify track {url}"
    NO_STRATEGY_MATCHED = "No resolver can handle '{query}'"
    LOOKUP_FAILED = "Could not look up '{query}', please try again later"
    PLAY_CANCELLED = "Playback was stopped before '{query}' could be queued"

    # Stream Errors
    NO_STREAM_URL = "No stream URL found for {url}"
    STREAM_OPEN_TIMEOUT = "Timed out opening a stream for {url}"

    # Player Errors
    PLAYER_NOT_CONNECTED = "Voice client is not connected"
    PLAYER_START_FAILED = "Could not start audio source: {error}"

    # Settings / Startup Errors
    INVALID_LOG_LEVEL = "Invalid log level: {level}. Must be one of {valid_levels}"
    DISCORD_TOKEN_REQUIRED = "DISCORD__TOKEN environment variable is required"
    BOT_NOT_INITIALIZED = "Bot not initialized. Call set_bot() first."
    CONTAINER_NOT_FOUND = "Container not found on bot instance"


class LogTemplates:
    """Log message templates.

    Pass values as logger arguments rather than formatting them in, so the
    logging framework only renders messages that are actually emitted.
    """

    # Cache Operations
    CACHE_HIT = "Metadata cache hit: %s"
    CACHE_CLEARED = "Dropped %d cached metadata entries"

    # Resolution
    RESOLVER_SELECTED = "Resolving %r with %s"
    RESOLVER_FAILED = "Failed to resolve %r: %s"
    RESOLVER_UNEXPECTED_ERROR = "Unexpected error resolving %r"
    SPOTIFY_BRIDGED = "Bridged Spotify track %s to search %r"
    SPOTIFY_LOOKUP_FAILED = "Spotify lookup failed for %s: %s"
    YTDLP_FAILED_EXTRACT_INFO = "Failed to extract info from %s"
    YTDLP_FAILED_SEARCH = "Failed to search for %r"
    YTDLP_NO_STREAM_URL = "No stream URL found for %s"

    # Voice/Audio Operations
    VOICE_CONNECTED = "Connected to voice channel %s in guild %s"
    VOICE_DISCONNECTED = "Disconnected from voice in guild %s"
    VOICE_CONNECTION_TIMEOUT = "Timeout connecting to channel %s"
    VOICE_NO_PERMISSION = "No permission to connect to channel %s"
    VOICE_CLIENT_ERROR = "Client error connecting: %r"
    VOICE_DISCONNECT_ERROR = "Error disconnecting voice in guild %s"
    VOICE_LOST = "Bot was disconnected from voice in guild %s"
    VOICE_DISCONNECT_STALE = "Ignoring stale voice disconnect in guild %s (channel %s)"

    # Stream Operations
    STREAM_OPENED = "Opened stream for %s (codec=%s)"
    STREAM_OPEN_FAILED = "Failed to open stream for %s: %s"

    # Playback Operations
    PLAYBACK_STARTED = "Started playing '%s' in guild %s"
    PLAYBACK_PAUSED = "Paused playback in guild %s"
    PLAYBACK_RESUMED = "Resumed playback in guild %s"
    PLAYBACK_SKIPPED = "Skipped '%s' in guild %s"
    PLAYBACK_TRACK_ERROR = "Player error for '%s' in guild %s: %s"
    PLAYBACK_BIND_FAILED = "Could not start '%s' in guild %s: %s"
    PLAYBACK_FAILURE_LIMIT = "Giving up after %d consecutive failures in guild %s"
    PLAYBACK_STALE_SIGNAL = "Ignoring stale player signal in guild %s (generation %s)"
    PLAYBACK_END_CALLBACK_ERROR = "Error in track end callback for guild %s"

    # Queue Operations
    QUEUE_ENQUEUED = "Enqueued '%s' at position %s in guild %s"
    QUEUE_EXHAUSTED = "Queue exhausted in guild %s"
    QUEUE_CLOSED = "Closed queue for guild %s (%d songs dropped)"
    QUEUE_CREATED = "Created queue for guild %s"
    QUEUE_REMOVED = "Removed queue for guild %s"
    QUEUE_CLOSED_RETRY = "Queue for guild %s closed while enqueueing, retrying"
    RESOLUTION_CANCELLED = "Cancelled %d pending lookup(s) in guild %s"

    # Event Bus
    EVENT_HANDLER_ERROR = "Error in handler for %s"
    EVENT_NOTIFY_FAILED = "Failed to send %s notification in guild %s"

    # Application Lifecycle
    LOGGING_CONFIG_FALLBACK = "Could not load %s, falling back to basic config"
    BOT_STARTING = "Starting Discord Jukebox in %s mode"
    BOT_SETUP = "Running setup hook"
    BOT_SETUP_COMPLETE = "Setup hook finished"
    BOT_STARTING_RUN = "Connecting to Discord..."
    BOT_CONTAINER_INITIALIZED = "Container initialized"
    BOT_CONTAINER_INIT_FAILED = "Container wiring failed: %s"
    BOT_SYNC_ON_STARTUP_FAILED = "Command sync on startup failed: %s"
    BOT_COGS_LOADED_SUMMARY = "Cogs loaded: %d ok, %d failed"
    BOT_SHUTDOWN_TIMEOUT = "Graceful shutdown did not finish within %.0fs"
    BOT_SHUTDOWN_COMPLETE = "Shutdown complete"
    BOT_STOPPED = "Jukebox exited cleanly"
    BOT_KEYBOARD_INTERRUPT = "Interrupted, exiting"
    BOT_FATAL_ERROR = "Jukebox crashed: %s"
    BOT_SHUTTING_DOWN = "Closing: stopping guild queues"
    BOT_CONTAINER_SHUTDOWN = "All guild queues closed"
    BOT_CONTAINER_SHUTDOWN_ERROR = "Closing guild queues failed: %s"
    BOT_READY = "Logged in as %s (id %s)"
    BOT_CONNECTED_GUILDS = "Present in %s guild(s)"
    BOT_COG_LOADED = "Extension loaded: %s"
    BOT_COG_LOAD_FAILED = "Extension %s failed to load: %s"
    BOT_SYNCED_GUILD = "%s slash command(s) synced to guild %s"
    BOT_SYNC_GUILD_FAILED = "Slash command sync to guild %s failed: %s"
    BOT_SYNCED_GLOBAL = "%s slash command(s) synced globally"
    BOT_SYNC_GLOBAL_FAILED = "Global slash command sync failed: %s"
    BOT_SLASH_COMMAND_ERROR = "/%s raised: %s"
    BOT_ERROR_MESSAGE_SEND_FAILED = "Failed to send error message to user"


class DiscordUIMessages:
    """User-facing Discord messages and embed text."""

    # Command replies
    ACTION_SKIPPED = "⏭️ Skipped!"
    ACTION_STOPPED = "⏹️ Stopped and cleared the queue!"
    ACTION_PAUSED = "⏸️ Paused!"
    ACTION_RESUMED = "▶️ Resumed!"
    STATE_NOTHING_PLAYING = "Nothing is playing!"
    STATE_QUEUE_EMPTY = "The queue is empty!"
    STATE_NOT_IN_VOICE = "You need to be in a voice channel!"
    STATE_SERVER_ONLY = "This command can only be used in a server."

    # Errors
    ERROR_TRACK_NOT_FOUND = "❌ {reason}"
    ERROR_COMMAND_FAILED_SEE_LOGS = "❌ Command failed. See logs."
    ERROR_PLAYBACK_ABANDONED = "❌ {message}"

    # Embeds
    EMBED_ADDED_TO_QUEUE = "Added to Queue"
    EMBED_NOW_PLAYING = "Now Playing"
    EMBED_QUEUE = "Music Queue"
    EMBED_HELP = "Music Bot Commands"
    EMBED_HELP_DESCRIPTION = "Here are all the available commands:"
    EMBED_HELP_FOOTER = "Supports YouTube links, Spotify track links and search queries"
    FIELD_DURATION = "Duration"
    FIELD_POSITION = "Position"
    FOOTER_REQUESTED_BY = "Requested by {requester}"
    QUEUE_ENTRY_LINE = "{index}. [{title}]({url}) - {duration}"
    QUEUE_MORE_LINE = "And {count} more..."

    HELP_COMMANDS: tuple[tuple[str, str], ...] = (
        ("/play <query>", "Play a song from YouTube, Spotify or a search query"),
        ("/skip", "Skip the current song"),
        ("/stop", "Stop music and clear the queue"),
        ("/queue", "Show the current queue"),
        ("/nowplaying", "Show the current song"),
        ("/pause", "Pause the current song"),
        ("/resume", "Resume playback"),
        ("/help", "Show this help message"),
    )
