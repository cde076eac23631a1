"""Infrastructure adapters: yt-dlp, Spotify and Discord voice."""
