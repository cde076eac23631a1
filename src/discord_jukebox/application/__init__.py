"""Application layer: ports and the services that drive guild playback."""
