"""Core building blocks for light-http (supervisor, configuration, persistence)."""
