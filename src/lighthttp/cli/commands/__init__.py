"""Top-level commands (no domain prefix)."""
