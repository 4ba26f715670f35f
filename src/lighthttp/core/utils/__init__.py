"""Shared utilities for light-http (file I/O, dictionary merging, text helpers)."""
