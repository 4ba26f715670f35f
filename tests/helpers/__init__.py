"""Shared test helpers for light-http."""
