"""Manage the persisted server list."""
