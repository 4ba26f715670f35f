"""Inspect the layered configuration."""
