"""Shared helpers and deterministic export filenames."""
