"""Shared field types."""
