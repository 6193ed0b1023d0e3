"""Shared frame, clock, palette and config types."""
