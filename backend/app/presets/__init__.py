"""Saved text presets for registered users."""
