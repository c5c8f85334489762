"""Background cleanup of guest uploads older than 24 hours."""

from .sweeper import CleanupSweeper

__all__ = ["CleanupSweeper"]
