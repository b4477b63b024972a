"""Signal processing helpers for the noise monitor."""

from nightshield.processing.level import LevelWindow, compute_level_db, max_buffer_samples

__all__ = ["LevelWindow", "compute_level_db", "max_buffer_samples"]
