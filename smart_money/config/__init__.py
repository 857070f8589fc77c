"""Configuration module."""

from .settings import Settings, get_settings
from .thresholds import ThresholdConfig

__all__ = ["Settings", "get_settings", "ThresholdConfig"]
