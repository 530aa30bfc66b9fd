"""
Application-level configuration for Mingming Story.
"""

from .config import MingmingConfig, config

__all__ = ["config", "MingmingConfig"]
