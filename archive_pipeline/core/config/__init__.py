"""
Run settings module for the Channel Archive Pipeline
"""

from .app_config import AppConfig, ChannelFilter, Locations
from .block_filter import BlockFilterConfig
from .config_loader import ConfigLoader

__all__ = ["AppConfig", "BlockFilterConfig", "ChannelFilter", "ConfigLoader", "Locations"]
