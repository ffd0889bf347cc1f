"""
Channel configuration tree module
"""

from .channel import Channel, ErrorFlag
from .config_node import ConfigNode, ConfigTree, NodeKind, SourceType
from .registry import ConfigRegistry

__all__ = ["Channel", "ConfigNode", "ConfigRegistry", "ConfigTree", "ErrorFlag", "NodeKind", "SourceType"]
