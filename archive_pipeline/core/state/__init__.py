"""
Persisted channel state module
"""

from .channel_state import ChannelState
from .key_store import KeyStore
from .state_list import StateList

__all__ = ["ChannelState", "KeyStore", "StateList"]
