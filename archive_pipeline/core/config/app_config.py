"""
Application Configuration Model
Represents a validated run settings state
"""

from dataclasses import dataclass, field
from typing import List, Optional

from .block_filter import BlockFilterConfig


@dataclass(frozen=True)
class Locations:
    """
    Process-wide locations that channel output folders are resolved against.

    `${D}`, `${V}` and `${M}` in an output folder are replaced by the
    storage drive, video directory and music directory respectively.
    """
    storage_drive: Optional[str] = None
    video_dir: Optional[str] = None
    music_dir: Optional[str] = None


@dataclass(frozen=True)
class ChannelFilter:
    """Criteria selecting which channels take part in a run."""
    enable_filtering: bool = True
    channel: Optional[str] = None
    channel_list: List[str] = field(default_factory=list)
    group: Optional[str] = None
    group_list: List[str] = field(default_factory=list)
    start_at: Optional[str] = None
    stop_at: Optional[str] = None


class AppConfig:
    """
    Immutable settings object for the Channel Archive Pipeline.

    Represents a VALID configuration state only.
    All validation must be performed before instantiation.
    """

    def __init__(
        self,
        channels_file: str = "channels.json",
        data_dir: str = "./data",
        log_dir: str = "./logs",
        locations: Optional[Locations] = None,
        channel_filter: Optional[ChannelFilter] = None,
        prevent_channel_fetch: bool = False,
        print_channels: bool = False,
        block_filter: Optional[BlockFilterConfig] = None
    ):
        """
        Initialize AppConfig with validated values.

        Args:
            channels_file: Path of the hierarchical channel document
            data_dir: Root directory for channel state and the key store
            log_dir: Directory for run logs
            locations: Storage drive / video / music directories
            channel_filter: Channel selection criteria for the run
            prevent_channel_fetch: Keep cached channel data instead of refetching
            print_channels: Log the channel tree after loading
            block_filter: Run-wide block-list filter config
        """
        self._channels_file = channels_file
        self._data_dir = data_dir
        self._log_dir = log_dir
        self._locations = locations or Locations()
        self._channel_filter = channel_filter or ChannelFilter()
        self._prevent_channel_fetch = prevent_channel_fetch
        self._print_channels = print_channels
        self._block_filter = block_filter

    @property
    def channels_file(self) -> str:
        """Path of the channel document."""
        return self._channels_file

    @property
    def data_dir(self) -> str:
        """Root directory for persisted state."""
        return self._data_dir

    @property
    def log_dir(self) -> str:
        """Directory for run logs."""
        return self._log_dir

    @property
    def locations(self) -> Locations:
        """Global output locations."""
        return self._locations

    @property
    def channel_filter(self) -> ChannelFilter:
        """Channel selection criteria."""
        return self._channel_filter

    @property
    def prevent_channel_fetch(self) -> bool:
        """Whether cached channel data must be kept."""
        return self._prevent_channel_fetch

    @property
    def print_channels(self) -> bool:
        """Whether to log the channel tree."""
        return self._print_channels

    @property
    def block_filter(self) -> Optional[BlockFilterConfig]:
        """Run-wide block-list filter config."""
        return self._block_filter

    def with_overrides(
        self,
        channel_filter: Optional[ChannelFilter] = None,
        print_channels: Optional[bool] = None
    ) -> "AppConfig":
        """Returns a copy of these settings with command line overrides applied."""
        return AppConfig(
            channels_file=self._channels_file,
            data_dir=self._data_dir,
            log_dir=self._log_dir,
            locations=self._locations,
            channel_filter=channel_filter or self._channel_filter,
            prevent_channel_fetch=self._prevent_channel_fetch,
            print_channels=self._print_channels if print_channels is None else print_channels,
            block_filter=self._block_filter
        )

    def __repr__(self) -> str:
        """String representation for debugging."""
        return (
            f"AppConfig(channels_file={self.channels_file!r}, "
            f"data_dir={self.data_dir!r}, "
            f"filter={self.channel_filter!r})"
        )
