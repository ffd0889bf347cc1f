"""
Block-list filter configuration
Segment categories a channel asks the downloader to cut out
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional


# (config field, category name) in the order categories are reported
CATEGORY_FIELDS = [
    ("skipSponsor", "sponsor"),
    ("skipIntro", "intro"),
    ("skipOutro", "outro"),
    ("skipSelfPromo", "selfpromo"),
    ("skipPreview", "preview"),
    ("skipInteraction", "interaction"),
    ("skipMusicOffTopic", "music_offtopic"),
]


@dataclass(frozen=True)
class BlockFilterConfig:
    """Block-list filter settings attached to a channel entry or the whole run."""
    enabled: bool = True
    force_globally: bool = False
    override_global: bool = False
    skip_all: bool = False
    categories: tuple = ()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BlockFilterConfig":
        """Parse the nested `sponsorBlock` mapping of a channel entry."""
        return cls(
            enabled=bool(data.get("enabled", True)),
            force_globally=bool(data.get("forceGlobally", False)),
            override_global=bool(data.get("overrideGlobal", False)),
            skip_all=bool(data.get("skipAll", False)),
            categories=tuple(name for key, name in CATEGORY_FIELDS if data.get(key, False))
        )

    def is_active(self) -> bool:
        return self.enabled and (self.skip_all or bool(self.categories))

    def get_categories(self) -> List[str]:
        return ["all"] if self.skip_all else list(self.categories)


def select_config(
    channel_config: Optional[BlockFilterConfig],
    global_config: Optional[BlockFilterConfig]
) -> Optional[BlockFilterConfig]:
    """
    Picks the filter config that applies to a channel.

    The global config wins when the channel has no enabled config, or when
    it is forced globally and the channel does not override it.
    """
    channel_valid = channel_config is not None and channel_config.enabled
    global_valid = global_config is not None and global_config.enabled

    if not channel_valid and not global_valid:
        return None

    use_global = global_valid and (
        not channel_valid or (global_config.force_globally and not channel_config.override_global)
    )
    chosen = global_config if use_global else channel_config
    return chosen if chosen.is_active() else None
