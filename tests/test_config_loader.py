"""
Tests for the YAML run settings loader and block-list filter config.
"""

from pathlib import Path

import pytest

from archive_pipeline.core.config import BlockFilterConfig, ConfigLoader
from archive_pipeline.core.config.block_filter import select_config
from archive_pipeline.core.errors import SettingsError


def write_config(tmp_path: Path, content: str) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(content, encoding="utf-8")
    return path


class TestConfigLoader:
    """Test loading config.yaml."""

    def test_full_config(self, tmp_path):
        path = write_config(tmp_path, """
channels_file: my_channels.json
storage:
  data_dir: ./state
locations:
  storage_drive: /mnt/d
  video_dir: /mnt/d/Videos
filter:
  group: music
  channel_list: [a, b]
  start_at: a
prevent_channel_fetch: true
sponsorBlock:
  skipIntro: true
""")

        config = ConfigLoader(path).load()

        assert config.channels_file == "my_channels.json"
        assert config.data_dir == "./state"
        assert config.log_dir == "./logs"
        assert config.locations.storage_drive == "/mnt/d"
        assert config.locations.music_dir is None
        assert config.channel_filter.group == "music"
        assert config.channel_filter.channel_list == ["a", "b"]
        assert config.channel_filter.start_at == "a"
        assert config.channel_filter.stop_at is None
        assert config.prevent_channel_fetch is True
        assert config.print_channels is False
        assert config.block_filter.get_categories() == ["intro"]

    def test_empty_file_uses_defaults(self, tmp_path):
        config = ConfigLoader(write_config(tmp_path, "")).load()

        assert config.channels_file == "channels.json"
        assert config.channel_filter.enable_filtering is True
        assert config.block_filter is None

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            ConfigLoader(tmp_path / "missing.yaml").load()

    def test_invalid_yaml(self, tmp_path):
        with pytest.raises(SettingsError):
            ConfigLoader(write_config(tmp_path, "filter: [unclosed")).load()

    def test_non_mapping(self, tmp_path):
        with pytest.raises(SettingsError):
            ConfigLoader(write_config(tmp_path, "- a\n- b\n")).load()

    def test_wrong_types(self, tmp_path):
        with pytest.raises(SettingsError):
            ConfigLoader(write_config(tmp_path, "prevent_channel_fetch: maybe\n")).load()
        with pytest.raises(SettingsError):
            ConfigLoader(write_config(tmp_path, "filter:\n  group_list: music\n")).load()

    def test_with_overrides(self, tmp_path):
        config = ConfigLoader(write_config(tmp_path, "print_channels: false\n")).load()

        overridden = config.with_overrides(print_channels=True)

        assert overridden.print_channels is True
        assert overridden.channel_filter == config.channel_filter


class TestBlockFilterConfig:
    """Test choosing between channel and run-wide block-list filters."""

    def test_categories(self):
        config = BlockFilterConfig.from_dict({"skipSponsor": True, "skipOutro": True})

        assert config.is_active()
        assert config.get_categories() == ["sponsor", "outro"]

    def test_skip_all(self):
        assert BlockFilterConfig.from_dict({"skipAll": True}).get_categories() == ["all"]

    def test_inactive_without_categories(self):
        assert not BlockFilterConfig.from_dict({}).is_active()

    def test_channel_config_preferred(self):
        channel = BlockFilterConfig.from_dict({"skipIntro": True})
        global_config = BlockFilterConfig.from_dict({"skipSponsor": True})

        assert select_config(channel, global_config) is channel

    def test_forced_global_config(self):
        channel = BlockFilterConfig.from_dict({"skipIntro": True})
        global_config = BlockFilterConfig.from_dict({"skipSponsor": True, "forceGlobally": True})
        overriding = BlockFilterConfig.from_dict({"skipIntro": True, "overrideGlobal": True})

        assert select_config(channel, global_config) is global_config
        assert select_config(overriding, global_config) is overriding

    def test_disabled_configs(self):
        disabled = BlockFilterConfig.from_dict({"enabled": False, "skipAll": True})

        assert select_config(disabled, None) is None
        assert select_config(None, None) is None
