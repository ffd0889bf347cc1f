"""
Tests for the run context and the pipeline entry points.
"""

import threading
from pathlib import Path

import pytest

from archive_pipeline.core.channels import ErrorFlag
from archive_pipeline.core.config import AppConfig, ChannelFilter, Locations
from archive_pipeline.core.context import ArchiveContext
from archive_pipeline.core.errors import StateIOError
from archive_pipeline.main import main, parse_args


DOCUMENT = """[
    // archive
    {"key": "music", "outputFolder": "Music", "saveAsAudio": true, "channels": [
        {"key": "artist", "source": "UC1", "outputFolder": "~/Artist"}
    ]},
    {"key": "news", "source": "PL1", "outputFolder": "News"}
]"""


@pytest.fixture
def context(tmp_path: Path) -> ArchiveContext:
    config = AppConfig(
        data_dir="data",
        log_dir="logs",
        locations=Locations(video_dir="/videos", music_dir="/music")
    )
    return ArchiveContext(config, tmp_path)


class TestArchiveContext:
    """Test the lifecycle of a run."""

    def test_start_loads_tree_and_seeds_key_store(self, context, tmp_path):
        context.start(DOCUMENT)

        assert context.storage.data_path == (tmp_path / "data").resolve()
        assert [c.key for c in context.selected_channels()] == ["artist", "news"]
        assert context.key_store.get("Artist") == {}
        assert context.key_store.get("News") == {}

    def test_output_locations(self, context):
        context.start(DOCUMENT)

        artist = context.registry.channel("artist")
        news = context.registry.channel("news")
        assert artist.output_location(context.config.locations) == Path("/music/Music/Artist")
        assert news.output_location(context.config.locations) == Path("/videos/News")

    def test_channel_round_trip(self, context):
        context.start(DOCUMENT)
        channel = context.registry.channel("news")

        context.load_channel(channel)
        channel.state.saved.add("v1")
        context.key_store.put(channel.name, "v1", "Video One.mp4")
        context.save_channel(channel)
        context.shutdown()

        assert channel.state.saved.path.read_text(encoding="utf-8") == "v1\n"
        assert context.key_store.path.read_text(encoding="utf-8") == "News|v1|Video One.mp4\n"

    def test_load_failure_sets_error_flag(self, context):
        context.start(DOCUMENT)
        channel = context.registry.channel("news")
        channel.state.saved.path.mkdir(parents=True)

        with pytest.raises(StateIOError):
            context.load_channel(channel)

        assert channel.error.is_set()

    def test_selection_uses_configured_filter(self, tmp_path):
        config = AppConfig(data_dir="data", channel_filter=ChannelFilter(group="music"))
        context = ArchiveContext(config, tmp_path)

        context.start(DOCUMENT)

        assert [c.key for c in context.selected_channels()] == ["artist"]

    def test_start_reads_channels_file(self, tmp_path):
        (tmp_path / "channels.json").write_text(DOCUMENT, encoding="utf-8")
        context = ArchiveContext(AppConfig(data_dir="data"), tmp_path)

        context.start()

        assert context.registry.channel("artist") is not None


class TestErrorFlag:
    """Test the per-channel failure flag."""

    def test_set_from_threads(self):
        flag = ErrorFlag()
        threads = [threading.Thread(target=flag.set) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert flag.is_set()

    def test_compare_and_set(self):
        flag = ErrorFlag()

        assert flag.compare_and_set(False, True) is True
        assert flag.compare_and_set(False, True) is False
        flag.clear()
        assert not flag.is_set()


class TestMain:
    """Test the command line entry point."""

    def test_parse_args(self):
        args = parse_args(["--config", "c.yaml", "--group", "music", "--start-at", "a"])

        assert args.config == Path("c.yaml")
        assert args.group == "music"
        assert args.start_at == "a"
        assert args.refresh is False

    def test_main_processes_selected_channels(self, tmp_path):
        (tmp_path / "channels.json").write_text(DOCUMENT, encoding="utf-8")
        (tmp_path / "config.yaml").write_text("storage:\n  data_dir: data\n", encoding="utf-8")
        queue_file = tmp_path / "data" / "channel" / "News" / "News-queue.txt"
        queue_file.parent.mkdir(parents=True)
        queue_file.write_text("v1\nv1\n\nv2\n", encoding="utf-8")

        main(["--config", str(tmp_path / "config.yaml"), "--channel", "news"])

        assert queue_file.read_text(encoding="utf-8") == "v1\nv2\n"
        assert (tmp_path / "data" / "keyStore.txt").exists()
        assert not (tmp_path / "data" / "channel" / "Artist").exists()
