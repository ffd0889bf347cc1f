"""
Channel Archive Pipeline - State Report
Utility to summarize the persisted state of every registered channel.
"""

import argparse
import logging
from pathlib import Path

import pandas as pd

from archive_pipeline.core.config import ConfigLoader
from archive_pipeline.core.context import ArchiveContext
from shared.storage.storage_manager import StorageManager

REPORT_COLUMNS = ["key", "name", "group", "active", "queued", "saved", "blocked", "keys", "data_files"]


def _count_lines(path: Path) -> int:
    if not path.exists():
        return 0
    return sum(1 for line in StorageManager.read_lines(path) if line.strip())


def build_state_report(context: ArchiveContext) -> pd.DataFrame:
    """One row per registered channel with the size of each persisted list."""
    rows = []
    for channel in context.registry.channels():
        state = channel.state
        rows.append({
            "key": channel.canonical_key,
            "name": channel.name,
            "group": channel.effective("group") or "",
            "active": channel.is_enabled(),
            "queued": _count_lines(state.queued.path),
            "saved": _count_lines(state.saved.path),
            "blocked": _count_lines(state.blocked.path),
            "keys": len(context.key_store.get(channel.name)),
            "data_files": len(state.get_data_files()),
        })
    return pd.DataFrame(rows, columns=REPORT_COLUMNS)


def generate_report(config_path: Path) -> pd.DataFrame:
    config = ConfigLoader(config_path).load()
    context = ArchiveContext(config, config_path.resolve().parent)
    context.start()

    df = build_state_report(context)

    print("="*60)
    print("      CHANNEL ARCHIVE PIPELINE - STATE REPORT")
    print("="*60)
    if df.empty:
        print("No channels registered.")
    else:
        print(df.to_string(index=False))
        print("-"*60)
        print(f"📥 Saved:    {df['saved'].sum()} items across {len(df)} channels")
        print(f"⏳ Queued:   {df['queued'].sum()} items")
        print(f"🚫 Blocked:  {df['blocked'].sum()} items")

    output_path = context.storage.logs_path / "state_report.csv"
    df.to_csv(output_path, index=False, encoding='utf-8')
    print("="*60)
    print(f"Report:             {output_path}")
    print("="*60)
    return df


if __name__ == "__main__":
    logging.basicConfig(level=logging.WARNING)
    parser = argparse.ArgumentParser(description="Channel Archive Pipeline - State Report")
    parser.add_argument("--config", type=Path, default=Path("config.yaml"))
    generate_report(parser.parse_args().config)
