#!/usr/bin/env python3
"""
Print the daily digest of a vault without running the API service.

Loads the persisted index (or builds it), optionally forces a full reindex,
then prints the notes worth revisiting today.
"""

import asyncio
import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

# Same configuration sources as the service
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))
load_dotenv(project_root / ".env.local")

from vault_recall.embeddings.engine import IndexEngine
from vault_recall.indexer import IndexService
from vault_recall.resurfacer.resurfacer import Resurfacer
from vault_recall.storage import VaultStorage


async def print_digest(vault_path: str, count: int, reindex: bool) -> None:
    """
    Build or load the index of a vault and print its daily digest.

    Args:
        vault_path: Vault root directory
        count: Number of notes to show
        reindex: Force a full rebuild instead of using the snapshot
    """
    excluded = [f.strip() for f in os.getenv("EXCLUDED_FOLDERS", "").split(",") if f.strip()]
    storage = VaultStorage(vault_path, excluded_folders=excluded)
    engine = IndexEngine()
    service = IndexService(engine, storage)

    if reindex:
        indexed = await service.rebuild()
        print(f"Reindexed {indexed} notes")
    else:
        await service.initialize()

    if not engine.is_ready():
        print("Nothing to index: no markdown notes found", file=sys.stderr)
        sys.exit(1)

    resurfacer = Resurfacer(engine, storage, min_days_old=float(os.getenv("MIN_DAYS_OLD", "7")))
    digest = resurfacer.daily_digest(count)

    print("\nDaily Digest:")
    print("=" * 80)
    if not digest:
        print("No forgotten notes to resurface.")
    for entry in digest:
        print(f"{entry.score:.3f}  {entry.note_id}  ({entry.days_since_modified}d)")
        print(f"       {entry.reason}")
        preview = await storage.read_snippet(entry.note_id)
        if preview:
            print(f"       {preview}")
    print("=" * 80)


def main():
    """Main entry point."""
    args = [a for a in sys.argv[1:] if a != "--reindex"]
    if not args:
        print("Usage:")
        print("  python scripts/vault_digest.py <vault_path> [count] [--reindex]")
        print("\nExamples:")
        print("  python scripts/vault_digest.py ~/notes")
        print("  python scripts/vault_digest.py ~/notes 10 --reindex")
        sys.exit(1)

    logging.basicConfig(level=logging.WARNING, format="%(levelname)s: %(message)s")
    count = int(args[1]) if len(args) > 1 else int(os.getenv("DIGEST_COUNT", "5"))
    asyncio.run(print_digest(args[0], count, reindex="--reindex" in sys.argv))


if __name__ == "__main__":
    main()
