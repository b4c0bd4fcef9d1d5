"""Pool data validation: flags pools whose stored data looks wrong.

Checks every v3 and v4 pool in the database for:
- token decimals that disagree with the known-token table
- swaps recorded with zero (or near-zero) volume on one side
- volume ratios that point at a decimals mismatch

Usage:
    python scripts/validate_pools.py
"""

import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from config.settings import settings  # noqa: E402
from src.db.database import async_session_factory, engine  # noqa: E402
from src.indexer.bootstrap import build_token_table  # noqa: E402
from src.indexer.sql_store import SqlEntityStore  # noqa: E402
from src.indexer.validation import PoolValidation, validate_stored_pools  # noqa: E402


def print_report(flagged: list[PoolValidation]) -> None:
    print("=" * 60)
    print("  POOL VALIDATION")
    print("=" * 60)
    if not flagged:
        print("\n  All pools look sane.")
    for result in flagged:
        print(f"\n  {result.label}  ({result.pool_id})")
        for issue in result.issues:
            print(f"    - {issue}")
    print("\n" + "=" * 60)


async def main() -> int:
    async with async_session_factory() as session:
        flagged = await validate_stored_pools(SqlEntityStore(session), build_token_table(settings))
    await engine.dispose()
    print_report(flagged)
    return 1 if flagged else 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
