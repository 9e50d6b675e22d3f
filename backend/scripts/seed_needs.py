"""
Seed the needs taxonomy.

Usage:
    python -m scripts.seed_needs

Idempotent: categories and options are matched by slug, so re-running
updates names and order instead of duplicating rows.
"""

import asyncio
import logging
import sys

# Ensure the project root is on the path
sys.path.insert(0, ".")

from memberdir.core.database import async_session_factory, engine
from memberdir.services.taxonomy import DEFAULT_TAXONOMY, seed_taxonomy

logging.basicConfig(level=logging.INFO, format="%(message)s")


async def main() -> None:
    print("Seeding need categories and options...")

    async with async_session_factory() as session:
        result = await seed_taxonomy(session, DEFAULT_TAXONOMY)

    print()
    print(f"  Categories: {result.categories_created} created, {result.categories_updated} updated")
    print(f"  Options:    {result.options_created} created, {result.options_updated} updated")
    print()

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
