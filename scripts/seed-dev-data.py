"""Seed development work items into stage_table.

Usage:
    python scripts/seed-dev-data.py

Requires:
    - Database running (default: localhost:5432)
    - Migration applied (alembic upgrade head)
"""

from __future__ import annotations

import asyncio
import os
import sys

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


SAMPLE_ITEMS = [
    {
        "file_name": "daily/shakespeare_word_counts.csv",
        "source_query": (
            "SELECT word, SUM(word_count) AS total\n"
            "FROM `bigquery-public-data.samples.shakespeare`\n"
            "GROUP BY word\n"
            "ORDER BY total DESC\n"
            "LIMIT 100"
        ),
    },
    {
        "file_name": "daily/usa_names_2010.csv",
        "source_query": (
            "SELECT name, gender, SUM(number) AS total\n"
            "FROM `bigquery-public-data.usa_names.usa_1910_current`\n"
            "WHERE year = 2010\n"
            "GROUP BY name, gender\n"
            "ORDER BY total DESC\n"
            "LIMIT 500"
        ),
    },
    {
        "file_name": "weekly/austin_bikeshare_stations.csv",
        "source_query": (
            "SELECT station_id, name, status\n"
            "FROM `bigquery-public-data.austin_bikeshare.bikeshare_stations`"
        ),
    },
    {
        "file_name": "weekly/noaa_gsod_2020_sample.csv",
        # Partition-pruned: filter first, then aggregate
        "source_query": (
            "SELECT stn, DATE(CAST(year AS INT64), CAST(mo AS INT64), CAST(da AS INT64)) AS day, temp\n"
            "FROM `bigquery-public-data.noaa_gsod.gsod2020`\n"
            "WHERE mo = '01'\n"
            "LIMIT 1000"
        ),
    },
    {
        "file_name": "adhoc/broken_query.csv",
        "source_query": "SELECT * FROM `does-not-exist.nowhere.nothing`",
    },
]


async def main() -> None:
    from stage_export.db import close_pool, transaction

    print("Seeding stage_table...")
    async with transaction() as conn:
        for item in SAMPLE_ITEMS:
            item_id = await conn.fetchval(
                """
                INSERT INTO stage_table (file_name, source_query, status)
                VALUES ($1, $2, 'PENDING')
                RETURNING id
                """,
                item["file_name"],
                item["source_query"],
            )
            print(f"  {item['file_name']}: id={item_id}")

    await close_pool()
    print(f"\nDone! Seeded {len(SAMPLE_ITEMS)} pending items.")


if __name__ == "__main__":
    asyncio.run(main())
