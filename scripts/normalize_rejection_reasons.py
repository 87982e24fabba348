#!/usr/bin/env python3
"""
Campaign legacy row migration

Rewrites campaign rows still stored in an older shape: rejection reasons
kept as text or under metrics, and requirements without budget_allocation.
Rows already in the current shape are left alone.
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Any, Dict

# Add project root to the Python path
sys.path.append(str(Path(__file__).parent.parent))

from core.config import get_settings, setup_logging
from microservices.campaign_service.campaign_repository import CampaignRepository
from microservices.campaign_service.legacy import backfill_campaign_record
from microservices.campaign_service.protocols import CAMPAIGNS_TABLE, CampaignStoreProtocol

logger = logging.getLogger("normalize_rejection_reasons")

MIGRATED_FIELDS = ("requirements", "metrics", "rejection_reason")


def changed_fields(stored: Dict[str, Any], current: Dict[str, Any]) -> Dict[str, Any]:
    return {
        field: current.get(field)
        for field in MIGRATED_FIELDS
        if stored.get(field) != current.get(field)
    }


async def normalize_campaigns(store: CampaignStoreProtocol, dry_run: bool = False) -> int:
    """
    Bring every legacy campaign row to the current shape.

    Returns the number of rows that needed changes.
    """
    rows = await store.select_where(CAMPAIGNS_TABLE, {}, descending=False)
    migrated = 0

    for row in rows:
        patch = changed_fields(row, backfill_campaign_record(row))
        if not patch:
            continue

        migrated += 1
        if dry_run:
            logger.info(f"[dry-run] {row['id']}: would rewrite {', '.join(sorted(patch))}")
            continue
        await store.update(CAMPAIGNS_TABLE, row["id"], patch)
        logger.info(f"{row['id']}: rewrote {', '.join(sorted(patch))}")

    logger.info(f"{migrated} of {len(rows)} campaign rows {'need' if dry_run else 'were'} migrated")
    return migrated


async def main():
    parser = argparse.ArgumentParser(description="Normalize legacy campaign rows")
    parser.add_argument(
        "--dry-run", action="store_true", help="Report rows that would change without writing"
    )
    args = parser.parse_args()

    setup_logging(get_settings().logging)

    repository = CampaignRepository()
    await repository.initialize()
    try:
        await normalize_campaigns(repository, dry_run=args.dry_run)
    finally:
        await repository.close()


if __name__ == "__main__":
    asyncio.run(main())
