"""
Repair membership sets from primary records.

Puts and deletes write the record and its membership concurrently, so a
failed secondary write leaves a set out of step with the records. This
scans each collection and adds missing members / removes stale ones.

Run from src/backend with:
    python -m scripts.reconcile_indexes            # users, topics, plans
    python -m scripts.reconcile_indexes topic      # one collection
"""

import argparse
import asyncio

import scripts._common  # noqa: F401

import structlog

from db.store_session import close_backend
from models.plan import PlanBase
from models.topic import Topic
from models.user import User
from repositories.provider import get_keyed_store

logger = structlog.get_logger(__name__)

COLLECTIONS = {
    User.key_prefix: User,
    Topic.key_prefix: Topic,
    PlanBase.key_prefix: PlanBase,
}


async def reconcile(prefixes: list[str]) -> int:
    """Reconcile the given collections; returns the number that had drifted."""
    store = await get_keyed_store()
    drifted = 0
    try:
        for prefix in prefixes:
            report = await store.reconcile(COLLECTIONS[prefix])
            if report.drifted:
                drifted += 1
            print(
                f"{prefix}: {report.records} records, "
                f"{len(report.added)} added, {len(report.removed)} removed, "
                f"{len(report.corrupt)} corrupt"
            )
    finally:
        await close_backend()
    return drifted


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    parser.add_argument("collections", nargs="*", choices=sorted(COLLECTIONS), help="collections to repair")
    args = parser.parse_args()

    drifted = asyncio.run(reconcile(args.collections or list(COLLECTIONS)))
    logger.info("reconcile_finished", drifted_collections=drifted)


if __name__ == "__main__":
    main()
