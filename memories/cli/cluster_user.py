#!/usr/bin/env python
"""
Cluster a user's faces into people.

Usage:
    python -m memories.cli.cluster_user <user_id> [--threshold 0.6] [--dry-run]
"""
import argparse
import asyncio
import sys
from typing import List, Optional

from memories.core.config import settings
from memories.core.container import ServiceContainer
from memories.core.exceptions import MemoriesError
from memories.core.logging import get_logger, setup_logging

logger = get_logger(__name__)


async def cluster_user(
    user_id: str,
    threshold: Optional[float] = None,
    dry_run: bool = False,
    database_url: Optional[str] = None,
) -> int:
    """
    Run one clustering pass for a user.

    Args:
        user_id: User whose faces are clustered
        threshold: Override of the configured similarity threshold
        dry_run: Only cluster; do not create or update people
        database_url: Override of the configured database URL

    Returns:
        Process exit code
    """
    container = ServiceContainer()
    try:
        await container.initialize(database_url=database_url)
        if dry_run:
            clusters = await container.clustering_service.cluster_user(user_id, threshold)
            logger.info("Dry run complete", user_id=user_id, cluster_count=len(clusters))
            for i, cluster in enumerate(clusters, 1):
                logger.info(
                    f"Cluster {i}",
                    members=len(cluster.members),
                    photos=len(cluster.photo_ids),
                    first_seen=str(cluster.first_seen),
                    last_seen=str(cluster.last_seen),
                )
            return 0

        result = await container.clustering_service.run(user_id, threshold)
        logger.info(
            result.message,
            user_id=user_id,
            embeddings=result.embedding_count,
            people_created=result.people_created,
            people_matched=result.people_matched,
        )
        for update in result.person_updates:
            logger.info(
                "Person",
                person_id=update.person_id,
                name=update.name,
                created=update.created,
                members=update.member_count,
                links_added=update.links_added,
            )
        return 0
    except MemoriesError as e:
        logger.error("clustering failed, try again", user_id=user_id, error=str(e), details=e.details)
        return 1
    finally:
        await container.cleanup()


def main(argv: Optional[List[str]] = None) -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="Group a user's faces into people")
    parser.add_argument("user_id", help="User whose faces are clustered")
    parser.add_argument(
        "--threshold",
        type=float,
        default=None,
        help=f"Cosine similarity threshold (default {settings.CLUSTER_SIMILARITY_THRESHOLD})"
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Cluster without creating or updating people"
    )
    parser.add_argument(
        "--database-url",
        default=None,
        help="SQLAlchemy async database URL (default from settings)"
    )
    args = parser.parse_args(argv)

    setup_logging()
    sys.exit(asyncio.run(cluster_user(args.user_id, args.threshold, args.dry_run, args.database_url)))

if __name__ == "__main__":
    main()
