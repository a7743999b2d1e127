"""
Celery tasks - rebuild listing rating aggregates from the rating rows.
Used to repair listings after a failed write or a manual data fix; the recompute
is the same idempotent statement the request path runs.
"""

import asyncio
import logging

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from marketplace.config import get_settings
from marketplace.db.repositories.listing_repository import ListingRepository
from marketplace.db.repositories.rating_repository import RatingRepository
from marketplace.db.session import build_engine
from marketplace.queue.celery_app import celery_app

logger = logging.getLogger(__name__)


def _run_async(coro):
    """Run async function from sync Celery task."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


async def reconcile_listings(
    session_maker: async_sessionmaker[AsyncSession], listing_ids: list[int] | None = None
) -> int:
    """Recompute stats for the given listings (all listings when None). Returns how many were updated."""
    updated = 0
    async with session_maker() as session:
        ratings = RatingRepository(session)
        if listing_ids is None:
            listing_ids = await ListingRepository(session).get_ids()
        for listing_id in listing_ids:
            stats = await ratings.recompute_listing_stats(listing_id)
            await session.commit()
            if stats is None:
                logger.info("reconcile: listing %s no longer exists", listing_id)
                continue
            updated += 1
            logger.debug("reconcile: listing %s -> count=%s avg=%s", listing_id, *stats)
    return updated


async def _reconcile_with_fresh_engine(listing_ids: list[int] | None) -> int:
    # New engine per task: pooled connections cannot cross event loops
    engine = build_engine(get_settings(), pooled=False)
    try:
        return await reconcile_listings(async_sessionmaker(engine, expire_on_commit=False), listing_ids)
    finally:
        await engine.dispose()


@celery_app.task(bind=True, max_retries=3)
def recompute_listing_ratings_task(self, listing_id: int):
    """Rebuild rating_count/average_rating for one listing."""
    try:
        return _run_async(_reconcile_with_fresh_engine([listing_id]))
    except Exception as exc:
        raise self.retry(exc=exc, countdown=5)


@celery_app.task(bind=True, max_retries=3)
def reconcile_all_ratings_task(self):
    """Rebuild the aggregates of every listing (repair job)."""
    try:
        updated = _run_async(_reconcile_with_fresh_engine(None))
        logger.info("reconcile: %d listings recomputed", updated)
        return updated
    except Exception as exc:
        raise self.retry(exc=exc, countdown=5)
