#!/usr/bin/env python3
"""
Enqueue a rebuild of listing rating aggregates (rating_count / average_rating)
from the ratings table. Safe to run any time: the recompute is idempotent.
Requires: Celery worker running and RabbitMQ reachable.

  python scripts/reconcile_ratings.py                 # every listing
  python scripts/reconcile_ratings.py --listing 12 --listing 40
"""

import argparse

from marketplace.queue.tasks import reconcile_all_ratings_task, recompute_listing_ratings_task


def main():
    ap = argparse.ArgumentParser(description="Enqueue listing rating recompute tasks")
    ap.add_argument("--listing", type=int, action="append", default=[], help="Listing id (repeatable)")
    args = ap.parse_args()

    if not args.listing:
        reconcile_all_ratings_task.delay()
        print("Enqueued reconcile of all listings. Ensure Celery worker is running.")
        return

    for listing_id in args.listing:
        recompute_listing_ratings_task.delay(listing_id)
    print(f"Enqueued recompute for {len(args.listing)} listing(s).")


if __name__ == "__main__":
    main()
