#!/usr/bin/env python3
"""
Recompute course review statistics from the reviews collection.

Usage:
  python scripts/reconcile_aggregates.py                 # every stale course
  python scripts/reconcile_aggregates.py --course <id>   # one course
"""

import argparse
import asyncio
import os
import sys

from dotenv import load_dotenv

load_dotenv()
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from course_review.core.config import config  # noqa: E402
from course_review.core.errors import ErrorResponse, ReviewServiceError  # noqa: E402
from course_review.db import Database  # noqa: E402
from course_review.repositories import CourseRepository, ReviewRepository  # noqa: E402
from course_review.services import AggregateRecalculator  # noqa: E402
from course_review.utils import create_correlation_id, set_correlation_id  # noqa: E402


async def reconcile(course_id: str = None, limit: int = 100) -> int:
    set_correlation_id(create_correlation_id())
    database = Database(config)
    try:
        await database.connect()
        recalculator = AggregateRecalculator(
            ReviewRepository(database.reviews),
            CourseRepository(database.courses),
        )

        if course_id:
            result = await recalculator.reconcile(course_id)
            print(
                f"{result.course_id}: rating={result.aggregates.average_rating} "
                f"difficulty={result.aggregates.average_difficulty} "
                f"reviews={result.aggregates.review_count}"
            )
            return 0

        reconciled, failed = await recalculator.reconcile_stale(limit)
        print(f"Reconciled {len(reconciled)} course(s)")
        for course in failed:
            print(f"Failed: {course}")
        return 1 if failed else 0
    except (ReviewServiceError, ErrorResponse) as e:
        print(f"Reconciliation failed: {e.message}")
        return 1
    finally:
        await database.close()


def main():
    parser = argparse.ArgumentParser(description="Repair course review statistics")
    parser.add_argument("--course", help="Reconcile a single course by id")
    parser.add_argument("--limit", type=int, default=100, help="Max stale courses to process")
    args = parser.parse_args()

    sys.exit(asyncio.run(reconcile(args.course, args.limit)))


if __name__ == "__main__":
    main()
