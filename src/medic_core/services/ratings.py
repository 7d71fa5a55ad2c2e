"""
Rating Service.

One rating per (target, rater) pair, stored as a raw JSON array under
``medic_ratings``. Rating again replaces the earlier record in place so the
collection keeps its order.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Optional

from ..core.formatters import Clock, format_timestamp, generate_record_id, system_clock
from ..core.logging import get_logger
from ..errors import StorageFailureError
from ..models import Rating
from ..storage.collections import RATINGS_KEY, RecordCollection
from ..storage.protocol import KeyValueBackend

logger = get_logger(__name__)

MIN_RATING = 1
MAX_RATING = 5
DEFAULT_RATER = "anonymous"


class RatingService:
    """Upsert ratings and compute per-target aggregates."""

    def __init__(self, backend: KeyValueBackend, clock: Clock = system_clock):
        self.collection: RecordCollection[Rating] = RecordCollection(backend, RATINGS_KEY, Rating)
        self.clock = clock

    def rate(self, target_id: str, rating: Any, comment: str = "", rater: str = DEFAULT_RATER) -> bool:
        """
        Record rater's score for target_id.

        Returns:
            False if rating is not an integer in 1..5 or the write failed
        """
        if isinstance(rating, bool) or not isinstance(rating, int):
            logger.warning("Rejected non-integer rating %r for %s", rating, target_id)
            return False
        if not MIN_RATING <= rating <= MAX_RATING:
            logger.warning("Rejected out-of-range rating %d for %s", rating, target_id)
            return False

        now = self.clock()
        record = Rating(
            id=generate_record_id(now),
            target_id=target_id,
            rating=rating,
            comment=comment or "",
            rater=rater or DEFAULT_RATER,
            timestamp=format_timestamp(now),
        )

        items = self.collection.load_raw()
        for index, existing in enumerate(items):
            if (
                isinstance(existing, dict)
                and existing.get("targetId") == record.target_id
                and existing.get("rater", DEFAULT_RATER) == record.rater
            ):
                items[index] = record
                break
        else:
            items.append(record)

        try:
            self.collection.save(items)
        except StorageFailureError as e:
            logger.error("Failed to save rating for %s: %s", target_id, e)
            return False
        return True

    def get_all_ratings(self) -> list[Rating]:
        return self.collection.load()

    def get_ratings_for_target(self, target_id: str) -> list[Rating]:
        return [r for r in self.collection.load() if r.target_id == target_id]

    def get_average_rating(self, target_id: str) -> float:
        """Mean score rounded to one decimal, 0 when unrated."""
        ratings = self.get_ratings_for_target(target_id)
        if not ratings:
            return 0
        return mean_rating(ratings)

    def get_rating_stats(self, target_id: str) -> Optional[dict[str, Any]]:
        """
        Aggregate view of a target's ratings.

        Returns:
            None when unrated, else a dict with average, total, distribution
            (score -> count for every score 1..5) and latest
        """
        ratings = self.get_ratings_for_target(target_id)
        if not ratings:
            return None

        distribution = dict.fromkeys(range(MIN_RATING, MAX_RATING + 1), 0)
        for r in ratings:
            distribution[r.rating] += 1

        return {
            "average": mean_rating(ratings),
            "total": len(ratings),
            "distribution": distribution,
            "latest": ratings[0],
        }


def mean_rating(ratings: list[Rating]) -> float:
    """
    Mean score rounded half-up to one decimal.

    >>> mean_rating([Rating(id="a", target_id="t", rating=r, timestamp="") for r in (1, 2, 3, 3)])
    2.3
    """
    mean = sum(r.rating for r in ratings) / len(ratings)
    return float(Decimal(str(mean)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))
