"""
Per-page review lookup.

Reviews live in a flat JSON dataset (``data/reviews.json``); the site config
decides which pages show reviews and which reviews are tagged for each page.
"""

import os
import json
import logging
from dataclasses import dataclass
from typing import Any, Optional, Tuple

from .config import ReviewPageConfig, SiteConfig


DEFAULT_REVIEWS_PATH = os.path.join('data', 'reviews.json')


@dataclass(frozen=True)
class Review:
    id: str
    author: str
    rating: float
    date: str
    text: str
    has_photo: bool

    @property
    def stars(self) -> int:
        """Whole stars to display, clamped to 0..5."""
        try:
            return max(0, min(5, int(round(float(self.rating)))))
        except (TypeError, ValueError):
            return 0


def _review_from_record(record: Any) -> Optional[Review]:
    if not isinstance(record, dict):
        return None
    review_id = record.get('id')
    return Review(
        id='' if review_id is None else str(review_id),
        author=str(record.get('author') or ''),
        rating=record.get('rating') or 0,
        date=str(record.get('date') or ''),
        text=str(record.get('text') or ''),
        has_photo=bool(record.get('hasPhoto', record.get('has_photo', False))),
    )


class ReviewsAccessor:
    """Select the reviews to display on a page."""

    def __init__(self, config: SiteConfig, reviews_path: str = DEFAULT_REVIEWS_PATH):
        self.config = config
        self.reviews_path = reviews_path
        self.logger = logging.getLogger('SMBSite.reviews')

    def load_reviews(self) -> Tuple[Review, ...]:
        """
        Read the full review dataset from disk.
        A missing or unreadable dataset yields no reviews.
        """
        try:
            with open(self.reviews_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (IOError, OSError) as e:
            self.logger.debug(f"Reviews dataset unavailable at {self.reviews_path}: {e}")
            return ()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            self.logger.debug(f"Invalid reviews dataset {self.reviews_path}: {e}")
            return ()

        records = data.get('reviews') if isinstance(data, dict) else None
        if not isinstance(records, list):
            return ()

        reviews = (_review_from_record(record) for record in records)
        return tuple(review for review in reviews if review is not None)

    def reviews_for_page(self, path: str) -> Tuple[Tuple[Review, ...], Optional[ReviewPageConfig]]:
        """
        Return the reviews tagged for ``path`` and that page's review config.

        Reviews keep their dataset order and are capped at the page's
        ``max_reviews``. Returns ``((), None)`` when reviews are disabled or
        the page has no review config.
        """
        reviews_config = self.config.reviews
        if not reviews_config.enabled:
            return (), None

        page_config = reviews_config.page(path)
        if page_config is None:
            return (), None

        all_reviews = self.load_reviews()
        tagged_ids = {
            review_id
            for review_id, pages in reviews_config.tagged.items()
            if path in pages
        }

        page_reviews = tuple(review for review in all_reviews if review.id in tagged_ids)
        return page_reviews[:page_config.max_reviews], page_config
