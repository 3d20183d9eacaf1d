"""Mention store.

Persists gathered mentions per user as one batch write per call. Each batch
is committed on its own; a failing commit rolls the whole batch back and is
reported item by item rather than raised, so callers can carry on with
their next phase.

Usage:
    service = MentionService(db=session)

    result = service.add_mentions_batch(user_id, items)
    if result.error_count:
        errors.extend(result.errors)

    latest = service.get_mentions_for_user(user_id)
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from insight_core.domain.models import Mention, Platform, Sentiment, utcnow
from insight_core.providers.base import MentionItem

logger = logging.getLogger(__name__)


# =============================================================================
# CONSTANTS
# =============================================================================


DEFAULT_MENTIONS_LIMIT = 100

# Defaults for fields a source left empty
DEFAULT_SOURCE = "Unknown Source"
DEFAULT_TITLE = "No Title Provided"
DEFAULT_EXCERPT = "No Excerpt Provided"
DEFAULT_URL = "#"
DEFAULT_KEYWORD = "general"


@dataclass
class BatchWriteResult:
    """Outcome of one batch upsert."""

    success_count: int = 0
    error_count: int = 0
    errors: list[str] = field(default_factory=list)
    stored_ids: list[str] = field(default_factory=list)


def normalize_sentiment(value: Optional[str]) -> str:
    if value in Sentiment.ALL:
        return value
    return Sentiment.UNKNOWN


class MentionService:
    """Service for reading and batch-writing a user's mentions."""

    def __init__(self, db: Session):
        """Initialize the mention service.

        Args:
            db: SQLAlchemy database session.
        """
        self.db = db

    def add_mentions_batch(
        self, user_id: str, items: Iterable[MentionItem]
    ) -> BatchWriteResult:
        """Upsert mentions for a user in a single commit.

        Items without an ID are skipped and reported. Missing fields get
        defaults and an unrecognized sentiment becomes "unknown".

        Args:
            user_id: Owner of the mentions.
            items: Mentions to upsert, keyed by their ``id``.

        Returns:
            BatchWriteResult with counts, per-item errors and the IDs
            that were committed.
        """
        result = BatchWriteResult()

        if not user_id or not user_id.strip():
            result.errors.append("Invalid or missing user ID for mention batch.")
            result.error_count = len(list(items))
            return result

        fetched_at = utcnow()
        rows: list[Mention] = []

        for item in items:
            if not item.id or not str(item.id).strip():
                result.error_count += 1
                result.errors.append(
                    f"Skipped mention without an ID (title: {item.title or DEFAULT_TITLE})"
                )
                continue

            rows.append(
                Mention(
                    user_id=user_id,
                    id=item.id,
                    platform=item.platform or Platform.UNKNOWN,
                    source=item.source or DEFAULT_SOURCE,
                    title=item.title or DEFAULT_TITLE,
                    excerpt=item.excerpt or DEFAULT_EXCERPT,
                    url=item.url or DEFAULT_URL,
                    timestamp=item.timestamp or fetched_at,
                    matched_keyword=item.matched_keyword or DEFAULT_KEYWORD,
                    sentiment=normalize_sentiment(item.sentiment),
                    fetched_at=fetched_at,
                )
            )

        if not rows:
            return result

        pending = [row.id for row in rows]
        try:
            for row in rows:
                self.db.merge(row)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(
                f"Mention batch commit failed for user {user_id}: {e}", exc_info=True
            )
            result.error_count += len(pending)
            result.errors.append(f"Batch Commit Failed: {e}")
            return result

        result.success_count = len(pending)
        result.stored_ids = pending
        return result

    def get_mentions_for_user(
        self, user_id: str, limit: int = DEFAULT_MENTIONS_LIMIT
    ) -> list[Mention]:
        """A user's mentions, newest first."""
        if not user_id:
            return []
        return (
            self.db.query(Mention)
            .filter(Mention.user_id == user_id)
            .order_by(Mention.timestamp.desc())
            .limit(limit)
            .all()
        )

    def get_stored_sentiments(
        self, user_id: str, mention_ids: Iterable[str]
    ) -> dict[str, str]:
        """Map of already-stored mention ID to its stored sentiment."""
        ids = list(mention_ids)
        if not ids:
            return {}
        rows = (
            self.db.query(Mention.id, Mention.sentiment)
            .filter(Mention.user_id == user_id, Mention.id.in_(ids))
            .all()
        )
        return {row.id: row.sentiment for row in rows}

    def count_for_user(self, user_id: str) -> int:
        return self.db.query(Mention).filter(Mention.user_id == user_id).count()
