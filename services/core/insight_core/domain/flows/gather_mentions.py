"""Mention gathering pass for one user.

Steps:
1. Load the user and their keywords
2. Query each source in turn (Reddit, Hacker News, Twitter/X, Google News,
   and the user's RSS feeds), each filtering by keyword substring
3. Deduplicate across sources by ``platform_nativeId``; the first
   occurrence wins
4. Merge with stored state: known mentions keep their stored sentiment,
   new ones start as "unknown"
5. Upsert everything as one batch
6. Run remote sentiment analysis on up to N new mentions, one at a time,
   waiting a fixed delay before each call
7. Upsert the mentions whose sentiment changed as a second batch

A failing source, a failed batch or a failed sentiment call is recorded in
``errors`` and the pass carries on. The two batches are independent commits.

Usage:
    result = await gather_global_mentions(db, user_id)
    result.new_mentions_stored, result.errors
"""

import asyncio
from dataclasses import dataclass, field
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from insight_core.config import Settings, get_settings
from insight_core.domain.flows.clients import build_default_sources, get_api_key_service
from insight_core.domain.flows.sentiment import GeminiSentimentAnalyzer
from insight_core.domain.models import Sentiment
from insight_core.domain.services.mentions import MentionService
from insight_core.domain.services.users import UserService, normalize_string_list
from insight_core.observability.logging import get_logger
from insight_core.providers.base import MentionItem, MentionSource

log = get_logger(__name__)


@dataclass
class GatherMentionsResult:
    total_mentions_fetched: int = 0
    new_mentions_stored: int = 0
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "total_mentions_fetched": self.total_mentions_fetched,
            "new_mentions_stored": self.new_mentions_stored,
            "errors": list(self.errors),
        }


def dedupe_mentions(items: Iterable[MentionItem]) -> list[MentionItem]:
    """Keep the first item per ID, preserving order."""
    unique: dict[str, MentionItem] = {}
    for item in items:
        if item.id not in unique:
            unique[item.id] = item
    return list(unique.values())


def _sentiment_text(item: MentionItem) -> str:
    if item.excerpt and item.excerpt != item.title:
        return f"{item.title}\n{item.excerpt}"
    return item.title


async def _collect(
    sources: list[MentionSource], keywords: list[str], user_id: str, errors: list[str]
) -> list[MentionItem]:
    collected: list[MentionItem] = []
    for source in sources:
        try:
            items = await source.fetch_mentions(keywords)
        except Exception as e:
            log.warning(
                "Mention source failed",
                user_id=user_id,
                source_name=source.name,
                error=str(e),
                exc_info=True,
            )
            errors.append(f"Error fetching from {source.name}: {e}")
            continue

        for warning in source.warnings:
            errors.append(f"Error fetching from {source.name}: {warning}")
        log.info(
            "Mention source returned items",
            user_id=user_id,
            source_name=source.name,
            count=len(items),
        )
        collected.extend(items)
    return collected


async def _run_gather(
    db: Session,
    user_id: str,
    sources: Optional[list[MentionSource]],
    analyzer: Optional[GeminiSentimentAnalyzer],
    settings: Settings,
) -> GatherMentionsResult:
    result = GatherMentionsResult()

    if not user_id or not str(user_id).strip():
        result.errors.append("Invalid or missing UserID provided to flow.")
        return result

    user = UserService(db).get_user_by_id(user_id)
    if user is None:
        result.errors.append(f"User with ID {user_id} not found.")
        return result

    keywords = normalize_string_list(user.assigned_keywords or [])
    if not keywords:
        result.errors.append(
            f"No keywords assigned to user {user_id}. Ask an admin to assign keywords."
        )
        return result

    api_keys = get_api_key_service(db, settings)
    if sources is None:
        sources = build_default_sources(user, api_keys, settings)

    # Fetch and dedupe
    collected = await _collect(sources, keywords, user_id, result.errors)
    result.total_mentions_fetched = len(collected)
    unique = dedupe_mentions(collected)

    # Merge with stored state
    mentions = MentionService(db)
    stored = mentions.get_stored_sentiments(user_id, [item.id for item in unique])
    new_items: list[MentionItem] = []
    for item in unique:
        if item.id in stored:
            item.sentiment = stored[item.id]
        else:
            item.sentiment = Sentiment.UNKNOWN
            new_items.append(item)

    # Initial store
    if unique:
        initial = mentions.add_mentions_batch(user_id, unique)
        result.errors.extend(initial.errors)
        committed = set(initial.stored_ids)
        result.new_mentions_stored = sum(1 for item in new_items if item.id in committed)

    # Sentiment for a capped number of new mentions
    candidates = new_items[: settings.sentiment_max_items_per_run]
    if candidates:
        if analyzer is None:
            analyzer = GeminiSentimentAnalyzer.from_api_keys(
                api_keys, timeout=settings.http_timeout_seconds
            )
        if not analyzer.configured:
            result.errors.append(
                "Sentiment analysis skipped: Gemini API key or URL not configured."
            )
        else:
            updated = await _analyze_candidates(
                candidates, analyzer, settings.sentiment_call_delay_ms, result.errors
            )
            if updated:
                second = mentions.add_mentions_batch(user_id, updated)
                result.errors.extend(second.errors)

    log.info(
        "Mention gathering finished",
        user_id=user_id,
        fetched=result.total_mentions_fetched,
        unique=len(unique),
        stored_new=result.new_mentions_stored,
        error_count=len(result.errors),
    )
    return result


async def _analyze_candidates(
    candidates: list[MentionItem],
    analyzer: GeminiSentimentAnalyzer,
    delay_ms: int,
    errors: list[str],
) -> list[MentionItem]:
    updated = []
    for item in candidates:
        await asyncio.sleep(delay_ms / 1000)
        outcome = await analyzer.analyze(_sentiment_text(item))
        if outcome.error:
            errors.append(f"Sentiment analysis failed for {item.id}: {outcome.error}")
        if outcome.sentiment != item.sentiment:
            item.sentiment = outcome.sentiment
            updated.append(item)
    return updated


async def gather_global_mentions(
    db: Session,
    user_id: str,
    sources: Optional[list[MentionSource]] = None,
    analyzer: Optional[GeminiSentimentAnalyzer] = None,
    settings: Optional[Settings] = None,
) -> GatherMentionsResult:
    """Gather, deduplicate and store mentions for a user.

    Never raises: unexpected failures are returned as a single critical
    error with zero counts.

    Args:
        db: SQLAlchemy session.
        user_id: ID of the user whose keywords drive the search.
        sources: Override the default source set.
        analyzer: Override the sentiment analyzer.
        settings: Override application settings.

    Returns:
        GatherMentionsResult with fetched/stored counts and error strings.
    """
    settings = settings or get_settings()
    try:
        return await _run_gather(db, user_id, sources, analyzer, settings)
    except Exception as e:
        log.error(
            "Mention gathering crashed", user_id=user_id, error=str(e), exc_info=True
        )
        return GatherMentionsResult(
            errors=[f"Critical flow error for UserID {user_id}: {e}"]
        )
