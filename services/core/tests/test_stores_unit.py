"""Unit tests for the mention, Reddit profile and audit stores."""

from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest
from sqlalchemy.exc import SQLAlchemyError

from insight_core.domain.models import Mention, Platform, Sentiment
from insight_core.domain.services.audit import AuditService
from insight_core.domain.services.mentions import (
    DEFAULT_EXCERPT,
    DEFAULT_KEYWORD,
    DEFAULT_SOURCE,
    DEFAULT_TITLE,
    DEFAULT_URL,
    MentionService,
    normalize_sentiment,
)
from insight_core.domain.services.reddit_profiles import (
    RedditProfileNotFoundError,
    RedditProfileService,
    normalize_reddit_username,
)
from insight_core.providers.base import MentionItem


def _item(mention_id: str, **overrides) -> MentionItem:
    data = {
        "id": mention_id,
        "platform": Platform.HACKER_NEWS,
        "source": "Hacker News",
        "title": f"Title {mention_id}",
        "excerpt": "Excerpt",
        "url": f"https://news.ycombinator.com/item?id={mention_id}",
        "timestamp": datetime(2024, 5, 1, tzinfo=timezone.utc),
        "matched_keyword": "python",
        "sentiment": Sentiment.UNKNOWN,
    }
    data.update(overrides)
    return MentionItem(**data)


class TestNormalizeSentiment:
    """Tests for normalize_sentiment."""

    @pytest.mark.parametrize("value", ["positive", "negative", "neutral", "unknown"])
    def test_valid_values_kept(self, value):
        assert normalize_sentiment(value) == value

    @pytest.mark.parametrize("value", [None, "", "mixed", "POSITIVE"])
    def test_invalid_values_become_unknown(self, value):
        assert normalize_sentiment(value) == Sentiment.UNKNOWN


class TestMentionBatch:
    """Tests for MentionService.add_mentions_batch."""

    def test_stores_items(self, db_session, regular_user):
        service = MentionService(db_session)

        result = service.add_mentions_batch(
            regular_user.id, [_item("hackernews_1"), _item("hackernews_2")]
        )

        assert result.success_count == 2
        assert result.error_count == 0
        assert result.stored_ids == ["hackernews_1", "hackernews_2"]
        assert service.count_for_user(regular_user.id) == 2

    def test_upsert_overwrites_existing(self, db_session, regular_user):
        service = MentionService(db_session)
        service.add_mentions_batch(regular_user.id, [_item("hackernews_1")])

        service.add_mentions_batch(
            regular_user.id, [_item("hackernews_1", sentiment=Sentiment.POSITIVE)]
        )

        assert service.count_for_user(regular_user.id) == 1
        assert service.get_stored_sentiments(regular_user.id, ["hackernews_1"]) == {
            "hackernews_1": Sentiment.POSITIVE
        }

    def test_missing_fields_get_defaults(self, db_session, regular_user):
        MentionService(db_session).add_mentions_batch(
            regular_user.id,
            [
                _item(
                    "rss_x",
                    source="",
                    title="",
                    excerpt="",
                    url="",
                    matched_keyword="",
                    sentiment="bogus",
                )
            ],
        )

        stored = db_session.query(Mention).one()
        assert stored.source == DEFAULT_SOURCE
        assert stored.title == DEFAULT_TITLE
        assert stored.excerpt == DEFAULT_EXCERPT
        assert stored.url == DEFAULT_URL
        assert stored.matched_keyword == DEFAULT_KEYWORD
        assert stored.sentiment == Sentiment.UNKNOWN

    def test_items_without_id_are_reported(self, db_session, regular_user):
        result = MentionService(db_session).add_mentions_batch(
            regular_user.id, [_item(""), _item("hackernews_1")]
        )

        assert result.success_count == 1
        assert result.error_count == 1
        assert "without an ID" in result.errors[0]

    def test_failed_commit_is_reported(self, db_session, regular_user):
        service = MentionService(db_session)

        with patch.object(db_session, "commit", side_effect=SQLAlchemyError("disk full")):
            result = service.add_mentions_batch(
                regular_user.id, [_item("hackernews_1"), _item("hackernews_2")]
            )

        assert result.success_count == 0
        assert result.error_count == 2
        assert result.stored_ids == []
        assert result.errors == ["Batch Commit Failed: disk full"]
        assert service.count_for_user(regular_user.id) == 0

    def test_failed_merge_is_reported(self, db_session, regular_user):
        """A failure while staging rows is reported like a failed commit."""
        with patch.object(db_session, "merge", side_effect=SQLAlchemyError("flush failed")):
            result = MentionService(db_session).add_mentions_batch(
                regular_user.id, [_item("hackernews_1")]
            )

        assert result.error_count == 1
        assert result.errors == ["Batch Commit Failed: flush failed"]

    def test_blank_user_id(self, db_session):
        result = MentionService(db_session).add_mentions_batch("", [_item("a"), _item("b")])

        assert result.error_count == 2
        assert result.success_count == 0

    def test_mentions_are_scoped_per_user(self, db_session, make_user):
        first = make_user()
        second = make_user()
        service = MentionService(db_session)

        service.add_mentions_batch(first.id, [_item("hackernews_1")])
        service.add_mentions_batch(second.id, [_item("hackernews_1")])

        assert service.count_for_user(first.id) == 1
        assert service.count_for_user(second.id) == 1


class TestMentionReads:
    """Tests for reading mentions back."""

    def test_newest_first_with_limit(self, db_session, regular_user):
        base = datetime(2024, 5, 1, tzinfo=timezone.utc)
        service = MentionService(db_session)
        service.add_mentions_batch(
            regular_user.id,
            [_item(f"hackernews_{i}", timestamp=base + timedelta(hours=i)) for i in range(5)],
        )

        mentions = service.get_mentions_for_user(regular_user.id, limit=3)

        assert [m.id for m in mentions] == ["hackernews_4", "hackernews_3", "hackernews_2"]

    def test_blank_user_returns_nothing(self, db_session):
        assert MentionService(db_session).get_mentions_for_user("") == []

    def test_stored_sentiments_ignores_unknown_ids(self, db_session, regular_user):
        service = MentionService(db_session)
        service.add_mentions_batch(regular_user.id, [_item("hackernews_1")])

        assert service.get_stored_sentiments(regular_user.id, ["hackernews_1", "x"]) == {
            "hackernews_1": Sentiment.UNKNOWN
        }
        assert service.get_stored_sentiments(regular_user.id, []) == {}


class TestRedditProfileService:
    """Tests for RedditProfileService."""

    @pytest.mark.parametrize(
        "raw,expected",
        [("spez", "spez"), ("u/spez", "spez"), ("/u/spez/", "spez"), ("  U/spez ", "spez")],
    )
    def test_normalize_username(self, raw, expected):
        assert normalize_reddit_username(raw) == expected

    def test_add_placeholder_is_idempotent(self, db_session, regular_user):
        service = RedditProfileService(db_session)

        first = service.add_placeholder(regular_user.id, "u/spez")
        second = service.add_placeholder(regular_user.id, "spez")

        assert first is second
        assert first.is_placeholder is True
        assert len(service.list_profiles(regular_user.id)) == 1

    def test_add_placeholder_blank(self, db_session, regular_user):
        with pytest.raises(ValueError):
            RedditProfileService(db_session).add_placeholder(regular_user.id, " u/ ")

    def test_save_analysis_clears_placeholder_and_error(self, db_session, regular_user):
        service = RedditProfileService(db_session)
        service.add_placeholder(regular_user.id, "spez")
        service.record_error(regular_user.id, "spez", "boom")

        profile = service.save_analysis(
            regular_user.id,
            "spez",
            {"total_post_karma": 10, "subreddits_posted_in": ["r/python"]},
        )

        assert profile.is_placeholder is False
        assert profile.error is None
        assert profile.total_post_karma == 10
        assert profile.subreddits_posted_in == ["r/python"]

    def test_save_analysis_creates_missing_profile(self, db_session, regular_user):
        service = RedditProfileService(db_session)

        service.save_analysis(regular_user.id, "spez", {"total_comment_karma": 3})

        assert service.get_profile(regular_user.id, "spez").total_comment_karma == 3

    def test_record_error_on_untracked_profile(self, db_session, regular_user):
        assert (
            RedditProfileService(db_session).record_error(regular_user.id, "ghost", "x")
            is None
        )

    def test_record_error_sets_suspension(self, db_session, regular_user):
        service = RedditProfileService(db_session)
        service.add_placeholder(regular_user.id, "ghost")

        profile = service.record_error(
            regular_user.id, "ghost", "not found", suspension_status="not_found"
        )

        assert profile.error == "not found"
        assert profile.suspension_status == "not_found"
        assert profile.last_error_at is not None

    def test_get_profile_or_raise(self, db_session, regular_user):
        with pytest.raises(RedditProfileNotFoundError, match="u/ghost"):
            RedditProfileService(db_session).get_profile_or_raise(regular_user.id, "ghost")

    def test_profiles_are_scoped_per_user(self, db_session, make_user):
        first = make_user()
        second = make_user()
        service = RedditProfileService(db_session)
        service.add_placeholder(first.id, "spez")

        assert service.get_profile(second.id, "spez") is None

    def test_delete_profile(self, db_session, regular_user):
        service = RedditProfileService(db_session)
        service.add_placeholder(regular_user.id, "spez")

        assert service.delete_profile(regular_user.id, "u/spez") is True
        assert service.delete_profile(regular_user.id, "spez") is False


class TestAuditService:
    """Tests for AuditService."""

    def test_record_and_list(self, db_session):
        audit = AuditService(db_session)
        audit.record("users.create", entity_type="user", entity_id="u1")
        audit.record("auth.login", result="error", error_detail="bad password")

        entries = audit.list_entries()

        assert [e.action_type for e in entries] == ["auth.login", "users.create"]
        assert entries[0].result == "error"

    def test_filter_by_action_type(self, db_session):
        audit = AuditService(db_session)
        audit.record("users.create")
        audit.record("auth.login")

        assert [e.action_type for e in audit.list_entries("auth.login")] == ["auth.login"]

    def test_invalid_actor(self, db_session):
        with pytest.raises(ValueError, match="actor"):
            AuditService(db_session).record("x", actor="robot")

    def test_invalid_result(self, db_session):
        with pytest.raises(ValueError, match="result"):
            AuditService(db_session).record("x", result="maybe")
