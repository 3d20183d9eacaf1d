"""Unit tests for the non-Reddit mention sources and source helpers."""

import httpx
import pytest

from insight_core.domain.models import Platform
from insight_core.providers.base import (
    SourceError,
    match_keyword,
    stable_hash,
    strip_html,
    truncate,
)
from insight_core.providers.feeds import (
    FeedError,
    RssMentionSource,
    fetch_feed_xml,
    is_valid_feed_url,
    parse_feed,
)
from insight_core.providers.google_news import GoogleNewsSource
from insight_core.providers.hackernews import HackerNewsSource
from insight_core.providers.twitter import TwitterMockSource

RSS_XML = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>Python Weekly</title>
    <link>https://example.com/</link>
    <item>
      <title>FastAPI 1.0 released</title>
      <link>https://example.com/fastapi-1</link>
      <guid>https://example.com/fastapi-1</guid>
      <description>&lt;p&gt;The &lt;b&gt;framework&lt;/b&gt; hits 1.0&lt;/p&gt;</description>
      <pubDate>Wed, 01 May 2024 12:00:00 GMT</pubDate>
    </item>
    <item>
      <title>Gardening tips</title>
      <link>https://example.com/garden</link>
      <description>Nothing about code.</description>
    </item>
  </channel>
</rss>
"""


class TestHelpers:
    """Tests for shared source helpers."""

    def test_match_keyword_is_case_insensitive_substring(self):
        assert match_keyword(["Python", "rust"], "I love PYTHONistas") == "Python"

    def test_match_keyword_first_keyword_wins(self):
        assert match_keyword(["rust", "python"], "python and rust") == "rust"

    def test_match_keyword_no_match(self):
        assert match_keyword(["go"], "", None) is None

    def test_strip_html(self):
        assert strip_html("<p>Hello&nbsp;<b>world</b> &amp; co</p>") == "Hello world & co"

    def test_truncate(self):
        assert truncate("abc", 10) == "abc"
        assert truncate("a" * 20, 10) == "aaaaaaa..."

    def test_stable_hash_is_deterministic(self):
        assert stable_hash("x") == stable_hash("x")
        assert len(stable_hash("x")) == 16


class TestHackerNewsSource:
    """Tests for HackerNewsSource."""

    @pytest.mark.asyncio
    async def test_maps_story_and_comment(self, mock_httpx_client, response_factory):
        mock_httpx_client.get.return_value = response_factory(
            json_data={
                "hits": [
                    {
                        "objectID": "1",
                        "_tags": ["story"],
                        "title": "Show HN: a Python profiler",
                        "url": "https://example.com/profiler",
                        "author": "pg",
                        "created_at_i": 1714564800,
                    },
                    {
                        "objectID": "2",
                        "_tags": ["comment"],
                        "story_title": "Ask HN: tooling",
                        "comment_text": "<p>I use python daily</p>",
                        "author": "dang",
                        "created_at_i": 1714564800,
                    },
                    {"objectID": "3", "_tags": ["story"], "title": "Unrelated"},
                ]
            }
        )

        items = await HackerNewsSource().fetch_mentions(["python"])

        assert [i.id for i in items] == ["hackernews_1", "hackernews_2"]
        story, comment = items
        assert story.platform == Platform.HACKER_NEWS
        assert story.url == "https://example.com/profiler"
        assert story.source == "Hacker News (pg)"
        assert comment.title == "Comment on: Ask HN: tooling"
        assert comment.url == "https://news.ycombinator.com/item?id=2"
        assert comment.excerpt == "I use python daily"

    @pytest.mark.asyncio
    async def test_queries_once_per_keyword(self, mock_httpx_client, response_factory):
        mock_httpx_client.get.return_value = response_factory(json_data={"hits": []})

        await HackerNewsSource().fetch_mentions(["python", "rust"])

        assert mock_httpx_client.get.call_count == 2

    @pytest.mark.asyncio
    async def test_non_200_raises(self, mock_httpx_client, response_factory):
        mock_httpx_client.get.return_value = response_factory(status_code=503)

        with pytest.raises(SourceError, match="503"):
            await HackerNewsSource().fetch_mentions(["python"])

    @pytest.mark.asyncio
    async def test_transport_error_raises(self, mock_httpx_client):
        mock_httpx_client.get.side_effect = httpx.ConnectError("down")

        with pytest.raises(SourceError, match="request failed"):
            await HackerNewsSource().fetch_mentions(["python"])

    @pytest.mark.asyncio
    async def test_failed_keyword_keeps_other_hits(self, mock_httpx_client, response_factory):
        """One failing keyword is reported while earlier hits are kept."""
        mock_httpx_client.get.side_effect = [
            response_factory(
                json_data={
                    "hits": [
                        {"objectID": "1", "_tags": ["story"], "title": "Python 3.13 released"}
                    ]
                }
            ),
            response_factory(status_code=503),
        ]
        source = HackerNewsSource()

        items = await source.fetch_mentions(["python", "rust"])

        assert [i.id for i in items] == ["hackernews_1"]
        assert source.warnings == (
            "Hacker News search failed for 'rust': Hacker News search failed (503)",
        )

    @pytest.mark.asyncio
    async def test_invalid_json_raises(self, mock_httpx_client, response_factory):
        response = response_factory(text="<html>busy</html>")
        response.json.side_effect = ValueError("Expecting value")
        mock_httpx_client.get.return_value = response

        with pytest.raises(SourceError, match="invalid JSON"):
            await HackerNewsSource().fetch_mentions(["python"])


class TestTwitterMockSource:
    """Tests for the sample tweet source."""

    @pytest.mark.asyncio
    async def test_filters_by_keyword(self):
        items = await TwitterMockSource().fetch_mentions(["fastapi"])

        assert len(items) == 1
        assert items[0].id == "twitter_1790000000000000004"
        assert items[0].platform == Platform.TWITTER
        assert items[0].matched_keyword == "fastapi"

    @pytest.mark.asyncio
    async def test_no_match(self):
        assert await TwitterMockSource().fetch_mentions(["haskell"]) == []


class TestGoogleNewsSource:
    """Tests for GoogleNewsSource."""

    @pytest.mark.asyncio
    async def test_sample_articles_without_key(self):
        items = await GoogleNewsSource().fetch_mentions(["startup"])

        assert len(items) == 1
        assert items[0].platform == Platform.GOOGLE_NEWS
        assert items[0].id.startswith("googlenews_")

    @pytest.mark.asyncio
    async def test_ids_are_stable(self):
        first = await GoogleNewsSource().fetch_mentions(["finance"])
        second = await GoogleNewsSource().fetch_mentions(["finance"])

        assert [i.id for i in first] == [i.id for i in second]

    @pytest.mark.asyncio
    async def test_api_results(self, mock_httpx_client, response_factory):
        mock_httpx_client.get.return_value = response_factory(
            json_data={
                "articles": [
                    {
                        "title": "Python 4 rumors",
                        "description": "Nothing confirmed.",
                        "url": "https://news.example.org/python-4",
                        "source": {"name": "Example News"},
                        "publishedAt": "2024-05-01T12:00:00Z",
                    }
                ]
            }
        )

        items = await GoogleNewsSource(api_key="gnews-key").fetch_mentions(["python"])

        assert len(items) == 1
        assert items[0].source == "Example News"
        assert items[0].timestamp.year == 2024
        params = mock_httpx_client.get.call_args.kwargs["params"]
        assert params["apikey"] == "gnews-key"
        assert params["q"] == "python"

    @pytest.mark.asyncio
    async def test_api_error_raises(self, mock_httpx_client, response_factory):
        mock_httpx_client.get.return_value = response_factory(status_code=401)

        with pytest.raises(SourceError):
            await GoogleNewsSource(api_key="bad").fetch_mentions(["python"])


class TestFeeds:
    """Tests for feed fetching and parsing."""

    @pytest.mark.parametrize(
        "url,valid",
        [
            ("https://example.com/feed.xml", True),
            ("http://example.com/rss", True),
            ("ftp://example.com/feed", False),
            ("/relative/feed", False),
            ("", False),
            (None, False),
        ],
    )
    def test_is_valid_feed_url(self, url, valid):
        assert is_valid_feed_url(url) is valid

    def test_parse_feed(self):
        feed = parse_feed(RSS_XML)

        assert feed.title == "Python Weekly"
        assert len(feed.entries) == 2
        first = feed.entries[0]
        assert first.id == "https://example.com/fastapi-1"
        assert first.summary == "The framework hits 1.0"
        assert first.published.startswith("2024-05-01T12:00:00")
        assert feed.entries[1].id == "https://example.com/garden"

    @pytest.mark.asyncio
    async def test_fetch_feed_xml(self, mock_httpx_client, response_factory):
        mock_httpx_client.get.return_value = response_factory(text=RSS_XML)

        body, content_type = await fetch_feed_xml("https://example.com/feed.xml")

        assert body == RSS_XML
        assert content_type == "application/xml"

    @pytest.mark.asyncio
    async def test_fetch_feed_invalid_url(self):
        with pytest.raises(FeedError) as exc_info:
            await fetch_feed_xml("not-a-url")
        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    async def test_fetch_feed_upstream_error(self, mock_httpx_client, response_factory):
        mock_httpx_client.get.return_value = response_factory(status_code=404)

        with pytest.raises(FeedError) as exc_info:
            await fetch_feed_xml("https://example.com/feed.xml")
        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_rss_source_matches_entries(self, mock_httpx_client, response_factory):
        mock_httpx_client.get.return_value = response_factory(text=RSS_XML)

        items = await RssMentionSource(["https://example.com/feed.xml"]).fetch_mentions(
            ["fastapi"]
        )

        assert len(items) == 1
        assert items[0].platform == Platform.RSS
        assert items[0].source == "Python Weekly"
        assert items[0].url == "https://example.com/fastapi-1"
        assert items[0].id.startswith("rss_")

    @pytest.mark.asyncio
    async def test_rss_source_skips_failing_feed(self, mock_httpx_client, response_factory):
        mock_httpx_client.get.side_effect = [
            response_factory(status_code=500),
            response_factory(text=RSS_XML),
        ]

        source = RssMentionSource(
            ["https://bad.example.com/feed", "https://example.com/feed.xml"]
        )
        items = await source.fetch_mentions(["fastapi"])

        assert len(items) == 1
        assert source.warnings == (
            "RSS feed https://bad.example.com/feed: Failed to fetch feed (500)",
        )

    @pytest.mark.asyncio
    async def test_rss_source_raises_when_all_fail(self, mock_httpx_client, response_factory):
        mock_httpx_client.get.return_value = response_factory(status_code=500)

        with pytest.raises(SourceError, match="All RSS feeds failed"):
            await RssMentionSource(["https://bad.example.com/feed"]).fetch_mentions(["x"])
