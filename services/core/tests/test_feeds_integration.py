"""Integration tests for the feed proxy and contact form endpoints."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import AsyncClient

from insight_core.api.deps import get_mailer
from insight_core.domain.models import AuditLog
from insight_core.domain.services.mailer import MailerError

ATOM_XML = """<?xml version="1.0" encoding="utf-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <title>Example Atom</title>
  <link href="https://example.org/"/>
  <updated>2024-05-01T12:00:00Z</updated>
  <entry>
    <title>First post</title>
    <link href="https://example.org/first"/>
    <id>urn:uuid:1225c695-cfb8-4ebb-aaaa-80da344efa6a</id>
    <updated>2024-05-01T12:00:00Z</updated>
    <summary>Hello &lt;em&gt;world&lt;/em&gt;</summary>
    <author><name>Jane</name></author>
  </entry>
</feed>
"""


class TestFeedProxy:
    """Integration tests for GET /feed."""

    @pytest.mark.asyncio
    async def test_requires_authentication(self, client: AsyncClient):
        """Test anonymous requests are rejected."""
        response = await client.get("/feed", params={"url": "https://example.org/feed"})

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_missing_url(self, user_client: AsyncClient):
        """Test a missing url parameter returns 400."""
        response = await user_client.get("/feed")

        assert response.status_code == 400
        assert response.json()["detail"] == "Feed URL is required"

    @pytest.mark.asyncio
    async def test_invalid_url(self, user_client: AsyncClient):
        """Test a non-http URL returns 400."""
        response = await user_client.get("/feed", params={"url": "file:///etc/passwd"})

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_returns_xml_with_cache_header(
        self, user_client: AsyncClient, mock_httpx_client, response_factory
    ):
        """Test the raw XML is proxied with a five minute cache."""
        mock_httpx_client.get.return_value = response_factory(text=ATOM_XML)

        response = await user_client.get("/feed", params={"url": "https://example.org/feed"})

        assert response.status_code == 200
        assert response.text == ATOM_XML
        assert response.headers["content-type"].startswith("application/xml")
        assert response.headers["cache-control"] == "max-age=300"

    @pytest.mark.asyncio
    async def test_upstream_failure(
        self, user_client: AsyncClient, mock_httpx_client, response_factory
    ):
        """Test upstream errors become 500 Failed to fetch feed."""
        mock_httpx_client.get.return_value = response_factory(status_code=502)

        response = await user_client.get("/feed", params={"url": "https://example.org/feed"})

        assert response.status_code == 500
        assert response.json()["detail"] == "Failed to fetch feed"

    @pytest.mark.asyncio
    async def test_parsed_feed(
        self, user_client: AsyncClient, mock_httpx_client, response_factory
    ):
        """Test the parsed endpoint returns entries as JSON."""
        mock_httpx_client.get.return_value = response_factory(text=ATOM_XML)

        response = await user_client.get(
            "/feed/parsed", params={"url": "https://example.org/feed"}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["title"] == "Example Atom"
        entry = data["entries"][0]
        assert entry["id"] == "urn:uuid:1225c695-cfb8-4ebb-aaaa-80da344efa6a"
        assert entry["link"] == "https://example.org/first"
        assert entry["summary"] == "Hello world"
        assert entry["author"] == "Jane"
        assert entry["published"].startswith("2024-05-01T12:00:00")


@pytest.fixture
def contact_mailer(test_app, test_settings):
    """Configure email settings and mock the mailer."""
    test_settings.contact_recipient = "support@example.com"
    mailer = MagicMock()
    mailer.enabled = True
    mailer.send_async = AsyncMock()
    test_app.dependency_overrides[get_mailer] = lambda: mailer
    return mailer


class TestContactForm:
    """Integration tests for POST /contact."""

    @pytest.mark.asyncio
    async def test_sends_email_with_reply_to(
        self, client: AsyncClient, contact_mailer, db_session
    ):
        """Test the submission is emailed to support with Reply-To set."""
        response = await client.post(
            "/contact",
            json={"name": "Ada", "email": "ada@example.com", "message": "Hello!"},
        )

        assert response.status_code == 200
        assert response.json()["message"] == "Your message has been sent."
        sent = contact_mailer.send_async.await_args.kwargs
        assert sent["to"] == "support@example.com"
        assert sent["reply_to"] == "ada@example.com"
        assert sent["subject"] == "New Contact Form Submission from Ada"
        assert "Hello!" in sent["text"]
        entry = db_session.query(AuditLog).filter_by(action_type="contact.submit").one()
        assert entry.actor == "system"

    @pytest.mark.asyncio
    async def test_unconfigured_email(self, client: AsyncClient):
        """Test missing SMTP settings return a configuration error."""
        response = await client.post(
            "/contact",
            json={"name": "Ada", "email": "ada@example.com", "message": "Hello!"},
        )

        assert response.status_code == 500
        assert response.json()["detail"] == "Server configuration error. Email cannot be sent."

    @pytest.mark.asyncio
    async def test_send_failure(self, client: AsyncClient, contact_mailer):
        """Test SMTP failures return a generic error."""
        contact_mailer.send_async.side_effect = MailerError("smtp down")

        response = await client.post(
            "/contact",
            json={"name": "Ada", "email": "ada@example.com", "message": "Hello!"},
        )

        assert response.status_code == 500
        assert response.json()["detail"] == "Failed to send message. Please try again later."

    @pytest.mark.asyncio
    async def test_missing_fields(self, client: AsyncClient):
        """Test all fields are required."""
        response = await client.post("/contact", json={"name": "Ada"})

        assert response.status_code == 422
