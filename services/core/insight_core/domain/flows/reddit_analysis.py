"""External Reddit user analysis.

Fetches a public Reddit account's karma, creation date and newest posts and
comments, and stores the snapshot for the dashboard user who requested it.

Unlike mention gathering, failures here raise RedditAnalysisError: a failed
profile lookup or a failed save is shown to the user directly.

Usage:
    analysis = await analyze_external_reddit_user(
        db, username="spez", app_user_id=user.id
    )
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from insight_core.config import Settings, get_settings
from insight_core.domain.flows.clients import build_reddit_client, get_api_key_service
from insight_core.domain.services.reddit_profiles import (
    RedditProfileService,
    normalize_reddit_username,
)
from insight_core.observability.logging import get_logger
from insight_core.providers.base import ProfileItemType, RedditProfileItem
from insight_core.providers.reddit.auth import OAuthError
from insight_core.providers.reddit.client import (
    MAX_PROFILE_ITEMS,
    RedditAPIError,
    RedditClient,
)

log = get_logger(__name__)


class RedditAnalysisError(Exception):
    """Raised when a Reddit profile cannot be analyzed or saved."""

    def __init__(self, message: str, status_code: int = 0):
        super().__init__(message)
        self.status_code = status_code


@dataclass
class RedditUserAnalysis:
    """Result of one analysis run."""

    username: str
    account_created: Optional[datetime] = None
    total_post_karma: int = 0
    total_comment_karma: int = 0
    subreddits_posted_in: list[str] = field(default_factory=list)
    total_posts_fetched_this_run: int = 0
    total_comments_fetched_this_run: int = 0
    fetched_posts_details: list[dict[str, Any]] = field(default_factory=list)
    fetched_comments_details: list[dict[str, Any]] = field(default_factory=list)
    last_refreshed_at: Optional[datetime] = None
    is_placeholder: bool = False
    suspension_status: Optional[str] = None
    error: Optional[str] = None

    def to_columns(self) -> dict[str, Any]:
        """Column values for RedditProfileService.save_analysis."""
        return {
            "account_created": self.account_created,
            "total_post_karma": self.total_post_karma,
            "total_comment_karma": self.total_comment_karma,
            "subreddits_posted_in": self.subreddits_posted_in,
            "total_posts_fetched_this_run": self.total_posts_fetched_this_run,
            "total_comments_fetched_this_run": self.total_comments_fetched_this_run,
            "fetched_posts_details": self.fetched_posts_details,
            "fetched_comments_details": self.fetched_comments_details,
            "last_refreshed_at": self.last_refreshed_at,
            "suspension_status": self.suspension_status,
        }


def _iso(ts: Optional[float]) -> str:
    if ts is None:
        return datetime.now(timezone.utc).isoformat()
    return datetime.fromtimestamp(float(ts), tz=timezone.utc).isoformat()


def _subreddit(data: dict[str, Any]) -> str:
    return data.get("subreddit_name_prefixed") or f"r/{data.get('subreddit', 'unknown')}"


def map_profile_post(data: dict[str, Any]) -> RedditProfileItem:
    return RedditProfileItem(
        id=data.get("id", ""),
        title_or_content=data.get("title") or "",
        subreddit=_subreddit(data),
        timestamp=_iso(data.get("created_utc")),
        score=int(data.get("score") or 0),
        num_comments=int(data.get("num_comments") or 0),
        url=f"{RedditClient.WEB_URL}{data.get('permalink', '')}",
        type=ProfileItemType.POST,
    )


def map_profile_comment(data: dict[str, Any]) -> RedditProfileItem:
    return RedditProfileItem(
        id=data.get("id", ""),
        title_or_content=data.get("body") or "",
        subreddit=_subreddit(data),
        timestamp=_iso(data.get("created_utc")),
        score=int(data.get("score") or 0),
        url=f"{RedditClient.WEB_URL}{data.get('permalink', '')}",
        type=ProfileItemType.COMMENT,
    )


async def _fetch_listing(
    client: RedditClient, username: str, kind: str, child_kind: str
) -> list[dict[str, Any]]:
    """Fetch one listing; failures and malformed bodies are logged and yield no items."""
    try:
        response = await client.fetch_user_listing(username, kind, MAX_PROFILE_ITEMS)
    except (OAuthError, RedditAPIError) as e:
        log.warning("Reddit listing request failed", username=username, kind=kind, error=str(e))
        return []

    if response.status_code != 200:
        log.warning(
            "Reddit listing fetch failed",
            username=username,
            kind=kind,
            status_code=response.status_code,
        )
        return []

    try:
        payload = response.json()
    except ValueError as e:
        log.warning(
            "Reddit listing returned invalid JSON", username=username, kind=kind, error=str(e)
        )
        return []

    if not isinstance(payload, dict):
        return []
    children = (payload.get("data") or {}).get("children", [])
    return [child.get("data", {}) for child in children if child.get("kind") == child_kind]


async def fetch_reddit_user_analysis(
    client: RedditClient, username: str
) -> RedditUserAnalysis:
    """Fetch and assemble an analysis without persisting it.

    Raises:
        RedditAnalysisError: If no token can be obtained or the profile
            lookup fails or returns a malformed body.
    """
    try:
        about = await client.fetch_user_about(username)
    except OAuthError as e:
        raise RedditAnalysisError(f"Failed to obtain Reddit access token: {e}")
    except RedditAPIError as e:
        raise RedditAnalysisError(f"Failed to fetch user details for u/{username}: {e}")

    if about.status_code != 200:
        raise RedditAnalysisError(
            f"Failed to fetch user details for u/{username} ({about.status_code})",
            about.status_code,
        )

    try:
        about_payload = about.json()
    except ValueError as e:
        raise RedditAnalysisError(
            f"Invalid response for user details of u/{username}: {e}", 502
        )
    if not isinstance(about_payload, dict):
        raise RedditAnalysisError(
            f"Invalid response for user details of u/{username}", 502
        )
    about_data = about_payload.get("data") or {}
    analysis = RedditUserAnalysis(username=username)

    if about_data.get("is_suspended"):
        analysis.suspension_status = "suspended"
    if about_data.get("created_utc"):
        analysis.account_created = datetime.fromtimestamp(
            float(about_data["created_utc"]), tz=timezone.utc
        )
    analysis.total_post_karma = int(about_data.get("link_karma") or 0)
    analysis.total_comment_karma = int(about_data.get("comment_karma") or 0)

    posts = [map_profile_post(d) for d in await _fetch_listing(client, username, "submitted", "t3")]
    comments = [map_profile_comment(d) for d in await _fetch_listing(client, username, "comments", "t1")]

    subreddits: list[str] = []
    for item in [*posts, *comments]:
        if item.subreddit not in subreddits:
            subreddits.append(item.subreddit)

    analysis.subreddits_posted_in = subreddits
    analysis.total_posts_fetched_this_run = len(posts)
    analysis.total_comments_fetched_this_run = len(comments)
    analysis.fetched_posts_details = [item.to_dict() for item in posts]
    analysis.fetched_comments_details = [item.to_dict() for item in comments]
    analysis.last_refreshed_at = datetime.now(timezone.utc)
    return analysis


async def analyze_external_reddit_user(
    db: Session,
    username: str,
    app_user_id: Optional[str] = None,
    client: Optional[RedditClient] = None,
    settings: Optional[Settings] = None,
) -> RedditUserAnalysis:
    """Analyze a public Reddit account and store the result.

    Args:
        db: SQLAlchemy session.
        username: Reddit username, with or without a ``u/`` prefix.
        app_user_id: Dashboard user to store the analysis under. When
            omitted the analysis is returned without being saved.
        client: Override the Reddit client.
        settings: Override application settings.

    Returns:
        The analysis. A blank username returns a placeholder with ``error``
        set instead of raising.

    Raises:
        RedditAnalysisError: If fetching the profile or saving it fails.
    """
    username = normalize_reddit_username(username)
    if not username:
        return RedditUserAnalysis(
            username="", is_placeholder=True, error="Reddit username is required."
        )

    settings = settings or get_settings()
    profiles = RedditProfileService(db)
    if client is None:
        client = build_reddit_client(get_api_key_service(db, settings), settings)

    try:
        analysis = await fetch_reddit_user_analysis(client, username)
    except RedditAnalysisError as e:
        log.error("Reddit user analysis failed", username=username, error=str(e))
        if app_user_id:
            profiles.record_error(
                app_user_id,
                username,
                str(e),
                suspension_status="not_found" if e.status_code == 404 else None,
            )
        raise

    if app_user_id:
        try:
            profiles.save_analysis(app_user_id, username, analysis.to_columns())
        except SQLAlchemyError as e:
            db.rollback()
            log.error(
                "Saving Reddit analysis failed",
                username=username,
                user_id=app_user_id,
                exc_info=True,
            )
            raise RedditAnalysisError(
                f"Failed to save analysis to database for u/{username}: {e}"
            )

    log.info(
        "Reddit user analyzed",
        username=username,
        posts=analysis.total_posts_fetched_this_run,
        comments=analysis.total_comments_fetched_this_run,
    )
    return analysis
