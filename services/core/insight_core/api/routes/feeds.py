"""Feed proxy routes.

- GET /feed?url= - Raw feed XML, cacheable for five minutes
- GET /feed/parsed?url= - The same feed parsed to JSON
"""

from typing import Optional

from fastapi import APIRouter, HTTPException, Query, Response, status

from insight_core.api.deps import CurrentUser, SettingsDep
from insight_core.api.schemas.feeds import ParsedFeedResponse
from insight_core.observability.logging import get_logger
from insight_core.providers.feeds import FeedError, fetch_feed_xml, parse_feed

log = get_logger(__name__)

router = APIRouter(prefix="/feed", tags=["feeds"])

FEED_CACHE_CONTROL = "max-age=300"


async def _fetch(url: Optional[str], timeout: float) -> str:
    if not url:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Feed URL is required"
        )
    try:
        xml, _ = await fetch_feed_xml(url, timeout=timeout)
    except FeedError as e:
        if e.status_code == 400:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
        log.warning("Feed proxy fetch failed", url=url, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch feed",
        )
    return xml


@router.get("")
async def proxy_feed(
    current_user: CurrentUser,
    settings: SettingsDep,
    url: Optional[str] = Query(None, description="Feed URL"),
) -> Response:
    """Fetch a feed server-side and return its XML."""
    xml = await _fetch(url, settings.feed_timeout_seconds)
    return Response(
        content=xml,
        media_type="application/xml",
        headers={"Cache-Control": FEED_CACHE_CONTROL},
    )


@router.get("/parsed", response_model=ParsedFeedResponse)
async def parsed_feed(
    current_user: CurrentUser,
    settings: SettingsDep,
    url: Optional[str] = Query(None, description="Feed URL"),
) -> ParsedFeedResponse:
    """Fetch a feed and return its entries as JSON."""
    xml = await _fetch(url, settings.feed_timeout_seconds)
    try:
        feed = parse_feed(xml)
    except FeedError as e:
        log.warning("Feed proxy parse failed", url=url, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to parse feed",
        )
    return ParsedFeedResponse(**feed.to_dict())
