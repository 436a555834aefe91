"""
URL management and analytics endpoints.

POST   /api/url                          create (ephemeral when anonymous)
GET    /api/url                          list the caller's durable URLs
GET    /api/url/{short_id}               details (limited view for non-owners)
DELETE /api/url/{short_id}               owner-only delete
GET    /api/url/{short_id}/analytics     owner-only analytics
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from dependencies import get_analytics, get_requester_id, get_url_service
from errors import AuthenticationError, NotFoundError
from schemas.dto.requests.url import CreateUrlRequest
from schemas.dto.responses.analytics import AnalyticsResponse
from schemas.dto.responses.common import MessageResponse
from schemas.dto.responses.url import PublicUrlResponse, UrlResponse
from services.analytics import AnalyticsAggregator
from services.url_service import UrlService

router = APIRouter(prefix="/api/url", tags=["urls"])


def _require_user(requester_id: Optional[str]) -> str:
    if not requester_id:
        raise AuthenticationError("Authentication required")
    return requester_id


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=UrlResponse,
)
async def create_url(
    body: CreateUrlRequest,
    requester_id: Optional[str] = Depends(get_requester_id),
    service: UrlService = Depends(get_url_service),
) -> UrlResponse:
    url = await service.create_short_url(
        body.original_url,
        custom_id=body.custom_id,
        user_id=requester_id,
        title=body.title,
    )
    return UrlResponse.from_doc(url)


@router.get("", response_model=list[UrlResponse])
async def list_urls(
    requester_id: Optional[str] = Depends(get_requester_id),
    service: UrlService = Depends(get_url_service),
) -> list[UrlResponse]:
    user_id = _require_user(requester_id)
    return [UrlResponse.from_doc(url) for url in await service.list_user_urls(user_id)]


@router.get("/{short_id}", response_model=None)
async def get_url(
    short_id: str,
    requester_id: Optional[str] = Depends(get_requester_id),
    service: UrlService = Depends(get_url_service),
) -> JSONResponse:
    url = await service.get_url(short_id)
    if url is None:
        raise NotFoundError("URL not found")
    if url.user_id and not url.is_owned_by(requester_id):
        body = PublicUrlResponse.from_doc(url)
    else:
        body = UrlResponse.from_doc(url)
    return JSONResponse(content=body.model_dump(mode="json", by_alias=True))


@router.delete("/{short_id}", response_model=MessageResponse)
async def delete_url(
    short_id: str,
    requester_id: Optional[str] = Depends(get_requester_id),
    service: UrlService = Depends(get_url_service),
) -> MessageResponse:
    user_id = _require_user(requester_id)
    if await service.delete_url(short_id, user_id) is None:
        raise NotFoundError("URL not found or you do not have permission to delete it")
    return MessageResponse(success=True, message="URL deleted successfully")


@router.get(
    "/{short_id}/analytics",
    response_model=AnalyticsResponse,
)
async def get_url_analytics(
    short_id: str,
    requester_id: Optional[str] = Depends(get_requester_id),
    analytics: AnalyticsAggregator = Depends(get_analytics),
) -> AnalyticsResponse:
    user_id = _require_user(requester_id)
    result = await analytics.get_analytics(short_id, user_id)
    if result is None:
        raise NotFoundError(
            "URL not found or you do not have permission to view analytics"
        )
    return result
