"""
FastAPI dependency providers.

Services are built once in the app lifespan and stored on app.state;
these functions hand them to route handlers via Depends().
"""

from __future__ import annotations

from typing import Optional

from fastapi import Header, Request

from services.analytics import AnalyticsAggregator
from services.click_recorder import ClickRecorder
from services.url_service import UrlService


def get_url_service(request: Request) -> UrlService:
    return request.app.state.url_service


def get_click_recorder(request: Request) -> ClickRecorder:
    return request.app.state.click_recorder


def get_analytics(request: Request) -> AnalyticsAggregator:
    return request.app.state.analytics


async def get_requester_id(
    x_user_id: Optional[str] = Header(default=None, alias="X-User-Id"),
) -> Optional[str]:
    """Identity of the signed-in caller, set by the session layer in front of us.

    None means anonymous.
    """
    if x_user_id is None:
        return None
    return x_user_id.strip() or None
