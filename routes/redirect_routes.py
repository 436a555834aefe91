"""
GET /{short_id} — redirect a visitor and record the click.

Visitors never see an error body: unknown ids go to /?error=not-found and
unexpected failures to /?error=server. Ephemeral clicks are recorded
before the redirect (in-memory, nothing to wait on but the geolocation);
durable clicks are handed to a detached task so the redirect does not
wait on MongoDB.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse

from dependencies import get_click_recorder, get_url_service
from schemas.models.url import LifecycleClass
from services.click_recorder import ClickRecorder
from services.url_service import UrlService
from shared.ip_utils import get_client_ip
from shared.logging import get_logger, hash_ip, should_sample

log = get_logger(__name__)

router = APIRouter(tags=["redirect"])


@router.get("/{short_id}", include_in_schema=False)
async def redirect_short_url(
    short_id: str,
    request: Request,
    service: UrlService = Depends(get_url_service),
    recorder: ClickRecorder = Depends(get_click_recorder),
) -> RedirectResponse:
    try:
        url = await service.get_url(short_id)
        if url is None:
            return RedirectResponse("/?error=not-found", status_code=307)

        ip = get_client_ip(request)
        user_agent = request.headers.get("user-agent") or "Unknown"

        if url.lifecycle is LifecycleClass.EPHEMERAL:
            await recorder.record_click(short_id, ip=ip, user_agent=user_agent)
        else:
            recorder.record_click_detached(short_id, ip=ip, user_agent=user_agent)

        if should_sample("url_redirect"):
            log.info(
                "url_redirect",
                short_id=short_id,
                scope=url.lifecycle.value,
                ip=hash_ip(ip),
            )
        return RedirectResponse(url.original_url, status_code=307)
    except Exception as e:
        log.error(
            "redirect_failed",
            short_id=short_id,
            error=str(e),
            error_type=type(e).__name__,
        )
        return RedirectResponse("/?error=server", status_code=307)
