"""Local stand-in for the front-end dev server proxy.

Only mounted when ``APP_ENV=development``: forwards ``/api/analyze`` to the
production webhook so browser clients avoid CORS during development.
"""

import logging

import httpx
from fastapi import APIRouter, Request
from fastapi.responses import Response

from app.core.config import PRODUCTION_WEBHOOK_URL, settings

logger = logging.getLogger(__name__)

router = APIRouter()

_FORWARDED_HEADERS = ("content-type", "accept")


@router.post("/api/analyze", include_in_schema=False)
async def dev_proxy_analyze(request: Request):
    body = await request.body()
    headers = {name: request.headers[name] for name in _FORWARDED_HEADERS if name in request.headers}
    try:
        async with httpx.AsyncClient(timeout=settings.analyze_timeout_s) as client:
            upstream = await client.post(PRODUCTION_WEBHOOK_URL, content=body, headers=headers)
    except httpx.HTTPError as exc:
        logger.warning("dev_proxy_upstream_failed target=%s: %s", PRODUCTION_WEBHOOK_URL, exc)
        return Response(status_code=502, content=str(exc) or type(exc).__name__, media_type="text/plain")

    return Response(
        status_code=upstream.status_code,
        content=upstream.content,
        media_type=upstream.headers.get("content-type", "application/json"),
    )
