"""Prometheus scrape endpoint (mounted at the root, not under /api/v1)."""

from fastapi import APIRouter, Response

from chatdash.metrics import render_latest

router = APIRouter()


@router.get("/metrics", include_in_schema=False)
async def metrics():
    body, content_type = render_latest()
    return Response(content=body, media_type=content_type)
