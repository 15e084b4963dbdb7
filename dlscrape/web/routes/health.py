"""Database connectivity check."""

from __future__ import annotations

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, status

from dlscrape.web.app import AppContext, get_context
from dlscrape.web.errors import ApiFailure

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["health"])


@router.get("/test-db")
async def test_db(
    ctx: Annotated[AppContext, Depends(get_context)],
) -> dict[str, Any]:
    """Verify the store accepts writes by round-tripping a document."""
    try:
        count = await ctx.store.self_test()
    except Exception as e:
        logger.error(f"Database test failed: {e}", exc_info=True)
        raise ApiFailure(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Database test failed",
            error=str(e),
        ) from e
    return {
        "success": True,
        "message": "Database connection and write permission verified",
        "documentCount": count,
    }
