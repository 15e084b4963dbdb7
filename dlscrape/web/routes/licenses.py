"""REST API endpoints for license records.

This module provides endpoints for:
- Scraping a record from the portal and storing it
- Listing stored records
- Getting or deleting a stored record by reference number
"""

from __future__ import annotations

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query, status

from dlscrape.web.app import AppContext, get_context
from dlscrape.web.errors import ApiFailure

logger = logging.getLogger(__name__)

scrape_router = APIRouter(prefix="/api/scrape", tags=["scrape"])
router = APIRouter(prefix="/api/licenses", tags=["licenses"])


def _require_reference_no(reference_no: str) -> str:
    reference_no = reference_no.strip()
    if not reference_no:
        raise ApiFailure(
            status.HTTP_400_BAD_REQUEST, "Reference number is required"
        )
    return reference_no


@scrape_router.get("/{reference_no}")
async def scrape_license(
    reference_no: str,
    ctx: Annotated[AppContext, Depends(get_context)],
    refresh: bool = Query(
        False, description="Ignore the cached record and scrape again"
    ),
) -> dict[str, Any]:
    """Extract a license record and store it.

    An existing document with the same reference number is updated in
    place; otherwise a new one is created.
    """
    reference_no = _require_reference_no(reference_no)
    if refresh:
        await ctx.extractor.invalidate(reference_no)

    record = await ctx.extractor.extract(reference_no)
    doc, created = await ctx.store.upsert(record)

    return {
        "success": True,
        "message": f"Data {'saved' if created else 'updated'} successfully!",
        "data": doc.to_api_dict(),
    }


@router.get("")
async def list_licenses(
    ctx: Annotated[AppContext, Depends(get_context)],
) -> dict[str, Any]:
    """All stored licenses with the total count."""
    docs = await ctx.store.list_all()
    return {
        "success": True,
        "message": "All licenses retrieved successfully",
        "totalLicenses": await ctx.store.count(),
        "data": [doc.to_api_dict() for doc in docs],
    }


@router.get("/{reference_no}")
async def get_license(
    reference_no: str,
    ctx: Annotated[AppContext, Depends(get_context)],
) -> dict[str, Any]:
    reference_no = _require_reference_no(reference_no)
    doc = await ctx.store.get(reference_no)
    if doc is None:
        raise ApiFailure(
            status.HTTP_404_NOT_FOUND,
            "License not found with the provided reference number",
        )
    return {
        "success": True,
        "message": "License retrieved successfully",
        "data": doc.to_api_dict(),
    }


@router.delete("/{reference_no}")
async def delete_license(
    reference_no: str,
    ctx: Annotated[AppContext, Depends(get_context)],
) -> dict[str, Any]:
    reference_no = _require_reference_no(reference_no)
    doc = await ctx.store.delete(reference_no)
    if doc is None:
        raise ApiFailure(
            status.HTTP_404_NOT_FOUND,
            "License not found with the provided reference number",
        )
    logger.info(f"Deleted license {reference_no}")
    return {
        "success": True,
        "message": "License deleted successfully",
        "data": doc.to_api_dict(),
    }
