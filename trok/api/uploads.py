"""
trok/api/uploads.py

Purpose: Signed upload URLs for onboarding and invoice documents
"""

from fastapi import APIRouter, Depends, Query

from trok.core.logging import get_logger
from trok.services.storage_service import StorageService, get_storage_service

logger = get_logger(__name__)
router = APIRouter()


@router.get("/gcp/upload")
async def create_upload_url(
    filename: str = Query(..., min_length=1),
    crn: str = Query(..., min_length=1, description="Company registration number"),
    type: str = Query(..., min_length=1, description="Document category, e.g. BANK_STATEMENTS"),
    storage: StorageService = Depends(get_storage_service)
):
    logger.debug(f"Upload requested: crn={crn} type={type} filename={filename}")
    return await storage.generate_upload_policy(crn, type, filename)
