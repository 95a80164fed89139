"""
Pass Routes - purchase, status polling and listing of purchased passes
"""
from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from typing import List, Optional
from auth import get_optional_user_id
from service_modules.pass_service import get_pass_service, PassService
from models import PurchasePassRequest, PurchaseResponse, PassStatusResponse, PurchasedPass
import logging

logger = logging.getLogger("gym_pass")
router = APIRouter()


@router.post("/api/passes/purchase", response_model=PurchaseResponse)
async def purchase_pass(
    request_data: PurchasePassRequest,
    user_id: Optional[str] = Depends(get_optional_user_id),
    service: PassService = Depends(get_pass_service)
):
    """Create a pending pass and open a payment order for it."""
    logger.info(f"PURCHASE: pass type {request_data.pass_type_id} (user: {user_id}, device: {request_data.device_id})")
    return service.create_pending_purchase(request_data.pass_type_id, user_id, request_data.device_id)


@router.get("/api/passes/active", response_model=List[PurchasedPass])
async def get_active_passes(
    device_id: Optional[str] = Query(None),
    user_id: Optional[str] = Depends(get_optional_user_id),
    service: PassService = Depends(get_pass_service)
):
    """Currently valid passes of the calling device and/or user."""
    return service.get_active_passes(device_id=device_id, user_id=user_id)


@router.get("/api/passes/{pass_id}/status", response_model=PassStatusResponse)
async def get_pass_status(
    pass_id: str,
    user_id: Optional[str] = Depends(get_optional_user_id),
    service: PassService = Depends(get_pass_service)
):
    """Poll payment status; the QR code is included once paid."""
    return service.get_pass_status(pass_id, user_id)


@router.get("/api/passes/{pass_id}/qr.png")
async def get_pass_qr(
    pass_id: str,
    user_id: Optional[str] = Depends(get_optional_user_id),
    service: PassService = Depends(get_pass_service)
):
    """QR code image of a paid pass."""
    image = service.get_pass_qr_png(pass_id, user_id)
    return StreamingResponse(image, media_type="image/png")
