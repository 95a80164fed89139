"""
Payment Routes - client payment confirmation and provider webhook
"""
from fastapi import APIRouter, Depends, Header, Request
from typing import Optional
from auth import get_optional_user_id
from config import WEBHOOK_SIGNATURE_HEADER
from service_modules.pass_service import get_pass_service, PassService
from service_modules.webhook_service import get_webhook_service, WebhookService
from models import ConfirmPaymentRequest, ConfirmPaymentResponse
import logging

logger = logging.getLogger("gym_pass")
router = APIRouter()


@router.post("/api/payments/confirm", response_model=ConfirmPaymentResponse)
async def confirm_payment(
    request_data: ConfirmPaymentRequest,
    user_id: Optional[str] = Depends(get_optional_user_id),
    service: PassService = Depends(get_pass_service)
):
    """Mark a pass as paid and issue its QR code."""
    logger.info(f"CONFIRM: pass {request_data.pass_id} with payment {request_data.payment_id}")
    purchased = service.confirm_payment(
        request_data.pass_id,
        request_data.payment_id,
        caller_user_id=user_id,
        device_id=request_data.device_id
    )
    return {"success": True, "purchased_pass": purchased}


# --- PAYMENT PROVIDER WEBHOOK ---

@router.post("/api/webhook")
async def payment_webhook(
    request: Request,
    signature: Optional[str] = Header(None, alias=WEBHOOK_SIGNATURE_HEADER),
    service: WebhookService = Depends(get_webhook_service)
):
    """Handle payment provider webhook events. The signature covers the raw body."""
    payload = await request.body()

    return service.handle_payment_webhook(payload, signature)
