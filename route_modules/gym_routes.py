"""
Gym Routes - gym discovery by scanned QR identifier
"""
from fastapi import APIRouter, Depends
from service_modules.gym_service import get_gym_service, GymService
from models import GymResponse

router = APIRouter()


@router.get("/api/gym/{qr_identifier}", response_model=GymResponse)
async def get_gym(
    qr_identifier: str,
    service: GymService = Depends(get_gym_service)
):
    """Fetch a gym and its pass types by the identifier encoded in its QR code."""
    return service.get_gym_by_qr_identifier(qr_identifier)
