"""
Validation Routes - staff-side pass checks, rate limited per caller address
"""
from fastapi import APIRouter, Depends, Query
from typing import Optional
from rate_limit import enforce_validate_rate_limit
from service_modules.validation_service import get_validation_service, ValidationService
from errors import InvalidInputError
from models import ValidationResponse

router = APIRouter()


@router.get(
    "/api/validate",
    response_model=ValidationResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(enforce_validate_rate_limit)]
)
async def validate_pass(
    pass_id: Optional[str] = Query(None),
    qr: Optional[str] = Query(None),
    service: ValidationService = Depends(get_validation_service)
):
    """Check whether a pass admits entry now. Accepts a pass id or the scanned QR payload."""
    if qr:
        return service.validate_qr(qr)
    if not pass_id:
        raise InvalidInputError("pass_id or qr is required")
    return service.validate(pass_id)
