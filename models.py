from pydantic import BaseModel
from typing import List, Optional

# --- GYM CATALOG ---
class PassTypeResponse(BaseModel):
    id: str
    name: str
    duration_days: int
    price: str  # Decimal serialized as string, e.g. "50.00"
    currency: str

class GymResponse(BaseModel):
    id: str
    name: str
    location: Optional[str] = None
    qr_identifier: str
    pass_types: List[PassTypeResponse]

# --- PURCHASE ---
class PurchasePassRequest(BaseModel):
    pass_type_id: str
    device_id: Optional[str] = None

class PurchaseResponse(BaseModel):
    pass_id: str
    order_id: str
    client_secret: Optional[str] = None
    amount: int  # Minor units
    currency: str
    publishable_key: Optional[str] = None
    test_mode: bool = False

# --- PAYMENT ---
class ConfirmPaymentRequest(BaseModel):
    pass_id: str
    payment_id: str
    device_id: Optional[str] = None

class PurchasedPass(BaseModel):
    id: str
    pass_type_id: str
    pass_type_name: Optional[str] = None
    duration_days: Optional[int] = None
    user_id: Optional[str] = None
    device_id: Optional[str] = None
    purchase_date: str
    expiry_date: str
    payment_status: str  # pending, succeeded, failed
    qr_code_value: Optional[str] = None
    is_active: bool

class ConfirmPaymentResponse(BaseModel):
    success: bool
    purchased_pass: PurchasedPass

class PassStatusResponse(BaseModel):
    pass_id: str
    status: str
    qr_code_value: Optional[str] = None
    expiry_date: Optional[str] = None

# --- VALIDATION ---
class PassHolder(BaseModel):
    user_id: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None
    device_id: Optional[str] = None

class PassDetails(BaseModel):
    pass_id: str
    pass_type: str
    gym_name: Optional[str] = None
    purchase_date: str
    expiry_date: str
    remaining_minutes: int
    remaining_hours: int
    amount: str
    currency: str
    status: str
    holder: PassHolder

class ValidationResponse(BaseModel):
    valid: bool
    reason: Optional[str] = None
    pass_details: Optional[PassDetails] = None

# --- USERS ---
class UserProfileRequest(BaseModel):
    email: Optional[str] = None
    name: Optional[str] = None
    phone_number: Optional[str] = None

class UserProfile(BaseModel):
    id: str
    email: Optional[str] = None
    name: Optional[str] = None
    phone_number: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
