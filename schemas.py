from pydantic import BaseModel, ConfigDict, EmailStr, Field
from typing import List, Optional

from models import ItemCondition, RequestStatus, Role


# Request schemas (what clients send to API)
class SignUpRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    phone: str = Field(..., min_length=1, max_length=20)
    password: str = Field(..., min_length=6)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class ScrapItemCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    working_price_min: int = Field(0, ge=0)
    working_price_max: int = Field(0, ge=0)
    not_working_price_min: int = Field(0, ge=0)
    not_working_price_max: int = Field(0, ge=0)


class ScrapItemPrices(BaseModel):
    id: str
    working_price_min: int = Field(..., ge=0)
    working_price_max: int = Field(..., ge=0)
    not_working_price_min: int = Field(..., ge=0)
    not_working_price_max: int = Field(..., ge=0)


class StatusUpdate(BaseModel):
    status: RequestStatus


class ContactCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    phone: Optional[str] = Field(None, max_length=20)
    message: str = Field(..., min_length=1)

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "name": "Ravi Kumar",
            "email": "ravi@example.com",
            "phone": "+919876543210",
            "message": "Do you pick up old refrigerators?",
        }
    })


# Response schemas (what API sends back to clients)
class CurrentUser(BaseModel):
    id: str
    email: Optional[str] = None
    name: Optional[str] = None
    role: Role = Role.USER

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


class SessionResponse(BaseModel):
    access_token: str
    refresh_token: Optional[str] = None
    token_type: str = "bearer"
    user_id: str
    role: Role


class PriceRange(BaseModel):
    min: int
    max: int


class PriceCard(BaseModel):
    id: str
    name: str
    condition: ItemCondition
    min: int
    max: int


class RequestStats(BaseModel):
    pending: int = 0
    scheduled: int = 0
    completed: int = 0
    total: int = 0


class AdminStats(BaseModel):
    total_users: int = 0
    total_requests: int = 0
    pending_requests: int = 0
    scheduled_requests: int = 0
    completed_requests: int = 0


class ContactLinks(BaseModel):
    whatsapp: str
    call: str
    map: str


class PincodeLookup(BaseModel):
    pincode: str
    city: str
    state: str
    localities: List[str] = []


class StatusResponse(BaseModel):
    success: bool
    message: str
