from enum import Enum
from pydantic import BaseModel
from typing import Optional
from datetime import date, datetime


class Role(str, Enum):
    USER = "user"
    ADMIN = "admin"


class RequestStatus(str, Enum):
    PENDING = "pending"
    SCHEDULED = "scheduled"
    COMPLETED = "completed"


class ItemCondition(str, Enum):
    WORKING = "working"
    NOT_WORKING = "not_working"


class TimeSlot(str, Enum):
    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"


class Profile(BaseModel):
    id: Optional[str] = None
    name: str
    email: str
    phone: Optional[str] = None
    role: Optional[Role] = Role.USER
    created_at: Optional[datetime] = None


class ScrapItem(BaseModel):
    id: Optional[str] = None
    name: str
    working_price_min: int = 0
    working_price_max: int = 0
    not_working_price_min: int = 0
    not_working_price_max: int = 0


class ScrapRequest(BaseModel):
    id: Optional[str] = None
    created_at: Optional[datetime] = None
    user_id: str
    item_type: str  # scrap_items.id
    condition: ItemCondition
    description: Optional[str] = None
    address: str
    city: str
    state: str
    pincode: str
    pickup_date: date
    pickup_time_slot: TimeSlot
    status: Optional[RequestStatus] = RequestStatus.PENDING
    estimated_price_min: int
    estimated_price_max: int


class RequestImage(BaseModel):
    id: Optional[str] = None
    request_id: str
    image_path: str


class ContactSubmission(BaseModel):
    id: Optional[str] = None
    name: str
    email: str
    phone: Optional[str] = None
    message: str
    created_at: Optional[datetime] = None
