# home_value_service/schemas/home_value.py
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel


class HomeValueRequest(BaseModel):
    id: str
    owner_id: str
    expert_id: Optional[str] = None
    address: str
    images: List[str] = []
    status: str = "pending"
    validated: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class UnreadCount(BaseModel):
    unread_count: int
