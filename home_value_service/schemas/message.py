# home_value_service/schemas/message.py
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel


class HomeValueMessage(BaseModel):
    id: str
    request_id: str
    sender_id: str
    body: str = ""
    images: List[str] = []
    is_read: bool = False
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class ThreadMessage(HomeValueMessage):
    # 'self' when the viewer wrote the message, 'other' otherwise.
    message_type: Literal["self", "other"]
