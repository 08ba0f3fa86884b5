# home_value_service/schemas/token.py
from enum import Enum

from pydantic import BaseModel


class Role(str, Enum):
    ADMIN = "admin"
    EXPERT = "expert"
    AGENT = "agent"
    USER = "user"


class TokenPayload(BaseModel):
    sub: str  # "sub" is the standard claim for subject (user ID)
    role: Role = Role.USER
    exp: int  # Standard claim for expiration time

    model_config = {"from_attributes": True}

    @property
    def is_expert(self) -> bool:
        return self.role == Role.EXPERT
