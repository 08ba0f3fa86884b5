# home_value_service/models/home_value.py
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Union

from sqlalchemy import JSON, Boolean, CheckConstraint, Column, DateTime, String, Text, text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from home_value_service.db.base_class import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Unclaimed:
    """No expert has taken the request yet."""


@dataclass(frozen=True)
class Claimed:
    expert_id: str


Assignment = Union[Unclaimed, Claimed]


class HomeValueRequest(Base):
    __tablename__ = "home_value_requests"
    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'in_progress')",
            name="check_home_value_status",
        ),
    )

    id = Column(
        String, primary_key=True, default=lambda: f"hvr_{uuid.uuid4().hex[:12]}"
    )
    owner_id = Column(String, nullable=False, index=True)
    # Set once by the claim workflow, never reassigned.
    expert_id = Column(String, nullable=True, index=True)
    address = Column(Text, nullable=False)
    images = Column(JSON, nullable=False, default=list)
    status = Column(String, nullable=False, default="pending", server_default="pending")  # pending|in_progress
    validated = Column(Boolean, nullable=False, default=False, server_default=text("false"))

    created_at = Column(
        DateTime(timezone=True), nullable=False, default=_utcnow, server_default=func.now()
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
        server_default=func.now(),
    )

    messages = relationship(
        "HomeValueMessage",
        back_populates="request",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="HomeValueMessage.created_at",
    )

    @property
    def assignment(self) -> Assignment:
        if self.expert_id is None:
            return Unclaimed()
        return Claimed(expert_id=self.expert_id)
