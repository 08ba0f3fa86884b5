# home_value_service/models/message.py
import uuid
from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
    text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from home_value_service.db.base_class import Base
from home_value_service.models.home_value import _utcnow


class HomeValueMessage(Base):
    __tablename__ = "home_value_messages"
    __table_args__ = (
        Index("idx_home_value_messages_thread", "request_id", "created_at"),
        # A message needs text or at least one image.
        CheckConstraint(
            "body <> '' OR json_array_length(images) > 0",
            name="check_message_not_empty",
        ),
    )

    id = Column(
        String, primary_key=True, default=lambda: f"hvm_{uuid.uuid4().hex[:12]}"
    )
    request_id = Column(
        String,
        ForeignKey("home_value_requests.id", ondelete="CASCADE"),
        nullable=False,
    )
    sender_id = Column(String, nullable=False)
    body = Column(Text, nullable=False, default="", server_default="")
    images = Column(JSON, nullable=False, default=list)
    is_read = Column(Boolean, nullable=False, default=False, server_default=text("false"))

    created_at = Column(
        DateTime(timezone=True), nullable=False, default=_utcnow, server_default=func.now()
    )

    # Relationships
    request = relationship("HomeValueRequest", back_populates="messages")
