# home_value_service/crud/crud_message.py
from typing import List

from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from home_value_service.middleware.error_handler import DataStoreError
from home_value_service.models.home_value import HomeValueRequest
from home_value_service.models.message import HomeValueMessage


class CRUDMessage:
    def create(
        self,
        db: Session,
        *,
        request_id: str,
        sender_id: str,
        body: str,
        images: List[str],
        mark_request_in_progress: bool = False,
    ) -> HomeValueMessage:
        db_obj = HomeValueMessage(
            request_id=request_id,
            sender_id=sender_id,
            body=body,
            images=list(images),
            is_read=False,
        )
        try:
            db.add(db_obj)
            if mark_request_in_progress:
                db.query(HomeValueRequest).filter(
                    HomeValueRequest.id == request_id
                ).update({"status": "in_progress"}, synchronize_session=False)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            raise DataStoreError("Failed to save message") from e
        db.refresh(db_obj)
        return db_obj

    def get_thread(self, db: Session, *, request_id: str) -> List[HomeValueMessage]:
        return (
            db.query(HomeValueMessage)
            .filter(HomeValueMessage.request_id == request_id)
            .order_by(HomeValueMessage.created_at.asc(), HomeValueMessage.id.asc())
            .all()
        )

    def mark_thread_read(self, db: Session, *, request_id: str, reader_id: str) -> int:
        """Flag every unread message the reader did not write as read."""
        try:
            count = (
                db.query(HomeValueMessage)
                .filter(
                    HomeValueMessage.request_id == request_id,
                    HomeValueMessage.sender_id != reader_id,
                    HomeValueMessage.is_read == False,
                )
                .update({"is_read": True}, synchronize_session=False)
            )
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            raise DataStoreError("Failed to mark messages as read") from e
        return count

    def count_unread_for_user(self, db: Session, *, user_id: str) -> int:
        """Unread messages from the other party across every thread the user takes part in."""
        return (
            db.query(func.count(HomeValueMessage.id))
            .join(HomeValueRequest, HomeValueRequest.id == HomeValueMessage.request_id)
            .filter(
                HomeValueMessage.is_read == False,
                HomeValueMessage.sender_id != user_id,
                or_(
                    HomeValueRequest.owner_id == user_id,
                    HomeValueRequest.expert_id == user_id,
                ),
            )
            .scalar()
        ) or 0


message = CRUDMessage()
