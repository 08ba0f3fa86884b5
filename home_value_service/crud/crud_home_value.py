# home_value_service/crud/crud_home_value.py
import logging
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from home_value_service.middleware.error_handler import DataStoreError
from home_value_service.models.home_value import HomeValueRequest, _utcnow
from home_value_service.models.message import HomeValueMessage

logger = logging.getLogger(__name__)


class CRUDHomeValue:
    def get(self, db: Session, *, id: str) -> Optional[HomeValueRequest]:
        return db.query(HomeValueRequest).filter(HomeValueRequest.id == id).first()

    def create(
        self, db: Session, *, owner_id: str, address: str, images: List[str]
    ) -> HomeValueRequest:
        db_obj = HomeValueRequest(
            owner_id=owner_id,
            address=address,
            images=list(images),
            expert_id=None,
        )
        try:
            db.add(db_obj)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            raise DataStoreError("Failed to save home value request") from e
        db.refresh(db_obj)
        return db_obj

    def get_multi_by_owner(self, db: Session, *, owner_id: str) -> List[HomeValueRequest]:
        return (
            db.query(HomeValueRequest)
            .filter(HomeValueRequest.owner_id == owner_id)
            .order_by(HomeValueRequest.created_at.desc())
            .all()
        )

    def get_multi_for_expert(self, db: Session, *, expert_id: str) -> List[HomeValueRequest]:
        """Unclaimed requests plus the ones this expert already holds."""
        return (
            db.query(HomeValueRequest)
            .filter(
                or_(
                    HomeValueRequest.expert_id.is_(None),
                    HomeValueRequest.expert_id == expert_id,
                )
            )
            .order_by(HomeValueRequest.created_at.desc())
            .all()
        )

    def claim(self, db: Session, *, id: str, expert_id: str) -> bool:
        """
        Assign the request to `expert_id` if nobody holds it yet.

        This is one conditional UPDATE evaluated by the database, so two
        experts racing for the same request cannot both win. Returns False
        when no row matched (missing or already assigned).
        """
        try:
            matched = (
                db.query(HomeValueRequest)
                .filter(
                    HomeValueRequest.id == id,
                    HomeValueRequest.expert_id.is_(None),
                )
                .update(
                    {
                        "expert_id": expert_id,
                        "validated": True,
                        "updated_at": _utcnow(),
                    },
                    synchronize_session=False,
                )
            )
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            raise DataStoreError("Failed to assign home value request") from e
        return matched == 1

    def update(
        self,
        db: Session,
        *,
        db_obj: HomeValueRequest,
        address: Optional[str] = None,
        new_images: Optional[List[str]] = None,
    ) -> HomeValueRequest:
        if address is not None:
            db_obj.address = address
        if new_images:
            # Images are append-only; assign a new list so the JSON column is flagged dirty.
            db_obj.images = [*(db_obj.images or []), *new_images]
        try:
            db.add(db_obj)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            raise DataStoreError("Failed to update home value request") from e
        db.refresh(db_obj)
        return db_obj

    def remove_with_messages(self, db: Session, *, id: str) -> bool:
        """Delete the request and its whole thread in one transaction."""
        try:
            messages_deleted = (
                db.query(HomeValueMessage)
                .filter(HomeValueMessage.request_id == id)
                .delete(synchronize_session=False)
            )
            deleted = (
                db.query(HomeValueRequest)
                .filter(HomeValueRequest.id == id)
                .delete(synchronize_session=False)
            )
            if deleted == 0:
                db.rollback()
                return False
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            raise DataStoreError("Failed to delete home value request") from e

        logger.info(f"Deleted home value request {id} and {messages_deleted} messages")
        return True


home_value = CRUDHomeValue()
