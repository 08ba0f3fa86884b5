# home_value_service/services/home_value_service.py
"""
Home Value Workflow Service

Handles business logic for:
- Creating valuation requests with photos
- Experts claiming a request (first claim wins, no unclaim)
- The owner/expert message thread and its read tracking
- Deleting a request together with its thread
"""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from home_value_service.crud import home_value as crud_home_value
from home_value_service.crud import message as crud_message
from home_value_service.middleware.error_handler import (
    AlreadyAssigned,
    DataStoreError,
    Forbidden,
    NotFound,
    ValidationError,
)
from home_value_service.models.home_value import Claimed, HomeValueRequest
from home_value_service.models.message import HomeValueMessage
from home_value_service.schemas.message import HomeValueMessage as MessageSchema
from home_value_service.schemas.message import ThreadMessage
from home_value_service.schemas.token import TokenPayload
from home_value_service.services.access_control import Operation, ensure_authorized
from home_value_service.services.image_storage import ImageAttachmentPipeline, ImageUpload

logger = logging.getLogger(__name__)


class HomeValueService:
    """Service for the home value request/claim/message workflow."""

    def __init__(
        self,
        pipeline: ImageAttachmentPipeline,
        mark_in_progress_on_expert_reply: bool = True,
    ):
        self.pipeline = pipeline
        self.mark_in_progress_on_expert_reply = mark_in_progress_on_expert_reply

    # ========================================
    # Requests
    # ========================================

    def _get_or_404(self, db: Session, request_id: str) -> HomeValueRequest:
        request = crud_home_value.get(db, id=request_id)
        if request is None:
            raise NotFound()
        return request

    def create_request(
        self,
        db: Session,
        *,
        actor: TokenPayload,
        address: Optional[str],
        uploads: List[ImageUpload],
    ) -> HomeValueRequest:
        if not address or not address.strip():
            raise ValidationError("Address is required", field="address")

        locators = self.pipeline.store_batch(uploads)
        try:
            request = crud_home_value.create(
                db, owner_id=actor.sub, address=address.strip(), images=locators
            )
        except DataStoreError:
            self.pipeline.discard(locators)
            raise
        logger.info(f"User {actor.sub} created home value request {request.id}")
        return request

    def list_requests(self, db: Session, *, actor: TokenPayload) -> List[HomeValueRequest]:
        if actor.is_expert:
            return crud_home_value.get_multi_for_expert(db, expert_id=actor.sub)
        return crud_home_value.get_multi_by_owner(db, owner_id=actor.sub)

    def get_request(
        self, db: Session, *, request_id: str, actor: TokenPayload
    ) -> HomeValueRequest:
        request = self._get_or_404(db, request_id)
        ensure_authorized(request, actor, Operation.READ)
        return request

    def update_request(
        self,
        db: Session,
        *,
        request_id: str,
        actor: TokenPayload,
        address: Optional[str],
        uploads: List[ImageUpload],
    ) -> HomeValueRequest:
        if address is not None and not address.strip():
            raise ValidationError("Address cannot be empty", field="address")
        if address is None and not uploads:
            raise ValidationError("Nothing to update")

        request = self._get_or_404(db, request_id)
        ensure_authorized(request, actor, Operation.UPDATE)

        locators = self.pipeline.store_batch(uploads)
        try:
            return crud_home_value.update(
                db,
                db_obj=request,
                address=address.strip() if address is not None else None,
                new_images=locators,
            )
        except DataStoreError:
            self.pipeline.discard(locators)
            raise

    def claim(self, db: Session, *, request_id: str, actor: TokenPayload) -> HomeValueRequest:
        if not actor.is_expert:
            raise Forbidden()

        if not crud_home_value.claim(db, id=request_id, expert_id=actor.sub):
            # The conditional write already decided the outcome; this read
            # only picks the error to report.
            if crud_home_value.get(db, id=request_id) is None:
                raise NotFound()
            raise AlreadyAssigned()

        logger.info(f"Expert {actor.sub} claimed home value request {request_id}")
        return self._get_or_404(db, request_id)

    def delete_request(self, db: Session, *, request_id: str, actor: TokenPayload) -> None:
        request = self._get_or_404(db, request_id)
        ensure_authorized(request, actor, Operation.DELETE)

        locators = list(request.images or [])
        for msg in crud_message.get_thread(db, request_id=request_id):
            locators.extend(msg.images or [])

        if not crud_home_value.remove_with_messages(db, id=request_id):
            raise NotFound()
        self.pipeline.discard(locators)

    # ========================================
    # Messages
    # ========================================

    def post_message(
        self,
        db: Session,
        *,
        request_id: str,
        actor: TokenPayload,
        body: Optional[str],
        uploads: List[ImageUpload],
    ) -> HomeValueMessage:
        body = body or ""
        if not body.strip() and not uploads:
            raise ValidationError("Message or images required", field="body")

        request = self._get_or_404(db, request_id)
        ensure_authorized(request, actor, Operation.WRITE_MESSAGE)

        expert_reply = request.assignment == Claimed(expert_id=actor.sub)
        locators = self.pipeline.store_batch(uploads)
        try:
            return crud_message.create(
                db,
                request_id=request_id,
                sender_id=actor.sub,
                body=body,
                images=locators,
                mark_request_in_progress=(
                    expert_reply and self.mark_in_progress_on_expert_reply
                ),
            )
        except DataStoreError:
            self.pipeline.discard(locators)
            raise

    def list_messages(
        self, db: Session, *, request_id: str, actor: TokenPayload
    ) -> List[ThreadMessage]:
        """
        Return the thread in creation order, then mark it read for the viewer.

        Viewing is a write: every message from the other party is flagged read
        by `mark_thread_read` after the snapshot is taken, so the returned
        items still show which messages were new to the viewer.
        """
        request = self._get_or_404(db, request_id)
        ensure_authorized(request, actor, Operation.READ)

        thread = [
            ThreadMessage(
                **MessageSchema.model_validate(msg).model_dump(),
                message_type="self" if msg.sender_id == actor.sub else "other",
            )
            for msg in crud_message.get_thread(db, request_id=request_id)
        ]
        self.mark_thread_read(db, request_id=request_id, reader_id=actor.sub)
        return thread

    def mark_thread_read(self, db: Session, *, request_id: str, reader_id: str) -> int:
        return crud_message.mark_thread_read(db, request_id=request_id, reader_id=reader_id)

    def unread_count(self, db: Session, *, actor: TokenPayload) -> int:
        return crud_message.count_unread_for_user(db, user_id=actor.sub)
