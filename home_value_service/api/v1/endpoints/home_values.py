# home_value_service/api/v1/endpoints/home_values.py
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Request, Response, UploadFile, status
from sqlalchemy.orm import Session

from home_value_service.api import deps
from home_value_service.core.config import settings
from home_value_service.core.limiter import limiter
from home_value_service.db.session import get_db
from home_value_service.middleware.error_handler import ValidationError
from home_value_service.schemas.home_value import HomeValueRequest, UnreadCount
from home_value_service.schemas.message import HomeValueMessage, ThreadMessage
from home_value_service.schemas.token import TokenPayload
from home_value_service.services.home_value_service import HomeValueService
from home_value_service.services.image_storage import ImageUpload

router = APIRouter(prefix="/home-values", tags=["Home Values"])


def _read_uploads(files: Optional[List[UploadFile]]) -> List[ImageUpload]:
    """Read multipart files, stopping one byte past the size ceiling."""
    files = files or []
    # Count first: nothing is read from a batch that is already too large.
    if len(files) > settings.MAX_IMAGES_PER_UPLOAD:
        raise ValidationError(
            f"At most {settings.MAX_IMAGES_PER_UPLOAD} images per upload", field="images"
        )
    uploads = []
    for f in files:
        payload = f.file.read(settings.MAX_IMAGE_SIZE_BYTES + 1)
        uploads.append(
            ImageUpload(filename=f.filename, content_type=f.content_type, payload=payload)
        )
    return uploads


@router.post("", response_model=HomeValueRequest)
@limiter.limit(settings.RATE_LIMIT)
def create_home_value_request(
    request: Request,
    address: Optional[str] = Form(None),
    images: Optional[List[UploadFile]] = File(None),
    db: Session = Depends(get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
    service: HomeValueService = Depends(deps.get_home_value_service),
):
    """Submit an address (and up to 10 photos) for valuation."""
    return service.create_request(
        db, actor=current_user, address=address, uploads=_read_uploads(images)
    )


@router.get("", response_model=List[HomeValueRequest])
@router.get("/user-and-expert", response_model=List[HomeValueRequest], include_in_schema=False)
def list_home_value_requests(
    db: Session = Depends(get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
    service: HomeValueService = Depends(deps.get_home_value_service),
):
    """
    Users get the requests they created. Experts get every unclaimed request
    plus the ones assigned to them. Newest first.
    """
    return service.list_requests(db, actor=current_user)


@router.get("/unread-count", response_model=UnreadCount)
def get_unread_count(
    db: Session = Depends(get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
    service: HomeValueService = Depends(deps.get_home_value_service),
):
    return UnreadCount(unread_count=service.unread_count(db, actor=current_user))


@router.get("/{requestId}", response_model=HomeValueRequest)
def get_home_value_request(
    requestId: str,
    db: Session = Depends(get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
    service: HomeValueService = Depends(deps.get_home_value_service),
):
    return service.get_request(db, request_id=requestId, actor=current_user)


@router.patch("/{requestId}", response_model=HomeValueRequest)
def update_home_value_request(
    requestId: str,
    address: Optional[str] = Form(None),
    images: Optional[List[UploadFile]] = File(None),
    db: Session = Depends(get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
    service: HomeValueService = Depends(deps.get_home_value_service),
):
    """Change the address and/or append photos. Owner only."""
    return service.update_request(
        db,
        request_id=requestId,
        actor=current_user,
        address=address,
        uploads=_read_uploads(images),
    )


@router.post("/{requestId}/validate", response_model=HomeValueRequest)
def claim_home_value_request(
    requestId: str,
    db: Session = Depends(get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
    service: HomeValueService = Depends(deps.get_home_value_service),
):
    """Assign an unclaimed request to the calling expert. First claim wins."""
    return service.claim(db, request_id=requestId, actor=current_user)


@router.delete("/{requestId}", status_code=status.HTTP_204_NO_CONTENT)
def delete_home_value_request(
    requestId: str,
    db: Session = Depends(get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
    service: HomeValueService = Depends(deps.get_home_value_service),
):
    """Delete a request and its whole message thread (owner or assigned expert)."""
    service.delete_request(db, request_id=requestId, actor=current_user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{requestId}/messages", response_model=List[ThreadMessage])
def list_home_value_messages(
    requestId: str,
    db: Session = Depends(get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
    service: HomeValueService = Depends(deps.get_home_value_service),
):
    """
    Messages in creation order. Viewing marks the other party's messages as
    read; the response still shows their state from before this call.
    """
    return service.list_messages(db, request_id=requestId, actor=current_user)


@router.post(
    "/{requestId}/messages",
    response_model=HomeValueMessage,
    status_code=status.HTTP_201_CREATED,
)
@limiter.limit(settings.RATE_LIMIT)
def post_home_value_message(
    request: Request,
    requestId: str,
    body: Optional[str] = Form(None),
    message: Optional[str] = Form(None),
    images: Optional[List[UploadFile]] = File(None),
    db: Session = Depends(get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
    service: HomeValueService = Depends(deps.get_home_value_service),
):
    """Send text and/or photos. `message` is accepted as an older name for `body`."""
    return service.post_message(
        db,
        request_id=requestId,
        actor=current_user,
        body=body if body is not None else message,
        uploads=_read_uploads(images),
    )
