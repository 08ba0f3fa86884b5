# home_value_service/api/deps.py
from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt

from home_value_service.core.config import settings
from home_value_service.middleware.error_handler import AuthenticationRequired, InvalidToken
from home_value_service.schemas.token import TokenPayload
from home_value_service.services.home_value_service import HomeValueService
from home_value_service.services.image_storage import (
    ImageAttachmentPipeline,
    ImageStorage,
    build_image_storage,
)

# `tokenUrl` is only used by the OpenAPI docs; tokens are issued by the
# accounts service. auto_error is off so a missing token (401) can be told
# apart from a bad one (403).
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="token", auto_error=False)


def get_current_user(token: str | None = Depends(oauth2_scheme)) -> TokenPayload:
    if not token:
        raise AuthenticationRequired()
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
        # Validate the payload against our schema
        token_data = TokenPayload(**payload)
    except (JWTError, ValueError):
        # Catches any error from jose or Pydantic validation
        raise InvalidToken()

    return token_data


_image_storage: ImageStorage | None = None


def get_image_storage() -> ImageStorage:
    """Storage backend built once from settings and shared by all requests."""
    global _image_storage
    if _image_storage is None:
        _image_storage = build_image_storage(settings)
    return _image_storage


def get_home_value_service(
    storage: ImageStorage = Depends(get_image_storage),
) -> HomeValueService:
    pipeline = ImageAttachmentPipeline(
        storage,
        max_size_bytes=settings.MAX_IMAGE_SIZE_BYTES,
        max_files=settings.MAX_IMAGES_PER_UPLOAD,
    )
    return HomeValueService(
        pipeline,
        mark_in_progress_on_expert_reply=settings.MARK_IN_PROGRESS_ON_EXPERT_REPLY,
    )
