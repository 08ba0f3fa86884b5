from .error_handler import (
    AppError,
    ErrorCategory,
    ValidationError,
    AuthenticationRequired,
    InvalidToken,
    Forbidden,
    AccessDenied,
    NotFound,
    AlreadyAssigned,
    FileTooLarge,
    UnsupportedMediaType,
    StorageError,
    DataStoreError,
    app_error_handler,
    validation_error_handler,
    database_error_handler,
)
