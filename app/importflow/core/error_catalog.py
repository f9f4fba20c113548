from dataclasses import dataclass
from fastapi import status


@dataclass(frozen=True)
class ErrorDefinition:
    code: str
    message: str
    status_code: int


class ErrorCatalog:
    SHIPMENT_NOT_FOUND = ErrorDefinition(
        "SHIPMENT_NOT_FOUND",
        "Shipment not found",
        status.HTTP_404_NOT_FOUND,
    )
    ARCHIVE_NOT_FOUND = ErrorDefinition(
        "ARCHIVE_NOT_FOUND",
        "Archive not found",
        status.HTTP_404_NOT_FOUND,
    )
    USER_NOT_FOUND = ErrorDefinition(
        "USER_NOT_FOUND",
        "User not found",
        status.HTTP_404_NOT_FOUND,
    )
    INVALID_STATE = ErrorDefinition(
        "INVALID_STATE",
        "Requested status is not a recognized lifecycle stage",
        status.HTTP_400_BAD_REQUEST,
    )
    EMPTY_INPUT = ErrorDefinition(
        "EMPTY_INPUT",
        "No shipments supplied for archiving",
        status.HTTP_400_BAD_REQUEST,
    )
    UNKNOWN_JOB = ErrorDefinition(
        "UNKNOWN_JOB",
        "Unknown scheduled job",
        status.HTTP_400_BAD_REQUEST,
    )
    JOBS_DISABLED = ErrorDefinition(
        "JOBS_DISABLED",
        "Scheduled jobs are disabled",
        status.HTTP_409_CONFLICT,
    )
    DB_UNAVAILABLE = ErrorDefinition(
        "DB_UNAVAILABLE",
        "Database unavailable",
        status.HTTP_503_SERVICE_UNAVAILABLE,
    )
    LOCK_TIMEOUT = ErrorDefinition(
        "LOCK_TIMEOUT",
        "Lock wait timeout",
        status.HTTP_409_CONFLICT,
    )
    VALIDATION_ERROR = ErrorDefinition(
        "VALIDATION_ERROR",
        "Validation error",
        status.HTTP_422_UNPROCESSABLE_ENTITY,
    )
    INTERNAL_ERROR = ErrorDefinition(
        "INTERNAL_ERROR",
        "Internal server error",
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


class AppError(Exception):
    def __init__(self, error: ErrorDefinition, details: object | None = None):
        self.error = error
        self.details = details
        super().__init__(error.message)
