from fastapi import HTTPException

from services.exceptions import (
    ConfigurationValidationError,
    DuplicateIdError,
    InactiveConfigurationError,
    NoWeightError,
    NotFoundError,
    ProtectedDefaultError,
    RiskEngineError,
    ScoreOutOfRangeError,
    VersionConflictError,
)

_STATUS_BY_ERROR: list[tuple[type[RiskEngineError], int]] = [
    (NotFoundError, 404),
    (DuplicateIdError, 409),
    (ProtectedDefaultError, 409),
    (VersionConflictError, 409),
    (InactiveConfigurationError, 409),
    (ConfigurationValidationError, 400),
    (NoWeightError, 422),
    (ScoreOutOfRangeError, 422),
]


def to_http(exc: RiskEngineError) -> HTTPException:
    """Map a domain error to an HTTPException carrying the original message."""
    for error_type, status in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return HTTPException(status_code=status, detail=str(exc))
    return HTTPException(status_code=400, detail=str(exc))
