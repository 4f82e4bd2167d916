"""
Error taxonomy shared by services and the HTTP layer.

Services raise these; ``paperbank.main`` maps each one to a single HTTP status
and the common ``{"error": {...}}`` envelope.
"""
from typing import Any, Dict, List, Optional, Type, TypeVar

import pydantic
from fastapi import status

ModelT = TypeVar("ModelT", bound=pydantic.BaseModel)


class PaperBankError(Exception):
    """Base class for every error the application raises on purpose."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_type: str = "internal_error"

    def __init__(self, message: str, details: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "message": self.message,
            "type": self.error_type,
            "status_code": self.status_code,
        }
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(PaperBankError):
    status_code = status.HTTP_400_BAD_REQUEST
    error_type = "validation_error"


class AuthenticationError(PaperBankError):
    status_code = status.HTTP_401_UNAUTHORIZED
    error_type = "authentication_error"


class AuthorizationError(PaperBankError):
    status_code = status.HTTP_403_FORBIDDEN
    error_type = "authorization_error"


class NotFoundError(PaperBankError):
    status_code = status.HTTP_404_NOT_FOUND
    error_type = "not_found"


class RenderingError(PaperBankError):
    """The document engine failed; no partial document is ever returned."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_type = "rendering_error"


def error_details(errors: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Reduce pydantic error dicts to JSON-safe field-level problems."""
    return [
        {
            "loc": [str(part) for part in err.get("loc", ())],
            "msg": err.get("msg", ""),
            "type": err.get("type", ""),
        }
        for err in errors
    ]


def parse_model(model: Type[ModelT], data: Any, message: str = "Invalid input data") -> ModelT:
    """Validate ``data`` against ``model``, raising ValidationError on failure."""
    if isinstance(data, model):
        return data
    try:
        return model.model_validate(data)
    except pydantic.ValidationError as exc:
        raise ValidationError(message, details=error_details(exc.errors())) from exc
