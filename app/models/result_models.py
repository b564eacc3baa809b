from pydantic import BaseModel, Field
from typing import Optional
from enum import Enum


class FieldErrorKind(str, Enum):
    MISSING_FIELD = "MISSING_FIELD"
    INVALID_NUMBER = "INVALID_NUMBER"
    INVALID_DATE = "INVALID_DATE"
    INVALID_BOOLEAN = "INVALID_BOOLEAN"
    INVALID_STRING = "INVALID_STRING"


class FieldError(BaseModel):
    """Single field-scoped validation failure (the field the client focuses)."""
    field: str
    kind: FieldErrorKind
    message: str


class RegistrationErrorCode(str, Enum):
    NAME_REQUIRED = "VALIDATION_NAME_REQUIRED"
    VALIDATION_FAILED = "VALIDATION_FAILED"
    NAME_COLLISION = "NAME_COLLISION"
    ROOM_NOT_FOUND = "ROOM_NOT_FOUND"
    STORE_ERROR = "STORE_ERROR"


class RegistrationError(BaseModel):
    code: RegistrationErrorCode
    message: str
    field_error: Optional[FieldError] = None
    appliance_id: Optional[str] = None
    retryable: bool = Field(default=False)


class SubmissionErrorCode(str, Enum):
    VALIDATION_FAILED = "VALIDATION_FAILED"
    INVALID_CYCLE = "INVALID_CYCLE"
    RECORD_EXISTS = "RECORD_EXISTS"
    STORE_ERROR = "STORE_ERROR"


class SubmissionError(BaseModel):
    code: SubmissionErrorCode
    message: str
    field_error: Optional[FieldError] = None
    retryable: bool = Field(default=False)


class ModuleErrorCode(str, Enum):
    LABEL_REQUIRED = "VALIDATION_LABEL_REQUIRED"
    KEY_SPACE_EXHAUSTED = "KEY_SPACE_EXHAUSTED"
    NOT_FOUND = "NOT_FOUND"
    STORE_ERROR = "STORE_ERROR"


class ModuleError(BaseModel):
    code: ModuleErrorCode
    message: str
    retryable: bool = Field(default=False)
