"""Domain models for the user administration front-end."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, Mapping

from pydantic import BaseModel, field_validator
from pydantic import ValidationError as PydanticValidationError

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

EDITABLE_FIELDS = ("first_name", "last_name", "email")


class ValidationError(ValueError):
    """Raised when form input is rejected before any network call is made."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field
        self.message = message


@dataclass(frozen=True)
class UserRecord:
    """A user as returned by the remote ``/api/users`` endpoints."""

    id: int
    first_name: str
    last_name: str
    email: str
    avatar: str = ""

    @staticmethod
    def from_payload(data: Mapping[str, object]) -> "UserRecord":
        """Create a :class:`UserRecord` from an API payload entry."""
        if not isinstance(data, Mapping):
            raise ValueError("User payload must be an object")
        missing = {"id", "first_name", "last_name", "email"} - data.keys()
        if missing:
            raise ValueError(f"User payload is missing fields: {', '.join(sorted(missing))}")
        try:
            user_id = int(data["id"])  # type: ignore[arg-type]
        except (TypeError, ValueError) as exc:
            raise ValueError("User payload has a non-numeric id") from exc

        return UserRecord(
            id=user_id,
            first_name=str(data["first_name"]),
            last_name=str(data["last_name"]),
            email=str(data["email"]),
            avatar=str(data.get("avatar") or ""),
        )

    def editable_fields(self) -> Dict[str, str]:
        return {
            "first_name": self.first_name,
            "last_name": self.last_name,
            "email": self.email,
        }

    def matches(self, term: str) -> bool:
        """Case-insensitive substring match over names and email."""
        needle = term.lower()
        return (
            needle in self.first_name.lower()
            or needle in self.last_name.lower()
            or needle in self.email.lower()
        )


def _coerce_text(value: object) -> str:
    if value is None:
        return ""
    return str(value)


class UserUpdate(BaseModel):
    """Body of ``PUT /api/users/{id}``."""

    first_name: str = ""
    last_name: str = ""
    email: str = ""

    @field_validator("first_name", "last_name", "email", mode="before")
    @classmethod
    def _coerce(cls, value: object) -> str:
        return _coerce_text(value)

    @field_validator("first_name", "last_name")
    @classmethod
    def _require_name(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("All fields are required.")
        return value

    @field_validator("email")
    @classmethod
    def _validate_email(cls, value: str) -> str:
        if not value:
            raise ValueError("All fields are required.")
        if not EMAIL_PATTERN.match(value):
            raise ValueError("Please enter a valid email address.")
        return value


class LoginRequest(BaseModel):
    """Body of ``POST /api/login``."""

    email: str = ""
    password: str = ""

    @field_validator("email", "password", mode="before")
    @classmethod
    def _coerce(cls, value: object) -> str:
        return _coerce_text(value)

    @field_validator("email")
    @classmethod
    def _validate_email(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("Email is required")
        if not EMAIL_PATTERN.match(cleaned):
            raise ValueError("Invalid email format")
        return cleaned

    @field_validator("password")
    @classmethod
    def _require_password(cls, value: str) -> str:
        if not value:
            raise ValueError("Password is required")
        return value


def _strip_prefix(message: str) -> str:
    prefix = "Value error, "
    if message.startswith(prefix):
        return message[len(prefix):]
    return message


def validation_errors(exc: PydanticValidationError) -> Dict[str, str]:
    """Map a pydantic error to ``{field: message}``, first error per field."""

    errors: Dict[str, str] = {}
    for error in exc.errors():
        location = error.get("loc") or ("__root__",)
        field = str(location[0])
        errors.setdefault(field, _strip_prefix(str(error.get("msg", "Invalid value"))))
    return errors


def first_validation_error(exc: PydanticValidationError) -> ValidationError:
    field, message = next(iter(validation_errors(exc).items()))
    return ValidationError(field, message)


__all__ = [
    "EDITABLE_FIELDS",
    "EMAIL_PATTERN",
    "LoginRequest",
    "UserRecord",
    "UserUpdate",
    "ValidationError",
    "first_validation_error",
    "validation_errors",
]
