"""Student Schemas — Pydantic models with field-level validation for the student aggregate.

Invariants:
    - Create models require every user/address/student field except address.neighborhood,
      churchMembership and wardId
    - Update models make every field optional; emptiness and forbidden fields are
      checked by core/validate_student.py, not here
    - Unknown fields are rejected (extra="forbid")
    - Response models never expose password_hash

Design Decisions:
    - camelCase aliases: the admin frontend speaks camelCase, snake_case still accepted
    - Literal-free: str Enums from core/domain_types.py carry the allowed values
"""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

from app.core.domain_types import ChurchMembership, Language, Level

POSTAL_CODE_PATTERN = r"^\d{5}$"
PHONE_PATTERN = r"^[0-9\-+() ]{7,15}$"
PASSWORD_MIN_LENGTH = 8


class _WireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="forbid",
        str_strip_whitespace=True,
    )


# --- Create -------------------------------------------------------------------

class UserCreate(_WireModel):
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(min_length=PASSWORD_MIN_LENGTH, max_length=256)

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return v.lower()


class AddressCreate(_WireModel):
    street: str = Field(min_length=1, max_length=200)
    neighborhood: str | None = Field(None, max_length=200)
    city: str = Field(min_length=1, max_length=100)
    state: str = Field(min_length=1, max_length=100)
    country: str = Field(min_length=1, max_length=100)
    postal_code: str = Field(pattern=POSTAL_CODE_PATTERN)


class StudentCreate(_WireModel):
    """Full create payload — user, address and student fields together."""
    user: UserCreate
    address: AddressCreate
    birth_date: date
    phone: str = Field(pattern=PHONE_PATTERN)
    language: Language
    level: Level
    church_membership: ChurchMembership | None = None
    ward_id: UUID | None = None


# --- Update -------------------------------------------------------------------

class UserUpdate(_WireModel):
    first_name: str | None = Field(None, min_length=1, max_length=100)
    last_name: str | None = Field(None, min_length=1, max_length=100)
    email: EmailStr | None = None
    password: str | None = Field(None, min_length=PASSWORD_MIN_LENGTH, max_length=256)

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str | None) -> str | None:
        return v.lower() if v else v


class AddressUpdate(_WireModel):
    street: str | None = Field(None, min_length=1, max_length=200)
    neighborhood: str | None = Field(None, min_length=1, max_length=200)
    city: str | None = Field(None, min_length=1, max_length=100)
    state: str | None = Field(None, min_length=1, max_length=100)
    country: str | None = Field(None, min_length=1, max_length=100)
    postal_code: str | None = Field(None, pattern=POSTAL_CODE_PATTERN)


class StudentUpdate(_WireModel):
    """Partial update payload. Use model_fields_set to know what was supplied."""
    user: UserUpdate | None = None
    address: AddressUpdate | None = None
    birth_date: date | None = None
    phone: str | None = Field(None, pattern=PHONE_PATTERN)
    language: Language | None = None
    level: Level | None = None
    church_membership: ChurchMembership | None = None
    ward_id: UUID | None = None

    def user_changes(self) -> dict:
        return self.user.model_dump(exclude_unset=True) if self.user else {}

    def address_changes(self) -> dict:
        return self.address.model_dump(exclude_unset=True) if self.address else {}

    def student_changes(self) -> dict:
        return self.model_dump(exclude_unset=True, exclude={"user", "address"})


# --- Responses ----------------------------------------------------------------

class _ResponseModel(BaseModel):
    model_config = ConfigDict(
        from_attributes=True, alias_generator=to_camel, populate_by_name=True,
    )


class UserResponse(_ResponseModel):
    id: UUID
    first_name: str
    last_name: str
    email: str
    type: int
    avatar: str
    created_at: datetime
    updated_at: datetime


class AddressResponse(_ResponseModel):
    id: UUID
    street: str
    neighborhood: str | None
    city: str
    state: str
    country: str
    postal_code: str


class StudentResponse(_ResponseModel):
    """Populated student — user (without password) and address embedded."""
    id: UUID
    user: UserResponse
    address: AddressResponse | None
    birth_date: date
    phone: str
    language: str
    level: str
    church_membership: str | None
    ward_id: UUID | None
    created_at: datetime
    updated_at: datetime


class DeletionResponse(_ResponseModel):
    student_id: UUID
    user_id: UUID | None
    address_id: UUID | None
    token_metadata_id: UUID | None
