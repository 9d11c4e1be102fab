"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - StudentId, UserId, AddressId wrap UUIDs — never use bare UUID in domain logic
    - UserType values are persisted as integers (1, 10, 11) and never change after creation
    - All enumerated student attributes are str Enums whose values are the wire values

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders
"""

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import NewType
from uuid import UUID


# ─── Identity Types ──────────────────────────────────────────────

StudentId = NewType("StudentId", UUID)
UserId = NewType("UserId", UUID)
AddressId = NewType("AddressId", UUID)
TokenMetadataId = NewType("TokenMetadataId", UUID)


# ─── Enums ───────────────────────────────────────────────────────

class UserType(IntEnum):
    """Role type stored on the User record."""
    STUDENT = 1
    ADMIN = 10
    INSTRUCTOR = 11


class Language(str, Enum):
    SPANISH = "Spanish"
    FRENCH = "French"
    PORTUGUESE = "Portuguese"
    ITALIAN = "Italian"


class Level(str, Enum):
    EC1 = "EC1"
    EC2 = "EC2"


class ChurchMembership(str, Enum):
    MEMBER = "Member"
    NON_MEMBER = "Non-member"


# ─── Value Types ─────────────────────────────────────────────────

@dataclass(frozen=True)
class AssetFile:
    """Binary payload headed for the asset store."""
    content: bytes
    mime_type: str
    filename: str = "avatar"

    @property
    def size(self) -> int:
        return len(self.content)


@dataclass(frozen=True)
class DeletionResult:
    """Ids removed by a student deletion. None for records that did not exist."""
    student_id: StudentId
    user_id: UserId | None
    address_id: AddressId | None
    token_metadata_id: TokenMetadataId | None


def parse_uuid(raw: str | UUID, resource_type: str) -> UUID:
    """Parse an identifier or raise ValueError naming the resource."""
    if isinstance(raw, UUID):
        return raw
    try:
        return UUID(str(raw))
    except (ValueError, AttributeError, TypeError):
        raise ValueError(f"Invalid {resource_type.lower()} ID") from None
