"""ORM Models — SQLAlchemy declarative models for the student aggregate.

Invariants:
    - All models inherit from Base (db/base.py)
    - Student is the aggregate root; User and Address are owned 1:1

Design Decisions:
    - One file per entity for locality
    - All models imported here so SQLAlchemy resolves string-based relationship()
      references before any query runs
"""

from app.models.user import User  # noqa: F401
from app.models.address import Address  # noqa: F401
from app.models.student import Student  # noqa: F401
from app.models.token_metadata import TokenMetadata  # noqa: F401
