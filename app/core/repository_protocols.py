"""Boundary Protocols — contracts for collaborators outside the database transaction.

Invariants:
    - Core NEVER imports from infrastructure — dependency arrows point inward only
    - AssetStore is the only collaborator the coordinator cannot roll back, so every
      upload must be paired with a compensating delete on failure

Design Decisions:
    - Protocol over ABC: structural subtyping, test fakes need no inheritance
"""

from typing import Protocol

from app.core.domain_types import AssetFile


class AssetStore(Protocol):
    """External, non-transactional binary store. delete() must be idempotent."""
    async def upload(self, file: AssetFile) -> str: ...
    async def delete(self, url: str) -> None: ...
    def is_hosted(self, url: str) -> bool: ...
