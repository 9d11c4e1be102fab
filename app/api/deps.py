"""API Dependencies — wires settings, database and asset store into the coordinator.

Invariants:
    - Configuration (default avatar, size limit, retry bound) is read here once per request
      and passed into constructors; services never read settings themselves
    - Singletons (db_manager, asset_store) are looked up at call time so tests can swap them

Design Decisions:
    - FastAPI Depends over a service locator: tests override get_asset_store / get_coordinator
      through app.dependency_overrides
"""

from fastapi import Depends

from app.config import get_settings
from app.core.repository_protocols import AssetStore
from app.infrastructure import asset_store as asset_store_module
from app.infrastructure.database import get_manager
from app.services.delete_retry import DeleteRetryController
from app.services.student_coordinator import StudentCoordinator


def get_asset_store() -> AssetStore:
    if asset_store_module.asset_store is None:
        raise RuntimeError("Asset store not initialized")
    return asset_store_module.asset_store


def get_coordinator(
    assets: AssetStore = Depends(get_asset_store),
) -> StudentCoordinator:
    settings = get_settings()
    return StudentCoordinator(
        get_manager(),
        assets,
        default_avatar_url=settings.default_avatar_url,
        max_avatar_bytes=settings.avatar_max_bytes,
    )


def get_delete_controller(
    coordinator: StudentCoordinator = Depends(get_coordinator),
) -> DeleteRetryController:
    settings = get_settings()
    return DeleteRetryController(
        coordinator,
        max_attempts=settings.delete_max_attempts,
        delay_ms=settings.delete_retry_delay_ms,
    )
