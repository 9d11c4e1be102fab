"""Root conftest — shared test configuration."""

import os

# Ensure tests never reach a real database or asset store
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///test.db")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("ASSET_STORE_TOKEN", "blob-test-token")
os.environ.setdefault("LOG_FORMAT", "text")
