"""Infrastructure Layer — database, stores, asset store client, and cross-cutting concerns.

Invariants:
    - Infrastructure never imports from services/ or api/
    - Stores never commit: the coordinator owns every transaction
    - External calls (asset store) wrapped with retry/timeout/error mapping

Design Decisions:
    - Resilient wrappers over raw clients (single responsibility)
"""
