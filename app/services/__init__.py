"""Services Layer — transactional orchestration of the Student aggregate.

Invariants:
    - Services own transactions and asset-store side effects; stores never commit
    - Only the delete path retries (delete_retry.py)

Design Decisions:
    - One coordinator per aggregate, with a separate retry wrapper for deletion
"""
