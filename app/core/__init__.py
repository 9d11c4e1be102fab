"""Core Layer — pure domain rules, no IO, no async, no DB.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/, or db/
    - Validation and avatar rules are pure and deterministic

Design Decisions:
    - Functional core separated from imperative shell: the coordinator does the IO,
      core decides what is valid and what may be deleted
"""
