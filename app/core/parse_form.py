"""Multipart Field Parsing — rebuilds a nested payload from flat form-data fields.

Invariants:
    - parse_form_fields is PURE: returns a new dict, never mutates the input
    - Values that look like JSON objects/arrays are decoded; undecodable ones are kept raw
    - "parent.child" keys nest one level (user.firstName -> {"user": {"firstName": ...}})

Design Decisions:
    - Supports both encodings the admin frontend sends: a JSON string per object
      (user='{"firstName": "Ana"}') and dot notation (user.firstName=Ana)
    - Raw strings are handed to pydantic unchanged; type coercion is the schema's job
"""

import json
import logging
from collections.abc import Mapping
from typing import Any

logger = logging.getLogger(__name__)


def parse_form_fields(fields: Mapping[str, Any]) -> dict:
    """Convert flat multipart fields into the nested JSON payload shape."""
    nested: dict[str, Any] = {}
    for key, value in fields.items():
        if _looks_like_json(value):
            try:
                _merge(nested, key, json.loads(value))
                continue
            except json.JSONDecodeError:
                logger.warning(f"Form field '{key}' is not valid JSON, kept as string")
        if "." in key:
            parent, child = key.split(".", 1)
            bucket = nested.setdefault(parent, {})
            if isinstance(bucket, dict):
                bucket[child] = value
                continue
        nested[key] = value
    return nested


def _looks_like_json(value: Any) -> bool:
    return isinstance(value, str) and value.lstrip().startswith(("{", "["))


def _merge(nested: dict, key: str, value: Any) -> None:
    existing = nested.get(key)
    if isinstance(existing, dict) and isinstance(value, dict):
        existing.update(value)
    else:
        nested[key] = value
