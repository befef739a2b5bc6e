"""Payload shape guards for provider responses."""

from __future__ import annotations

MALFORMED_SHAPE_HINT = "unexpected provider payload shape"


def expect_dict(value: object, context: str) -> dict:
    if isinstance(value, dict):
        return value
    value_type = type(value).__name__
    raise ValueError(f"{context} has unexpected type '{value_type}' ({MALFORMED_SHAPE_HINT})")


def optional_list(container: dict, key: str, context: str) -> list:
    value = container.get(key, [])
    if value is None:
        return []
    if isinstance(value, list):
        return value
    value_type = type(value).__name__
    raise ValueError(f"{context}.{key} has unexpected type '{value_type}' ({MALFORMED_SHAPE_HINT})")


def results_payload(payload: object, context: str) -> list:
    root = expect_dict(payload, f"{context} payload")
    error_value = root.get("error")
    if isinstance(error_value, str) and error_value and "results" not in root:
        raise ValueError(f"{context} returned an error without results: {error_value}")
    return optional_list(root, "results", context)
