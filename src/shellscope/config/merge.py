"""Layered merging of config dicts (system, user, project, environment)."""

from __future__ import annotations

from functools import reduce
from typing import Any


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return a new dict with override layered on top of base.

    Nested dicts merge key by key; any other value, lists included, replaces
    the base value outright. A None in override leaves the base value alone
    at every depth, so a layer can mention a key without setting it. Neither
    input is modified.
    """
    merged = dict(base)
    for key, value in override.items():
        if value is None:
            continue
        if isinstance(value, dict):
            current = merged.get(key)
            merged[key] = deep_merge(current if isinstance(current, dict) else {}, value)
        else:
            merged[key] = value
    return merged


def merge_configs(*configs: dict[str, Any]) -> dict[str, Any]:
    """Merge layers lowest priority first; empty layers are skipped."""
    return reduce(deep_merge, (c for c in configs if c), {})
