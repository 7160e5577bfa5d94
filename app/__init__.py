"""Arr Calendar application package."""

from __future__ import annotations

from importlib import import_module
from typing import Any

_EXPORTS: dict[str, str] = {
    "app": "app.main",
    "create_app": "app.main",
    "content_key": "app.identity",
    "filter_items": "app.pipeline",
    "deduplicate": "app.pipeline",
    "bucket_by_date": "app.pipeline",
    "derive_events": "app.pipeline",
    "calendar_window": "app.window",
    "CalendarViewState": "app.view_state",
}

__all__ = list(_EXPORTS)


def __getattr__(name: str) -> Any:
    module_name = _EXPORTS.get(name)
    if module_name is None:
        raise AttributeError(f"module 'app' has no attribute {name}")
    return getattr(import_module(module_name), name)
