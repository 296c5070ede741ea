"""Aggregate application use cases."""

from .notifications import (
    build_notification_processor,
    get_preferences,
    seed_default_templates,
    update_preferences,
)

__all__ = [
    "build_notification_processor",
    "get_preferences",
    "seed_default_templates",
    "update_preferences",
]
