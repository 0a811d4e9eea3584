"""Web API layer."""

from ramadan_timer.api.app import create_app
from ramadan_timer.api.dependencies import get_app_state

__all__ = ["create_app", "get_app_state"]
