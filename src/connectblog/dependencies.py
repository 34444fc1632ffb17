"""Shared FastAPI dependencies for process-wide components.

The components live on ``app.state`` (built by ``create_app``) so tests and
alternative deployments can swap them.
"""

from fastapi import Request

from connectblog.cache.response_cache import ResponseCache
from connectblog.social.notification_service import NotificationEngine


def get_response_cache(request: Request) -> ResponseCache:
    return request.app.state.response_cache


def get_notifier(request: Request) -> NotificationEngine:
    return request.app.state.notifier