"""Routers module - FastAPI route handlers"""

from . import chat, config

__all__ = ["chat", "config"]
