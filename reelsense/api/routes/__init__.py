"""
API route modules.

Import all route modules here for easy access.
"""

from reelsense.api.routes import admin, chat, recommendations, search

__all__ = ["admin", "chat", "recommendations", "search"]
