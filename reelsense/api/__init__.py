"""
API routes initialization.

This module aggregates all API routers and provides a single router
to include in the main application. Everything lives under ``/ai``.
"""

from fastapi import APIRouter

from reelsense.api.routes import admin, chat, recommendations, search

# Create main API router
api_router = APIRouter(prefix="/ai")

# Semantic search
api_router.include_router(search.router)

# Recommendations
api_router.include_router(recommendations.router)

# Assistant chat and conversations
api_router.include_router(chat.router)

# Embedding maintenance
api_router.include_router(admin.router)
