"""Recommendation blending."""

from reelsense.services.recommendations.blender import SOURCE_PRECEDENCE, RecommendationBlender

__all__ = [
    "RecommendationBlender",
    "SOURCE_PRECEDENCE",
]
