"""
Chat Assistant Services

This package contains the grounded chat pipeline:
- Generation (Claude integration)
- Conversation persistence
- The assistant that ties search, history and generation together
"""

from reelsense.services.rag.assistant import APOLOGY_MESSAGE, ChatAssistant
from reelsense.services.rag.conversation_service import ConversationService
from reelsense.services.rag.generator import ChatGenerator, get_generator

__all__ = [
    "APOLOGY_MESSAGE",
    "ChatAssistant",
    "ConversationService",
    "ChatGenerator",
    "get_generator",
]
