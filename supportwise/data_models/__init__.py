from .knowledge_item import KnowledgeEntry, ScoredEntry, TranslationInfo, RetrievalResult
from .business import BusinessContext, BusinessProfile, ContactInfo
from .conversation import ConversationTurn, ChatResult, DebugInfo

__all__ = [
    "KnowledgeEntry",
    "ScoredEntry",
    "TranslationInfo",
    "RetrievalResult",
    "BusinessContext",
    "BusinessProfile",
    "ContactInfo",
    "ConversationTurn",
    "ChatResult",
    "DebugInfo"
]
