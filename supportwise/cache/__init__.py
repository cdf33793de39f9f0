from .knowledge_base_cache import KnowledgeBaseCache

__all__ = [
    "KnowledgeBaseCache"
]
