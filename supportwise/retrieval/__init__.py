from .relevance_scorer import RelevanceScorer
from .knowledge_index import KnowledgeIndex, get_index
from .context_assembler import assemble, build_contact_info_message

__all__ = [
    "RelevanceScorer",
    "KnowledgeIndex",
    "get_index",
    "assemble",
    "build_contact_info_message"
]
