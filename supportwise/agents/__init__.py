from .base_agent import BaseAgent
from .session_context_agent import SessionContextAgent
from .suggestion_agent import SuggestionAgent, SuggestionParser
from .response_orchestration_agent import ResponseOrchestrationAgent, validate_chat_message

__all__ = [
    "BaseAgent",
    "SessionContextAgent",
    "SuggestionAgent",
    "SuggestionParser",
    "ResponseOrchestrationAgent",
    "validate_chat_message"
]
