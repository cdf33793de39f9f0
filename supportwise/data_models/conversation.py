from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

USER_ROLE = "user"
ASSISTANT_ROLE = "assistant"


@dataclass(frozen=True)
class ConversationTurn:
    role: str  # user | assistant
    content: str

    def __post_init__(self):
        if self.role not in (USER_ROLE, ASSISTANT_ROLE):
            raise ValueError(f"Unsupported conversation role: {self.role}")

    @classmethod
    def user(cls, content: str) -> "ConversationTurn":
        return cls(role=USER_ROLE, content=content)

    @classmethod
    def assistant(cls, content: str) -> "ConversationTurn":
        return cls(role=ASSISTANT_ROLE, content=content)

    def to_message(self) -> Dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass
class DebugInfo:
    context_found: int = 0
    max_score: float = 0.0
    has_ai: bool = False
    was_translated: bool = False
    original_language: str = "unknown"
    path: str = ""  # which orchestrator branch produced the reply

    def to_dict(self) -> Dict[str, Any]:
        return {
            "context_found": self.context_found,
            "max_score": round(self.max_score, 4),
            "has_ai": self.has_ai,
            "was_translated": self.was_translated,
            "original_language": self.original_language,
            "path": self.path,
        }


@dataclass
class ChatResult:
    response: str
    suggestions: List[str] = field(default_factory=list)
    is_new_conversation: bool = False
    initial_message: Optional[str] = None
    debug: DebugInfo = field(default_factory=DebugInfo)
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "response": self.response,
            "suggestions": list(self.suggestions),
            "is_new_conversation": self.is_new_conversation,
            "initial_message": self.initial_message,
            "debug": self.debug.to_dict(),
        }
        if self.error:
            result["error"] = self.error
        return result
