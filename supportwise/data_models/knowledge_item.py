from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple


@dataclass(frozen=True)
class KnowledgeEntry:
    question: str
    answer: str
    category: str = "general"  # label, not unique
    priority: int = 0  # higher wins score ties

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "KnowledgeEntry":
        try:
            priority = int(record.get("priority") or 0)
        except (TypeError, ValueError):
            priority = 0
        return cls(
            question=str(record.get("question") or "").strip(),
            answer=str(record.get("answer") or "").strip(),
            category=str(record.get("category") or "general").strip() or "general",
            priority=priority,
        )


@dataclass(frozen=True)
class ScoredEntry:
    entry: KnowledgeEntry
    score: float
    index: int  # position in the knowledge base, used as the final tie-break

    @property
    def category(self) -> str:
        return self.entry.category

    def to_dict(self) -> Dict[str, Any]:
        return {
            "question": self.entry.question,
            "answer": self.entry.answer,
            "category": self.entry.category,
            "priority": self.entry.priority,
            "score": round(self.score, 4),
        }


@dataclass(frozen=True)
class TranslationInfo:
    was_translated: bool = False
    source_language: str = "unknown"
    original_text: str = ""
    translated_text: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "was_translated": self.was_translated,
            "source_language": self.source_language,
            "original_text": self.original_text,
            "translated_text": self.translated_text,
        }


@dataclass(frozen=True)
class RetrievalResult:
    entries: Tuple[ScoredEntry, ...] = ()
    max_score: float = 0.0
    translation_info: TranslationInfo = field(default_factory=TranslationInfo)

    @classmethod
    def empty(cls, translation_info: TranslationInfo = None) -> "RetrievalResult":
        return cls(entries=(), max_score=0.0, translation_info=translation_info or TranslationInfo())

    def to_dict(self) -> Dict[str, Any]:
        results: List[Dict[str, Any]] = [scored.to_dict() for scored in self.entries]
        return {
            "entries": results,
            "max_score": round(self.max_score, 4),
            "translation_info": self.translation_info.to_dict(),
        }
