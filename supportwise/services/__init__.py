from .completion_service import CompletionService, SamplingConfig
from .translation_service import TranslationService, detect_language

__all__ = [
    "CompletionService",
    "SamplingConfig",
    "TranslationService",
    "detect_language"
]
