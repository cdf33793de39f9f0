import logging

from langdetect import DetectorFactory, LangDetectException, detect_langs

from supportwise.data_models import TranslationInfo
from supportwise.exceptions import UpstreamError
from supportwise.retrieval.text import STOPWORDS, tokenize
from .completion_service import SamplingConfig

logger = logging.getLogger(__name__)

TRANSLATION_SAMPLING = SamplingConfig(max_tokens=200, temperature=0.0, top_p=1.0)

# Below this many tokens langdetect guesses wildly on plain ASCII keywords.
MIN_DETECTABLE_TOKENS = 3
MIN_DETECTION_PROBABILITY = 0.9

LANGUAGE_NAMES = {
    "en": "English", "es": "Spanish", "fr": "French", "de": "German", "it": "Italian",
    "pt": "Portuguese", "nl": "Dutch", "ar": "Arabic", "ur": "Urdu", "hi": "Hindi",
    "tr": "Turkish", "ru": "Russian", "zh-cn": "Chinese", "ja": "Japanese",
}


def detect_language(text: str, primary_language: str = "en") -> str:
    """
    Best-effort language code for text; primary_language when unsure.

    A non-primary language is only reported when langdetect is at least
    MIN_DETECTION_PROBABILITY confident in it.
    """
    tokens = tokenize(text)
    if not tokens:
        return primary_language
    if text.isascii():
        if len(tokens) < MIN_DETECTABLE_TOKENS:
            return primary_language
        # Short English questions confuse langdetect; stop words are a reliable tell.
        if primary_language == "en" and any(t in STOPWORDS for t in tokens):
            return "en"
    try:
        candidates = detect_langs(text)
    except LangDetectException:
        logger.info(f"Language detection failed for '{text[:50]}'. Assuming '{primary_language}'.")
        return primary_language
    if not candidates:
        return primary_language

    best = candidates[0]
    if best.lang != primary_language and best.prob < MIN_DETECTION_PROBABILITY:
        logger.info(f"Low-confidence detection '{best.lang}' ({best.prob:.2f}) for '{text[:50]}'. Assuming '{primary_language}'.")
        return primary_language
    return best.lang


class TranslationService:
    """
    Detects non-primary-language queries and translates them through the completion service.

    Creating a service seeds langdetect's process-wide DetectorFactory so
    detection is deterministic for every caller in the process.
    """

    def __init__(self, completion_service, primary_language: str = "en"):
        DetectorFactory.seed = 0
        self.completion_service = completion_service
        self.primary_language = primary_language

    async def detect_and_translate(self, text: str) -> TranslationInfo:
        language = detect_language(text, self.primary_language)
        if language == self.primary_language:
            return TranslationInfo(was_translated=False, source_language=language, original_text=text, translated_text=text)

        target = LANGUAGE_NAMES.get(self.primary_language, self.primary_language)
        system_prompt = (
            f"Translate the user's message into {target}. "
            "Reply with the translation only, without quotes or explanations."
        )
        try:
            translated = await self.completion_service.complete(
                system_prompt, [{"role": "user", "content": text}], TRANSLATION_SAMPLING
            )
        except UpstreamError:
            raise
        except Exception as e:
            raise UpstreamError("Translation failed", details=str(e)) from e

        logger.info(f"Translated query from '{language}': '{text[:100]}' -> '{translated[:100]}'")
        return TranslationInfo(was_translated=True, source_language=language, original_text=text, translated_text=translated.strip())
