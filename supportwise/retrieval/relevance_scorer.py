import logging
from typing import List, Sequence, Tuple

from supportwise.data_models import KnowledgeEntry, RetrievalResult, ScoredEntry, TranslationInfo
from .knowledge_index import get_index
from .text import informative_length

logger = logging.getLogger(__name__)


class RelevanceScorer:
    """
    Scores a free-text query against a business's knowledge entries.

    translator, when given, must expose
    `async detect_and_translate(text) -> TranslationInfo`; it is consulted
    before scoring and any failure leaves the query untranslated.
    """

    def __init__(self, translator=None, min_query_length: int = 2):
        self.translator = translator
        self.min_query_length = min_query_length

    async def _translate(self, query: str) -> TranslationInfo:
        untranslated = TranslationInfo(was_translated=False, original_text=query, translated_text=query)
        if self.translator is None:
            return untranslated
        try:
            info = await self.translator.detect_and_translate(query)
        except Exception as e:
            logger.warning(f"Translation failed, scoring original text: {e}")
            return untranslated
        if info.was_translated and not info.translated_text.strip():
            return untranslated
        return info

    @staticmethod
    def _ranking_key(scored: ScoredEntry):
        return (-scored.score, -scored.entry.priority, scored.index)

    async def score_all(self, query: str, entries: Sequence[KnowledgeEntry]) -> Tuple[List[ScoredEntry], TranslationInfo]:
        """Every entry with its score, ranked, without threshold or top-K. Used for diagnostics."""
        translation_info = await self._translate(query)
        text = translation_info.translated_text if translation_info.was_translated else query

        if not entries or informative_length(text) < self.min_query_length:
            return [], translation_info

        scores = get_index(entries).scores(text)
        scored = [
            ScoredEntry(entry=entry, score=float(score), index=idx)
            for idx, (entry, score) in enumerate(zip(entries, scores))
        ]
        scored.sort(key=self._ranking_key)
        return scored, translation_info

    async def score(
        self,
        query: str,
        entries: Sequence[KnowledgeEntry],
        top_k: int,
        threshold: float,
    ) -> RetrievalResult:
        ranked, translation_info = await self.score_all(query, entries)
        if not ranked:
            logger.info(f"No scorable input for query '{query[:100]}' ({len(entries)} entries).")
        return self.select(ranked, translation_info, top_k, threshold, query)

    @staticmethod
    def select(
        ranked: Sequence[ScoredEntry],
        translation_info: TranslationInfo,
        top_k: int,
        threshold: float,
        query: str = "",
    ) -> RetrievalResult:
        """Apply threshold and top-K to an already ranked list."""
        if not ranked:
            return RetrievalResult.empty(translation_info)

        max_score = ranked[0].score
        selected = tuple(s for s in ranked if s.score >= threshold)[:max(top_k, 0)]
        logger.info(
            f"Scored {len(ranked)} entries for '{query[:100]}': "
            f"{len(selected)} above threshold {threshold}, max score {max_score:.3f}."
        )
        return RetrievalResult(entries=selected, max_score=max_score, translation_info=translation_info)
