from functools import lru_cache
import logging
import math
from typing import Dict, List, Sequence, Set, Tuple

import numpy as np

from supportwise.data_models import KnowledgeEntry
from .text import extract_features, normalize_text

logger = logging.getLogger(__name__)

# How much the answer can add on top of the question similarity
ANSWER_WEIGHT = 0.35


class KnowledgeIndex:
    """
    In-memory feature index over one business's knowledge entries.

    Each entry contributes a binary row for its question and one for its
    answer. Features are weighted by a smoothed inverse document frequency
    so rare, informative words count for more than common ones. Similarity
    is a weighted Dice coefficient, bounded to [0, 1]:

        2 * sum(w over shared features) / (sum(w over query) + sum(w over entry))
    """

    def __init__(self, entries: Sequence[KnowledgeEntry]):
        self.entries: Tuple[KnowledgeEntry, ...] = tuple(entries)
        self._questions_normalized = [normalize_text(e.question) for e in self.entries]
        question_features = [extract_features(e.question) for e in self.entries]
        answer_features = [extract_features(e.answer) for e in self.entries]

        self.vocabulary: Dict[str, int] = {}
        for features in question_features + answer_features:
            for feature in sorted(features):
                self.vocabulary.setdefault(feature, len(self.vocabulary))

        n_entries, n_features = len(self.entries), len(self.vocabulary)
        self._question_matrix = self._binary_matrix(question_features, n_entries, n_features)
        self._answer_matrix = self._binary_matrix(answer_features, n_entries, n_features)

        doc_freq = np.logical_or(self._question_matrix, self._answer_matrix).sum(axis=0)
        self.idf = np.log1p((n_entries + 1) / (doc_freq + 1.0))
        self.unseen_idf = math.log1p(n_entries + 1)
        self._question_weights = self._question_matrix @ self.idf
        self._answer_weights = self._answer_matrix @ self.idf

    def _binary_matrix(self, rows: List[Set[str]], n_rows: int, n_cols: int) -> np.ndarray:
        matrix = np.zeros((n_rows, n_cols), dtype=np.float64)
        for row, features in enumerate(rows):
            for feature in features:
                matrix[row, self.vocabulary[feature]] = 1.0
        return matrix

    def _weighted_dice(self, matrix: np.ndarray, doc_weights: np.ndarray, query_vector: np.ndarray, query_weight: float) -> np.ndarray:
        shared = matrix @ (query_vector * self.idf)
        denominator = query_weight + doc_weights
        with np.errstate(divide="ignore", invalid="ignore"):
            similarity = np.where(denominator > 0, 2.0 * shared / denominator, 0.0)
        return np.clip(similarity, 0.0, 1.0)

    def similarities(self, query: str) -> Tuple[np.ndarray, np.ndarray]:
        """Return (question_similarity, answer_similarity) arrays, one value per entry."""
        n_entries = len(self.entries)
        if n_entries == 0:
            return np.zeros(0), np.zeros(0)

        features = extract_features(query)
        query_vector = np.zeros(len(self.vocabulary), dtype=np.float64)
        unseen = 0
        for feature in features:
            column = self.vocabulary.get(feature)
            if column is None:
                unseen += 1
            else:
                query_vector[column] = 1.0
        query_weight = float(query_vector @ self.idf) + unseen * self.unseen_idf

        question_sim = self._weighted_dice(self._question_matrix, self._question_weights, query_vector, query_weight)
        answer_sim = self._weighted_dice(self._answer_matrix, self._answer_weights, query_vector, query_weight)

        normalized = normalize_text(query)
        exact = np.array([q == normalized for q in self._questions_normalized], dtype=bool)
        question_sim = np.where(exact, 1.0, question_sim)
        return question_sim, answer_sim

    def scores(self, query: str) -> np.ndarray:
        """Combined score per entry: question first, answer as a bounded bonus."""
        question_sim, answer_sim = self.similarities(query)
        return question_sim + (1.0 - question_sim) * ANSWER_WEIGHT * answer_sim


@lru_cache(maxsize=128)
def _build_index(entries: Tuple[KnowledgeEntry, ...]) -> KnowledgeIndex:
    logger.info(f"Building knowledge index for {len(entries)} entries.")
    return KnowledgeIndex(entries)


def get_index(entries: Sequence[KnowledgeEntry]) -> KnowledgeIndex:
    """Index for an entry list, reused while the same (immutable) entries are scored again."""
    return _build_index(tuple(entries))
