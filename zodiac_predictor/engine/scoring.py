"""
Zodiac Predictor - Recommendation Combiner
==========================================

Merges the ranked outputs of the strategy analyzers into one weighted score
per zodiac label.

A label at 0-based rank ``i`` of a source list earns ``(depth - i) * weight``
from that source; absent labels earn nothing. The final ranking is descending
score with ties in canonical zodiac order.
"""

from dataclasses import dataclass, asdict
from typing import Dict, List, Sequence
from loguru import logger

from .lookup import CategoryLookupTables, DEFAULT_TABLES

# Scores are rounded before sorting so that float summation order never
# changes a tie into a win.
SCORE_PRECISION = 6


@dataclass(frozen=True)
class StrategyWeights:
    """Per-source weights of the combiner"""
    transition: float = 1.5
    hot: float = 1.2
    omission: float = 1.0
    cold: float = 0.8

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


@dataclass
class CombinedRanking:
    """Container for the combined ranking"""
    ranking: List[str]
    scores: Dict[str, float]


class RecommendationCombiner:
    """
    Weighted rank-position scoring over the hot, cold, transition and
    omission lists.
    """

    def __init__(self, weights: StrategyWeights = StrategyWeights(), depth: int = 4,
                 tables: CategoryLookupTables = DEFAULT_TABLES):
        self.weights = weights
        self.depth = depth
        self.tables = tables
        logger.info(f"RecommendationCombiner initialized (depth={depth}, weights={weights.to_dict()})")

    def combine(self, hot: Sequence[str], cold: Sequence[str],
                transition: Sequence[str], omission: Sequence[str]) -> CombinedRanking:
        """
        Score each label and return the full ranking.

        Each input list is truncated to ``depth`` entries before scoring.
        """
        sources = (
            (hot, self.weights.hot),
            (cold, self.weights.cold),
            (transition, self.weights.transition),
            (omission, self.weights.omission),
        )

        scores: Dict[str, float] = {}
        for labels, weight in sources:
            for position, label in enumerate(list(labels)[:self.depth]):
                scores[label] = scores.get(label, 0.0) + (self.depth - position) * weight

        scores = {label: round(score, SCORE_PRECISION) for label, score in scores.items()}
        ranking = sorted(scores, key=lambda label: (-scores[label], self.tables.canonical_rank(label), label))

        logger.debug(f"Combined ranking: {ranking}")
        return CombinedRanking(ranking=ranking, scores=scores)

    def expand_numbers(self, labels: Sequence[str], limit: int = 18) -> List[int]:
        """Member numbers of ``labels``: deduplicated, ascending, at most ``limit``."""
        numbers = self.tables.expand_labels(labels, limit)
        if len(numbers) < limit:
            logger.warning(f"Number expansion produced {len(numbers)} numbers (limit {limit})")
        return numbers
