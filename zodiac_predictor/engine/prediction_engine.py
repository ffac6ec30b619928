"""
Zodiac Predictor - Prediction Engine
====================================

Entry point of the forecasting core. Turns a newest-first list of raw draw
records into a ``PredictionReport``, or an ``InsufficientData`` value when
fewer than ``min_records`` usable records remain after normalization.

The computation is synchronous and side-effect free apart from logging;
fetching records and persisting reports belong to the callers.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Sequence, Tuple, Union

from loguru import logger

from .lookup import CategoryLookupTables, DEFAULT_TABLES
from .records import normalize_records
from .scoring import RecommendationCombiner, StrategyWeights
from .statistical_core import HotColdAnalyzer, OmissionAnalyzer, TransitionAnalyzer


@dataclass(frozen=True)
class PredictionConfig:
    """Tunable constants of the engine"""
    min_records: int = 20
    hot_window: int = 20
    strategy_depth: int = 4
    top_labels: int = 6
    expansion_labels: int = 8
    max_numbers: int = 18
    weights: StrategyWeights = field(default_factory=StrategyWeights)


@dataclass(frozen=True)
class InsufficientData:
    """Returned instead of a report when there is not enough usable history."""
    error: str
    records_available: int
    records_required: int
    rejected_records: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'error': self.error,
            'records_available': self.records_available,
            'records_required': self.records_required,
            'rejected_records': self.rejected_records,
        }


@dataclass(frozen=True)
class AnalysisDetails:
    hot_zodiacs: Tuple[str, ...]
    cold_zodiacs: Tuple[str, ...]
    most_overdue_zodiacs: Tuple[str, ...]
    transition_from: str
    transition_next: Tuple[str, ...]
    transition_strength: int
    scores: Tuple[Tuple[str, float], ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'hot_zodiacs': list(self.hot_zodiacs),
            'cold_zodiacs': list(self.cold_zodiacs),
            'most_overdue_zodiacs': list(self.most_overdue_zodiacs),
            'transition_from_last': {
                'from': self.transition_from,
                'next': list(self.transition_next),
                'strength': self.transition_strength,
            },
            'scores': dict(self.scores),
        }


@dataclass(frozen=True)
class PredictionReport:
    generated_at: datetime
    based_on_records: int
    combined_zodiacs: Tuple[str, ...]
    combined_numbers: Tuple[int, ...]
    details: AnalysisDetails
    rejected_records: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'generated_at': self.generated_at.isoformat(),
            'based_on_records': self.based_on_records,
            'rejected_records': self.rejected_records,
            'recommendations': {
                'combined_zodiacs': list(self.combined_zodiacs),
                'combined_numbers': list(self.combined_numbers),
            },
            'analysis_details': self.details.to_dict(),
        }


PredictionResult = Union[PredictionReport, InsufficientData]


class PredictionEngine:
    """
    Runs the hot/cold, transition and omission analyzers over one record
    history and folds them into a recommendation.

    Usage:
        engine = PredictionEngine()
        result = engine.generate(records)
    """

    def __init__(self, config: PredictionConfig = PredictionConfig(),
                 tables: CategoryLookupTables = DEFAULT_TABLES):
        self.config = config
        self.tables = tables
        self.hot_cold = HotColdAnalyzer(window=config.hot_window, tables=tables)
        self.transitions = TransitionAnalyzer(tables=tables)
        self.omissions = OmissionAnalyzer(tables=tables)
        self.combiner = RecommendationCombiner(weights=config.weights, depth=config.strategy_depth, tables=tables)
        logger.info(f"PredictionEngine initialized (min_records={config.min_records})")

    def generate(self, records: Sequence[Any], now: Optional[datetime] = None) -> PredictionResult:
        """
        Generate a prediction from newest-first raw records.

        Args:
            records: DrawRecord instances or dicts (storage rows or feed items)
            now: Generation timestamp override; defaults to the current UTC time

        Returns:
            PredictionReport, or InsufficientData when fewer than
            ``config.min_records`` records are usable
        """
        usable, rejected = normalize_records(records or [], self.tables)

        if len(usable) < self.config.min_records:
            logger.warning(
                f"Insufficient history for prediction: {len(usable)} usable records, "
                f"{self.config.min_records} required ({len(rejected)} rejected)"
            )
            return InsufficientData(
                error=f"Insufficient history: at least {self.config.min_records} usable draws are required, "
                      f"got {len(usable)}.",
                records_available=len(usable),
                records_required=self.config.min_records,
                rejected_records=len(rejected),
            )

        latest = usable[-1]
        depth = self.config.strategy_depth

        hot_cold = self.hot_cold.analyze(usable)
        transition = self.transitions.analyze(usable).for_label(latest.zodiac)
        omission = self.omissions.analyze(usable)

        combined = self.combiner.combine(
            hot=hot_cold.hot[:depth],
            cold=hot_cold.cold[:depth],
            transition=transition.next[:depth],
            omission=omission.most_overdue[:depth],
        )
        numbers = self.combiner.expand_numbers(
            combined.ranking[:self.config.expansion_labels],
            limit=self.config.max_numbers,
        )

        report = PredictionReport(
            generated_at=now or datetime.now(timezone.utc),
            based_on_records=len(usable),
            combined_zodiacs=tuple(combined.ranking[:self.config.top_labels]),
            combined_numbers=tuple(numbers),
            details=AnalysisDetails(
                hot_zodiacs=tuple(hot_cold.hot),
                cold_zodiacs=tuple(hot_cold.cold),
                most_overdue_zodiacs=tuple(omission.most_overdue),
                transition_from=latest.zodiac,
                transition_next=tuple(transition.next),
                transition_strength=transition.strength,
                scores=tuple((label, combined.scores[label]) for label in combined.ranking),
            ),
            rejected_records=len(rejected),
        )

        logger.info(
            f"Prediction generated from {report.based_on_records} records: "
            f"{list(report.combined_zodiacs)}"
        )
        return report


def generate_prediction(records: Sequence[Any], config: PredictionConfig = PredictionConfig(),
                        tables: CategoryLookupTables = DEFAULT_TABLES,
                        now: Optional[datetime] = None) -> PredictionResult:
    """Functional wrapper around ``PredictionEngine.generate``."""
    return PredictionEngine(config=config, tables=tables).generate(records, now=now)

