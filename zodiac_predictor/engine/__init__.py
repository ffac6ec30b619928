"""
Zodiac Predictor - Forecasting Engine
=====================================

Statistical forecast of the next draw's special-number zodiac:
- Category lookup tables (zodiac / color band partitions of 1-49)
- Record normalization
- Hot/cold, transition and omission analyzers
- Weighted recommendation combiner
- Report assembly
"""

from .lookup import (
    CategoryLookupTables,
    DEFAULT_TABLES,
    ZODIAC_LABELS,
    COLOR_LABELS,
    WAVE_NAMES,
)

from .records import (
    DrawRecord,
    NormalizedRecord,
    RejectedRecord,
    normalize_record,
    normalize_records,
)

from .statistical_core import (
    HotColdAnalyzer,
    TransitionAnalyzer,
    OmissionAnalyzer,
)

from .scoring import StrategyWeights, RecommendationCombiner

from .prediction_engine import (
    PredictionConfig,
    PredictionEngine,
    PredictionReport,
    InsufficientData,
    generate_prediction,
)

__all__ = [
    # Lookup
    'CategoryLookupTables',
    'DEFAULT_TABLES',
    'ZODIAC_LABELS',
    'COLOR_LABELS',
    'WAVE_NAMES',

    # Records
    'DrawRecord',
    'NormalizedRecord',
    'RejectedRecord',
    'normalize_record',
    'normalize_records',

    # Analyzers
    'HotColdAnalyzer',
    'TransitionAnalyzer',
    'OmissionAnalyzer',

    # Scoring
    'StrategyWeights',
    'RecommendationCombiner',

    # Engine
    'PredictionConfig',
    'PredictionEngine',
    'PredictionReport',
    'InsufficientData',
    'generate_prediction',
]
