"""
Zodiac Predictor - Statistical Core Module
==========================================

Strategy analyzers operating on the chronological (oldest first) sequence of
normalized draw records.

Components:
- HotColdAnalyzer: Label frequency inside a recent window
- TransitionAnalyzer: First-order label -> next label counts
- OmissionAnalyzer: Draws elapsed since each label was last the special zodiac

Every ranking breaks ties by canonical zodiac order so the output is a
deterministic function of the input sequence.
"""

import numpy as np
from typing import Dict, List, Sequence
from dataclasses import dataclass, field
from loguru import logger

from .lookup import CategoryLookupTables, DEFAULT_TABLES
from .records import NormalizedRecord


def _rank_by_count(counts: np.ndarray, labels: Sequence[str], include_zero: bool) -> List[str]:
    """Labels ordered by descending count; stable sort keeps canonical order on ties."""
    order = np.argsort(-counts, kind='stable')
    return [labels[i] for i in order if include_zero or counts[i] > 0]


@dataclass
class HotColdResult:
    """Container for hot/cold analysis results"""
    hot: List[str]
    cold: List[str]
    counts: Dict[str, int]
    window_size: int


class HotColdAnalyzer:
    """
    Frequency analyzer over the most recent ``window`` draws.

    Every zodiac label listed on a record counts once. Labels seen at least
    once are "hot", ranked by count; labels never seen are "cold", in
    canonical order.
    """

    def __init__(self, window: int = 20, tables: CategoryLookupTables = DEFAULT_TABLES):
        self.window = window
        self.tables = tables
        logger.info(f"HotColdAnalyzer initialized (window={window})")

    def analyze(self, records: Sequence[NormalizedRecord]) -> HotColdResult:
        labels = self.tables.zodiac_labels
        recent = list(records)[-self.window:] if self.window > 0 else []
        counts = np.zeros(len(labels), dtype=int)

        for record in recent:
            for label in record.zodiacs or (record.zodiac,):
                if self.tables.is_zodiac(label):
                    counts[self.tables.canonical_rank(label)] += 1

        hot = _rank_by_count(counts, labels, include_zero=False)
        cold = [label for label in labels if label not in hot]

        logger.debug(f"Hot/cold analysis complete (window={len(recent)}, hot={len(hot)}, cold={len(cold)})")

        return HotColdResult(
            hot=hot,
            cold=cold,
            counts={label: int(counts[i]) for i, label in enumerate(labels)},
            window_size=len(recent),
        )


@dataclass
class TransitionEntry:
    """Ranked successors of one source label"""
    next: List[str] = field(default_factory=list)
    strength: int = 0


@dataclass
class TransitionResult:
    """Container for transition analysis results"""
    matrix: np.ndarray  # Shape: (12, 12), rows = from, columns = to
    entries: Dict[str, TransitionEntry]

    def for_label(self, label) -> TransitionEntry:
        """Entry for ``label``; unknown labels or unseen sources give an empty entry."""
        return self.entries.get(label) or TransitionEntry()


class TransitionAnalyzer:
    """
    First-order transition model on the special-number zodiac.

    matrix[a][b] counts how often a draw with zodiac ``a`` was immediately
    followed by a draw with zodiac ``b``. Strength of a source label is its
    total outgoing count.
    """

    def __init__(self, tables: CategoryLookupTables = DEFAULT_TABLES):
        self.tables = tables
        logger.info("TransitionAnalyzer initialized")

    def analyze(self, records: Sequence[NormalizedRecord]) -> TransitionResult:
        labels = self.tables.zodiac_labels
        size = len(labels)
        matrix = np.zeros((size, size), dtype=int)

        for current, following in zip(records, records[1:]):
            if self.tables.is_zodiac(current.zodiac) and self.tables.is_zodiac(following.zodiac):
                matrix[self.tables.canonical_rank(current.zodiac),
                       self.tables.canonical_rank(following.zodiac)] += 1

        entries = {}
        for i, label in enumerate(labels):
            row = matrix[i]
            entries[label] = TransitionEntry(
                next=_rank_by_count(row, labels, include_zero=False),
                strength=int(row.sum()),
            )

        logger.debug(f"Transition analysis complete ({int(matrix.sum())} transitions)")
        return TransitionResult(matrix=matrix, entries=entries)


@dataclass
class OmissionResult:
    """Container for omission (gap) analysis results"""
    gaps: Dict[str, int]
    most_overdue: List[str]


class OmissionAnalyzer:
    """
    Gap analyzer on the special-number zodiac.

    gap(label) = index of the newest record - index of the newest record whose
    special zodiac is ``label``; labels never seen get the record count.
    """

    def __init__(self, tables: CategoryLookupTables = DEFAULT_TABLES):
        self.tables = tables
        logger.info("OmissionAnalyzer initialized")

    def analyze(self, records: Sequence[NormalizedRecord]) -> OmissionResult:
        labels = self.tables.zodiac_labels
        total = len(records)
        last_seen: Dict[str, int] = {}

        for index, record in enumerate(records):
            last_seen[record.zodiac] = index

        gaps = np.array(
            [(total - 1 - last_seen[label]) if label in last_seen else total for label in labels],
            dtype=int,
        )
        most_overdue = _rank_by_count(gaps, labels, include_zero=True)

        logger.debug(f"Omission analysis complete (max gap={int(gaps.max()) if total else 0})")

        return OmissionResult(
            gaps={label: int(gaps[i]) for i, label in enumerate(labels)},
            most_overdue=most_overdue,
        )
