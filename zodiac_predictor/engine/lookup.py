"""
Zodiac Predictor - Category Lookup Tables
=========================================

Static partitions of the numbers 1-49 into the 12 zodiac labels and the
3 color bands, plus the reverse per-number maps used for O(1) lookups.

The tables are built once at import time and exposed read-only through
``DEFAULT_TABLES``; analyzers receive them by reference.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

NUMBER_MIN = 1
NUMBER_MAX = 49

# Canonical ordering: every tie-break in the engine follows this tuple.
ZODIAC_LABELS: Tuple[str, ...] = ('鼠', '牛', '虎', '兔', '龙', '蛇', '马', '羊', '猴', '鸡', '狗', '猪')

COLOR_LABELS: Tuple[str, ...] = ('red', 'blue', 'green')

WAVE_NAMES: Mapping[str, str] = MappingProxyType({
    'red': '红波',
    'blue': '蓝波',
    'green': '绿波',
})

ZODIAC_MEMBERS: Mapping[str, Tuple[int, ...]] = MappingProxyType({
    '鼠': (6, 18, 30, 42),
    '牛': (5, 17, 29, 41),
    '虎': (4, 16, 28, 40),
    '兔': (3, 15, 27, 39),
    '龙': (2, 14, 26, 38),
    '蛇': (1, 13, 25, 37, 49),
    '马': (12, 24, 36, 48),
    '羊': (11, 23, 35, 47),
    '猴': (10, 22, 34, 46),
    '鸡': (9, 21, 33, 45),
    '狗': (8, 20, 32, 44),
    '猪': (7, 19, 31, 43),
})

COLOR_MEMBERS: Mapping[str, Tuple[int, ...]] = MappingProxyType({
    'red': (1, 2, 7, 8, 12, 13, 18, 19, 23, 24, 29, 30, 34, 35, 40, 45, 46),
    'blue': (3, 4, 9, 10, 14, 15, 20, 25, 26, 31, 36, 37, 41, 42, 47, 48),
    'green': (5, 6, 11, 16, 17, 21, 22, 27, 28, 32, 33, 38, 39, 43, 44, 49),
})


def _invert(partition: Mapping[str, Iterable[int]]) -> Dict[int, str]:
    reverse: Dict[int, str] = {}
    for label, members in partition.items():
        for number in members:
            if number in reverse:
                raise ValueError(f"Number {number} assigned to both {reverse[number]} and {label}")
            reverse[number] = label
    missing = set(range(NUMBER_MIN, NUMBER_MAX + 1)) - set(reverse)
    if missing:
        raise ValueError(f"Partition does not cover numbers: {sorted(missing)}")
    return reverse


@dataclass(frozen=True)
class CategoryLookupTables:
    """
    Immutable bidirectional mapping between numbers and category labels.

    Lookups outside 1-49 return None instead of raising; callers treat that
    as "no contribution" for the record in question.
    """
    zodiac_members: Mapping[str, Tuple[int, ...]] = field(default_factory=lambda: ZODIAC_MEMBERS)
    color_members: Mapping[str, Tuple[int, ...]] = field(default_factory=lambda: COLOR_MEMBERS)
    number_to_zodiac: Mapping[int, str] = field(init=False)
    number_to_color: Mapping[int, str] = field(init=False)
    zodiac_index: Mapping[str, int] = field(init=False)

    def __post_init__(self):
        object.__setattr__(self, 'number_to_zodiac', MappingProxyType(_invert(self.zodiac_members)))
        object.__setattr__(self, 'number_to_color', MappingProxyType(_invert(self.color_members)))
        object.__setattr__(self, 'zodiac_index', MappingProxyType(
            {label: idx for idx, label in enumerate(ZODIAC_LABELS)}
        ))

    @property
    def zodiac_labels(self) -> Tuple[str, ...]:
        return ZODIAC_LABELS

    def zodiac_for(self, number) -> Optional[str]:
        """Zodiac label of ``number``, or None when it is not an integer in 1-49."""
        if not _is_valid_number(number):
            return None
        return self.number_to_zodiac.get(number)

    def color_for(self, number) -> Optional[str]:
        """Color band key (red/blue/green) of ``number``, or None when out of range."""
        if not _is_valid_number(number):
            return None
        return self.number_to_color.get(number)

    def wave_for(self, number) -> Optional[str]:
        color = self.color_for(number)
        return WAVE_NAMES[color] if color else None

    def numbers_for_zodiac(self, label: str) -> Tuple[int, ...]:
        return self.zodiac_members.get(label, ())

    def numbers_for_color(self, label: str) -> Tuple[int, ...]:
        return self.color_members.get(resolve_color_label(label) or '', ())

    def is_zodiac(self, label: Optional[str]) -> bool:
        return label in self.zodiac_index

    def canonical_rank(self, label: str) -> int:
        return self.zodiac_index.get(label, len(ZODIAC_LABELS))

    def expand_labels(self, labels: Iterable[str], limit: int) -> List[int]:
        """
        Union the member numbers of ``labels``, sorted ascending and truncated.

        Unknown labels contribute nothing; the result is never padded.
        """
        numbers = set()
        for label in labels:
            numbers.update(self.numbers_for_zodiac(label))
        return sorted(numbers)[:limit]


def _is_valid_number(number) -> bool:
    # bool is an int subclass; True must not resolve to 1
    if isinstance(number, bool) or not isinstance(number, int):
        return False
    return NUMBER_MIN <= number <= NUMBER_MAX


def resolve_color_label(value: Optional[str]) -> Optional[str]:
    """Accept either a band key ('red') or its wave name ('红波')."""
    if not value:
        return None
    value = value.strip()
    lowered = value.lower()
    if lowered in COLOR_LABELS:
        return lowered
    for key, wave in WAVE_NAMES.items():
        if value == wave or value == wave[0]:
            return key
    return None


DEFAULT_TABLES = CategoryLookupTables()
