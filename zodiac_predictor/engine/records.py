"""
Zodiac Predictor - Draw Record Normalization
============================================

Turns raw draw records (as stored or as delivered by the remote feed) into
``NormalizedRecord`` values carrying the special number and its authoritative
zodiac / color labels. Parsing is total: malformed input produces a
``RejectedRecord`` instead of raising.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from loguru import logger

from .lookup import CategoryLookupTables, DEFAULT_TABLES, resolve_color_label

_NUMBER_PATTERN = re.compile(r'\d+')
_LABEL_SEPARATORS = re.compile(r'[,，+\s]+')
_TIMESTAMP_FORMATS = ('%Y-%m-%d %H:%M:%S', '%Y/%m/%d %H:%M:%S', '%Y-%m-%d', '%Y/%m/%d')


@dataclass(frozen=True)
class DrawRecord:
    """Raw draw as received from storage or the feed."""
    expect: str
    open_time: Optional[Union[str, datetime]]
    open_code: str
    zodiac: Optional[str] = None
    wave: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'DrawRecord':
        """Build from a storage row (snake_case) or a feed item (camelCase)."""
        return cls(
            expect=str(data.get('expect') or ''),
            open_time=data.get('open_time', data.get('openTime')),
            open_code=data.get('open_code', data.get('openCode')) or '',
            zodiac=data.get('zodiac'),
            wave=data.get('wave'),
        )


@dataclass(frozen=True)
class NormalizedRecord:
    expect: str
    timestamp: Optional[datetime]
    numbers: Tuple[int, ...]
    special_number: int
    zodiac: str
    color: str
    # All recognised zodiac labels listed on the record, special one last.
    zodiacs: Tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class RejectedRecord:
    expect: str
    reason: str


NormalizationResult = Union[NormalizedRecord, RejectedRecord]


def extract_numbers(open_code) -> List[int]:
    """All integers embedded in an open-code string, in order of appearance."""
    if not isinstance(open_code, str):
        return []
    return [int(token) for token in _NUMBER_PATTERN.findall(open_code)]


def split_labels(value) -> List[str]:
    if not isinstance(value, str):
        return []
    return [token for token in _LABEL_SEPARATORS.split(value.strip()) if token]


def parse_timestamp(value) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        pass
    for fmt in _TIMESTAMP_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None


def normalize_record(raw: Union[DrawRecord, Dict[str, Any]],
                     tables: CategoryLookupTables = DEFAULT_TABLES) -> NormalizationResult:
    """
    Resolve the special number and its labels for one raw record.

    The last number of the open code is the special number; outside 1-49 the
    record is rejected whatever labels it carries. A present zodiac field
    contributes its final token as the authoritative label; a missing or
    unrecognised token falls back to the lookup table, as does a missing
    color field.
    """
    record = raw if isinstance(raw, DrawRecord) else DrawRecord.from_dict(raw)

    numbers = extract_numbers(record.open_code)
    if not numbers:
        return RejectedRecord(expect=record.expect, reason="no numbers in open code")
    special = numbers[-1]
    derived_zodiac = tables.zodiac_for(special)
    if derived_zodiac is None:
        return RejectedRecord(expect=record.expect, reason=f"special number {special} out of range")

    tokens = split_labels(record.zodiac)
    listed = [label for label in tokens if tables.is_zodiac(label)]
    if tokens and tables.is_zodiac(tokens[-1]):
        zodiac = tokens[-1]
    else:
        zodiac = derived_zodiac
        listed.append(zodiac)

    color = resolve_color_label(record.wave) or tables.color_for(special)

    return NormalizedRecord(
        expect=record.expect,
        timestamp=parse_timestamp(record.open_time),
        numbers=tuple(numbers),
        special_number=special,
        zodiac=zodiac,
        color=color,
        zodiacs=tuple(listed),
    )


def normalize_records(raw_records: Sequence[Union[DrawRecord, Dict[str, Any]]],
                      tables: CategoryLookupTables = DEFAULT_TABLES
                      ) -> Tuple[List[NormalizedRecord], List[RejectedRecord]]:
    """
    Normalize a newest-first record list into chronological (oldest-first) order.

    Input is reversed first; when every usable record carries a timestamp the
    result is additionally stable-sorted by it, so ties keep feed order.
    """
    usable: List[NormalizedRecord] = []
    rejected: List[RejectedRecord] = []

    for raw in reversed(list(raw_records)):
        result = normalize_record(raw, tables)
        if isinstance(result, RejectedRecord):
            rejected.append(result)
        else:
            usable.append(result)

    if usable and all(r.timestamp is not None for r in usable):
        try:
            usable = sorted(usable, key=lambda r: r.timestamp)
        except TypeError:
            # naive and aware datetimes mixed; keep reversed feed order
            logger.warning("Mixed timezone awareness in draw timestamps, keeping feed order")

    if rejected:
        logger.debug(f"Excluded {len(rejected)} unresolvable records: {[r.expect for r in rejected]}")

    return usable, rejected
