import os
import sys
from datetime import datetime, timedelta

import pytest

# Ensure repository root is on sys.path so `import zodiac_predictor.*` works during tests
REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)


def build_draws(specials, zodiacs=None, start=datetime(2026, 1, 1, 21, 30)):
    """
    Raw feed-style records for a chronological list of special numbers.

    Returned newest first, the order storage and the feed deliver them in.
    """
    records = []
    for i, special in enumerate(specials):
        record = {
            "expect": f"2026{i + 1:03d}",
            "openTime": (start + timedelta(days=i)).strftime("%Y-%m-%d %H:%M:%S"),
            "openCode": f"01,02,03,04,05,06+{special:02d}",
        }
        if zodiacs is not None and zodiacs[i] is not None:
            record["zodiac"] = zodiacs[i]
        records.append(record)
    return list(reversed(records))


def to_storage_row(record):
    return {
        "expect": record["expect"],
        "open_time": record["openTime"],
        "open_code": record["openCode"],
        "zodiac": record.get("zodiac"),
        "wave": record.get("wave"),
    }


@pytest.fixture()
def draw_history():
    return build_draws


@pytest.fixture()
def cycle_history():
    """25 draws whose special numbers cycle 6, 5, 4, 3, 2 (鼠 牛 虎 兔 龙)."""
    pattern = [6, 5, 4, 3, 2]
    return build_draws([pattern[i % 5] for i in range(25)])


@pytest.fixture(autouse=True)
def test_db_file(tmp_path, monkeypatch):
    # Force the application to use a fresh on-disk test database
    import zodiac_predictor.database as db
    db_path = str(tmp_path / "zodiac_predictor_test.db")
    monkeypatch.setattr(db, "get_db_path", lambda: db_path, raising=True)
    db.initialize_database()
    yield db_path


@pytest.fixture()
def seed_draws():
    """Store raw records for a lottery type."""
    import zodiac_predictor.database as db

    def _seed(lottery_type, records):
        for record in records:
            db.add_record(lottery_type, to_storage_row(record))

    return _seed
