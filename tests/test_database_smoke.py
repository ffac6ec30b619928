import sqlite3

from zodiac_predictor.database import (
    add_prediction,
    add_record,
    delete_record,
    get_db_connection,
    get_latest_prediction,
    get_records,
    initialize_database,
)


def _row(expect, open_time, open_code="01,02,03,04,05,06+07", zodiac="猪", wave="红波"):
    return {"expect": expect, "open_time": open_time, "open_code": open_code, "zodiac": zodiac, "wave": wave}


def test_get_db_connection_returns_sqlite_connection():
    conn = get_db_connection()
    assert isinstance(conn, sqlite3.Connection)
    conn.close()


def test_initialize_database_creates_core_tables():
    # Idempotent on an already initialized file
    assert initialize_database() is True

    conn = get_db_connection()
    try:
        cur = conn.cursor()
        cur.execute("SELECT name FROM sqlite_master WHERE type='table'")
        tables = {row[0] for row in cur.fetchall()}
        assert {"lottery_draws", "predictions"}.issubset(tables)
    finally:
        conn.close()


def test_records_are_returned_newest_first():
    add_record("HK", _row("2026001", "2026-01-01 21:30:00"))
    add_record("HK", _row("2026003", "2026-01-03 21:30:00"))
    add_record("HK", _row("2026002", "2026-01-02 21:30:00"))
    add_record("XINAO", _row("2026009", "2026-01-09 21:30:00"))

    records = get_records("HK")

    assert [r["expect"] for r in records] == ["2026003", "2026002", "2026001"]
    assert records[0]["open_code"] == "01,02,03,04,05,06+07"
    assert records[0]["lottery_type"] == "HK"


def test_limit_keeps_newest_records():
    for day in range(1, 6):
        add_record("HK", _row(f"202600{day}", f"2026-01-0{day} 21:30:00"))

    records = get_records("HK", limit=2)

    assert [r["expect"] for r in records] == ["2026005", "2026004"]


def test_duplicate_draw_is_ignored():
    assert add_record("HK", _row("2026001", "2026-01-01 21:30:00")) is True
    assert add_record("HK", _row("2026001", "2026-01-01 21:30:00", open_code="49")) is False
    # same draw number under another type is a different draw
    assert add_record("LAOAO", _row("2026001", "2026-01-01 21:30:00")) is True

    records = get_records("HK")
    assert len(records) == 1
    assert records[0]["open_code"] == "01,02,03,04,05,06+07"


def test_null_columns_come_back_as_none():
    add_record("HK", {"expect": "2026001", "open_time": None, "open_code": "07"})

    record = get_records("HK")[0]

    assert record["zodiac"] is None
    assert record["wave"] is None
    assert record["open_time"] is None


def test_unknown_type_returns_empty_list():
    assert get_records("NOPE") == []


def test_delete_record():
    add_record("HK", _row("2026001", "2026-01-01 21:30:00"))
    record_id = get_records("HK")[0]["id"]

    assert delete_record(record_id) is True
    assert delete_record(record_id) is False
    assert get_records("HK") == []


def test_latest_prediction_round_trip():
    assert get_latest_prediction("HK") is None

    add_prediction("HK", {"generated_at": "2026-01-01T00:00:00+00:00", "based_on_records": 20})
    newest_id = add_prediction("HK", {"generated_at": "2026-01-02T00:00:00+00:00", "based_on_records": 21})
    add_prediction("XINAO", {"generated_at": "2026-01-03T00:00:00+00:00", "based_on_records": 30})

    latest = get_latest_prediction("HK")

    assert latest["id"] == newest_id
    assert latest["lottery_type"] == "HK"
    assert latest["prediction_data"]["based_on_records"] == 21
    assert latest["created_at"] == "2026-01-02T00:00:00+00:00"


def test_prediction_keeps_non_ascii_labels():
    add_prediction("HK", {"generated_at": "2026-01-01T00:00:00+00:00", "labels": ["鼠", "牛"]})

    conn = get_db_connection()
    try:
        stored = conn.execute("SELECT prediction_data FROM predictions").fetchone()[0]
    finally:
        conn.close()

    assert "鼠" in stored
    assert get_latest_prediction("HK")["prediction_data"]["labels"] == ["鼠", "牛"]


def test_corrupt_prediction_payload_yields_none():
    conn = get_db_connection()
    try:
        conn.execute(
            "INSERT INTO predictions (lottery_type, prediction_data, created_at) VALUES (?, ?, ?)",
            ("HK", "{not json", "2026-01-01T00:00:00"),
        )
        conn.commit()
    finally:
        conn.close()

    assert get_latest_prediction("HK") is None


def test_zero_limit_returns_no_records():
    add_record("HK", _row("2026001", "2026-01-01 21:30:00"))
    assert get_records("HK", limit=0) == []
