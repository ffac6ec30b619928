import sqlite3
import pandas as pd
from loguru import logger
import os
import json
from datetime import datetime, timezone
from typing import Optional, Dict, Any, List

from zodiac_predictor.config import get_database_file


def get_db_path() -> str:
    """Resolves the database file path from the configuration file."""
    current_dir = os.path.dirname(os.path.abspath(__file__))
    db_path = os.path.join(current_dir, '..', get_database_file())
    os.makedirs(os.path.dirname(db_path), exist_ok=True)
    return db_path


def get_db_connection() -> sqlite3.Connection:
    """
    Establishes a connection to the SQLite database.

    Returns:
        sqlite3.Connection: A connection object to the database.

    Raises:
        sqlite3.Error: If database connection fails
    """
    db_path = get_db_path()
    try:
        conn = sqlite3.connect(db_path, timeout=30)
        try:
            conn.execute("PRAGMA journal_mode=WAL")
            conn.execute("PRAGMA busy_timeout=5000")
        except sqlite3.Error as e:
            logger.debug(f"PRAGMA setup skipped: {e}")
        logger.debug(f"Connected to database at {db_path}")
        return conn
    except sqlite3.Error as e:
        logger.error(f"Error connecting to database at {db_path}: {e}")
        raise


def initialize_database() -> bool:
    """Create the draw and prediction tables if they do not exist."""
    try:
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS lottery_draws (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    lottery_type TEXT NOT NULL,
                    expect TEXT NOT NULL,
                    open_time TEXT,
                    open_code TEXT NOT NULL,
                    zodiac TEXT,
                    wave TEXT,
                    created_at TEXT DEFAULT CURRENT_TIMESTAMP,
                    UNIQUE(lottery_type, expect)
                )
            """)
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS predictions (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    lottery_type TEXT NOT NULL,
                    prediction_data TEXT NOT NULL,
                    created_at TEXT DEFAULT CURRENT_TIMESTAMP
                )
            """)
            cursor.execute(
                "CREATE INDEX IF NOT EXISTS idx_draws_type_time ON lottery_draws (lottery_type, open_time)"
            )
            cursor.execute(
                "CREATE INDEX IF NOT EXISTS idx_predictions_type_created ON predictions (lottery_type, created_at)"
            )
            conn.commit()
        logger.info("Database initialized (lottery_draws, predictions)")
        return True
    except sqlite3.Error as e:
        logger.error(f"Failed to initialize database: {e}")
        return False


# --- Draw records ---

def add_record(lottery_type: str, record: Dict[str, Any]) -> bool:
    """
    Store one draw record; a draw already stored for the type is left untouched.

    Args:
        lottery_type: Lottery type key (e.g. 'HK')
        record: Dict with expect, open_time, open_code, zodiac, wave

    Returns:
        True if a new row was inserted
    """
    try:
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT OR IGNORE INTO lottery_draws (lottery_type, expect, open_time, open_code, zodiac, wave)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    lottery_type,
                    record.get('expect'),
                    record.get('open_time'),
                    record.get('open_code'),
                    record.get('zodiac'),
                    record.get('wave'),
                ),
            )
            conn.commit()
            return cursor.rowcount > 0
    except sqlite3.Error as e:
        logger.error(f"Failed to store draw {record.get('expect')} for {lottery_type}: {e}")
        return False


def get_records(lottery_type: str, limit: Optional[int] = None) -> List[Dict[str, Any]]:
    """Draw records of a lottery type, newest first."""
    query = (
        "SELECT id, lottery_type, expect, open_time, open_code, zodiac, wave, created_at "
        "FROM lottery_draws WHERE lottery_type = ? ORDER BY open_time DESC, expect DESC"
    )
    params: List[Any] = [lottery_type]
    if limit is not None:
        query += " LIMIT ?"
        params.append(int(limit))

    try:
        with get_db_connection() as conn:
            df = pd.read_sql_query(query, conn, params=params)
        logger.info(f"Loaded {len(df)} draws for {lottery_type}")
        # NULL text columns come back as NaN/None; normalize to None
        df = df.astype(object).where(pd.notnull(df), None)
        return df.to_dict('records')
    except sqlite3.Error as e:
        logger.error(f"SQLite error retrieving draws for {lottery_type}: {e}")
        return []
    except pd.errors.DatabaseError as e:
        logger.error(f"Pandas database error: {e}")
        return []


def delete_record(record_id: int) -> bool:
    try:
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM lottery_draws WHERE id = ?", (record_id,))
            conn.commit()
            deleted = cursor.rowcount > 0
        if deleted:
            logger.info(f"Deleted draw record {record_id}")
        else:
            logger.warning(f"Draw record {record_id} not found")
        return deleted
    except sqlite3.Error as e:
        logger.error(f"Failed to delete draw record {record_id}: {e}")
        return False


# --- Prediction reports ---

def add_prediction(lottery_type: str, prediction_data: Dict[str, Any]) -> Optional[int]:
    """Persist a prediction report payload and return its row id."""
    try:
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "INSERT INTO predictions (lottery_type, prediction_data, created_at) VALUES (?, ?, ?)",
                (
                    lottery_type,
                    json.dumps(prediction_data, ensure_ascii=False),
                    prediction_data.get('generated_at') or datetime.now(timezone.utc).isoformat(),
                ),
            )
            conn.commit()
            prediction_id = cursor.lastrowid
        logger.info(f"Stored prediction {prediction_id} for {lottery_type}")
        return prediction_id
    except (sqlite3.Error, TypeError) as e:
        logger.error(f"Failed to store prediction for {lottery_type}: {e}")
        return None


def get_latest_prediction(lottery_type: str) -> Optional[Dict[str, Any]]:
    """
    Most recent stored prediction of a lottery type.

    Returns:
        Dict with id, lottery_type, created_at and the decoded prediction_data,
        or None if nothing is stored or the payload cannot be decoded.
    """
    try:
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT id, lottery_type, prediction_data, created_at FROM predictions
                WHERE lottery_type = ? ORDER BY created_at DESC, id DESC LIMIT 1
                """,
                (lottery_type,),
            )
            row = cursor.fetchone()
    except sqlite3.Error as e:
        logger.error(f"Failed to load latest prediction for {lottery_type}: {e}")
        return None

    if not row:
        return None

    try:
        payload = json.loads(row[2])
    except (TypeError, ValueError) as e:
        logger.error(f"Failed to parse stored prediction {row[0]}: {e}")
        return None

    return {
        'id': row[0],
        'lottery_type': row[1],
        'prediction_data': payload,
        'created_at': row[3],
    }
