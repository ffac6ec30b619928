import json
import os
import re
import time
from dataclasses import dataclass, asdict
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

import requests
from loguru import logger

from zodiac_predictor.database import add_record
from zodiac_predictor.engine import DEFAULT_TABLES, RejectedRecord, normalize_record
from zodiac_predictor.engine.records import split_labels

FEED_TIMEOUT_SECONDS = 15
_YEAR_TOKEN = re.compile(r'\b\d{4}\b')


# ============================================================================
# SYNC STATUS DIAGNOSTICS
# ============================================================================

class SyncStatus(str, Enum):
    """Outcome codes for a feed synchronization."""
    SUCCESS = "SUCCESS"                      # Feed fetched and records stored
    URL_NOT_CONFIGURED = "URL_NOT_CONFIGURED"  # LOTTERY_URLS missing or invalid
    TIMEOUT = "TIMEOUT"                      # Connection timeout
    CONNECTION_ERROR = "CONNECTION_ERROR"    # Network error
    HTTP_ERROR = "HTTP_ERROR"                # Non-2xx response
    INVALID_RESPONSE = "INVALID_RESPONSE"    # Body is not the expected JSON shape


@dataclass
class SyncResult:
    """Result of synchronizing one lottery type from its remote feed."""
    lottery_type: str
    status: SyncStatus
    success: bool
    total: int = 0
    stored: int = 0
    skipped: int = 0
    duplicates: int = 0
    response_time_ms: Optional[int] = None
    message: str = ""

    def to_dict(self) -> Dict:
        result = asdict(self)
        result['status'] = self.status.value
        return result


class FeedError(Exception):
    """Raised by fetch_remote_records when the feed cannot be read."""

    def __init__(self, status: SyncStatus, message: str):
        super().__init__(message)
        self.status = status


def get_lottery_url(lottery_type: str, year: Optional[int] = None) -> Optional[str]:
    """
    Resolve the feed URL of a lottery type from the LOTTERY_URLS env variable.

    LOTTERY_URLS is a JSON object mapping type keys to URLs. Any standalone
    4-digit token in the URL is replaced with the current year.
    """
    raw = os.getenv("LOTTERY_URLS")
    if not raw:
        logger.warning("LOTTERY_URLS environment variable is not set")
        return None

    try:
        urls = json.loads(raw)
    except ValueError as e:
        logger.error(f"Failed to parse LOTTERY_URLS env var: {e}")
        return None

    if not isinstance(urls, dict) or not urls.get(lottery_type):
        logger.warning(f"No feed URL configured for lottery type {lottery_type}")
        return None

    year = year or datetime.now().year
    return _YEAR_TOKEN.sub(str(year), urls[lottery_type])


def fetch_remote_records(url: str) -> List[Dict]:
    """
    Fetch the raw draw list from a feed URL.

    Raises:
        FeedError: On network failures, HTTP errors or an unexpected body
    """
    headers = {
        "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36",
        "Accept": "application/json",
    }
    try:
        response = requests.get(url, headers=headers, timeout=FEED_TIMEOUT_SECONDS)
        response.raise_for_status()
        payload = response.json()
    except requests.exceptions.Timeout:
        raise FeedError(SyncStatus.TIMEOUT, f"Timeout after {FEED_TIMEOUT_SECONDS}s")
    except requests.exceptions.ConnectionError as e:
        raise FeedError(SyncStatus.CONNECTION_ERROR, f"Connection error: {e}")
    except requests.exceptions.HTTPError as e:
        raise FeedError(SyncStatus.HTTP_ERROR, f"HTTP error: {e}")
    except requests.exceptions.RequestException as e:
        raise FeedError(SyncStatus.CONNECTION_ERROR, f"Request failed: {e}")
    except ValueError as e:
        raise FeedError(SyncStatus.INVALID_RESPONSE, f"Invalid JSON: {e}")

    data = payload.get("data") if isinstance(payload, dict) else None
    if not isinstance(data, list):
        raise FeedError(SyncStatus.INVALID_RESPONSE, "Feed body has no 'data' list")
    return data


def prepare_record(item: Dict) -> Optional[Dict]:
    """
    Clean one feed item for storage.

    Items without a resolvable special number return None. The zodiac list is
    trimmed and re-joined with ", " (or derived from the special number when
    missing) and the wave is derived from the special number.
    """
    normalized = normalize_record(item, DEFAULT_TABLES)
    if isinstance(normalized, RejectedRecord):
        logger.debug(f"Skipping feed item {normalized.expect}: {normalized.reason}")
        return None

    labels = split_labels(item.get("zodiac"))
    zodiac = ", ".join(labels) if labels else normalized.zodiac

    return {
        "expect": normalized.expect,
        "open_time": item.get("openTime", item.get("open_time")),
        "open_code": item.get("openCode", item.get("open_code")),
        "zodiac": zodiac,
        "wave": DEFAULT_TABLES.wave_for(normalized.special_number),
    }


def sync_lottery(lottery_type: str) -> SyncResult:
    """
    Pull the remote feed of a lottery type and store every usable record.

    Returns:
        SyncResult; failures are reported through its status, never raised
    """
    url = get_lottery_url(lottery_type)
    if not url:
        return SyncResult(
            lottery_type=lottery_type,
            status=SyncStatus.URL_NOT_CONFIGURED,
            success=False,
            message="LOTTERY_URLS is missing or has no entry for this type",
        )

    logger.info(f"Syncing {lottery_type} from {url}")
    start_time = time.time()
    try:
        items = fetch_remote_records(url)
    except FeedError as e:
        logger.error(f"Sync of {lottery_type} failed ({e.status.value}): {e}")
        return SyncResult(
            lottery_type=lottery_type,
            status=e.status,
            success=False,
            response_time_ms=int((time.time() - start_time) * 1000),
            message=str(e),
        )
    response_time_ms = int((time.time() - start_time) * 1000)

    stored = skipped = duplicates = 0
    for item in items:
        record = prepare_record(item) if isinstance(item, dict) else None
        if record is None:
            skipped += 1
            continue
        if add_record(lottery_type, record):
            stored += 1
        else:
            duplicates += 1

    logger.info(
        f"Sync of {lottery_type} complete: stored {stored}/{len(items)} "
        f"(skipped={skipped}, duplicates={duplicates})"
    )
    return SyncResult(
        lottery_type=lottery_type,
        status=SyncStatus.SUCCESS,
        success=True,
        total=len(items),
        stored=stored,
        skipped=skipped,
        duplicates=duplicates,
        response_time_ms=response_time_ms,
        message=f"Stored {stored} of {len(items)} records",
    )
