"""
Zodiac Predictor - Chat Notifier
================================

Plain-text summary of a prediction report and delivery to a Telegram chat
through the Bot API.
"""

import os
from datetime import datetime
from typing import Any, Dict, Optional

import pytz
import requests
from loguru import logger

DISPLAY_TIMEZONE = pytz.timezone('Asia/Shanghai')
TELEGRAM_API_URL = "https://api.telegram.org/bot{token}/{method}"


def _format_local_time(value) -> str:
    """ISO timestamp (or datetime) rendered in the display timezone."""
    if isinstance(value, datetime):
        moment = value
    else:
        try:
            moment = datetime.fromisoformat(str(value))
        except ValueError:
            return str(value)
    if moment.tzinfo is None:
        moment = pytz.UTC.localize(moment)
    return moment.astimezone(DISPLAY_TIMEZONE).strftime('%Y-%m-%d %H:%M:%S')


def format_prediction_summary(report: Dict[str, Any], type_name: str,
                              created_at: Optional[str] = None) -> str:
    """
    Render a stored or fresh report payload as a plain-text message.

    Args:
        report: ``PredictionReport.to_dict()`` payload
        type_name: Display name of the lottery type
        created_at: Storage timestamp; when given the title marks the report
                    as a stored one instead of a fresh one
    """
    recommendations = report.get('recommendations', {})
    details = report.get('analysis_details', {})
    transition = details.get('transition_from_last', {})

    title = f"{type_name} 最新预测报告" if created_at else f"{type_name} 全新预测报告"
    generated = _format_local_time(created_at or report.get('generated_at', ''))

    lines = [
        title,
        f"生成时间: {generated}",
        "-" * 40,
        "核心推荐 (综合加权)",
        f"- 主攻生肖: {', '.join(recommendations.get('combined_zodiacs', []))}",
        f"- 号码: {', '.join(str(n) for n in recommendations.get('combined_numbers', []))}",
        "",
        "数据洞察",
        f"- 近期热点: {', '.join(details.get('hot_zodiacs', []))}",
        f"- 冷肖: {', '.join(details.get('cold_zodiacs', []))}",
        f"- 最久未出: {', '.join(details.get('most_overdue_zodiacs', []))}",
        f"- 上期 [{transition.get('from', '')}] 后最可能出现: {', '.join(transition.get('next', []))}",
        "",
        f"基于最近 {report.get('based_on_records', 0)} 期有效数据生成",
    ]
    return "\n".join(lines)


class TelegramNotifier:
    """Sends plain-text messages to one Telegram chat."""

    def __init__(self, token: str, chat_id: str, timeout: int = 10):
        self.token = token
        self.chat_id = chat_id
        self.timeout = timeout
        logger.info(f"TelegramNotifier initialized (chat={chat_id})")

    @classmethod
    def from_env(cls) -> Optional['TelegramNotifier']:
        """Notifier configured from TELEGRAM_BOT_TOKEN / TELEGRAM_CHAT_ID, or None."""
        token = os.getenv("TELEGRAM_BOT_TOKEN")
        chat_id = os.getenv("TELEGRAM_CHAT_ID")
        if not token or not chat_id:
            logger.debug("Telegram notifier disabled (TELEGRAM_BOT_TOKEN / TELEGRAM_CHAT_ID not set)")
            return None
        return cls(token, chat_id)

    def send_message(self, text: str) -> bool:
        url = TELEGRAM_API_URL.format(token=self.token, method="sendMessage")
        try:
            response = requests.post(url, json={"chat_id": self.chat_id, "text": text}, timeout=self.timeout)
            body = response.json()
        except requests.exceptions.RequestException as e:
            logger.error(f"Telegram request failed: {e}")
            return False
        except ValueError as e:
            logger.error(f"Telegram returned a non-JSON response: {e}")
            return False

        if not body.get("ok"):
            logger.error(f"Telegram API error [sendMessage]: {body.get('description')}")
            return False
        return True

    def send_report(self, report: Dict[str, Any], type_name: str, created_at: Optional[str] = None) -> bool:
        return self.send_message(format_prediction_summary(report, type_name, created_at))
