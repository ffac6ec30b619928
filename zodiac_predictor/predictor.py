"""
Zodiac Predictor - Prediction Service
=====================================

Glue between storage and the forecasting engine: loads the newest records of
a lottery type, runs the engine and persists successful reports.
"""

from typing import Any, Dict, Optional, Union

from loguru import logger

from zodiac_predictor import database as db
from zodiac_predictor.config import get_history_limit, get_prediction_config
from zodiac_predictor.engine import InsufficientData, PredictionConfig, PredictionEngine, PredictionReport


class Predictor:
    """
    Runs predictions for stored lottery types.

    Usage:
        predictor = Predictor()
        result = predictor.generate_for_type('HK')
    """

    def __init__(self, config: Optional[PredictionConfig] = None, history_limit: Optional[int] = None):
        self.config = config or get_prediction_config()
        self.history_limit = history_limit if history_limit is not None else get_history_limit()
        self.engine = PredictionEngine(config=self.config)
        logger.info(f"Predictor initialized (history_limit={self.history_limit})")

    def generate_for_type(self, lottery_type: str,
                          persist: bool = True) -> Union[PredictionReport, InsufficientData]:
        """
        Generate a prediction from the newest stored draws of ``lottery_type``.

        Args:
            lottery_type: Lottery type key
            persist: Store a successful report in the predictions table

        Returns:
            PredictionReport or InsufficientData
        """
        records = db.get_records(lottery_type, limit=self.history_limit)
        result = self.engine.generate(records)

        if isinstance(result, InsufficientData):
            logger.warning(f"Prediction for {lottery_type} aborted: {result.error}")
            return result

        if persist:
            prediction_id = db.add_prediction(lottery_type, result.to_dict())
            if prediction_id is None:
                logger.error(f"Prediction for {lottery_type} generated but could not be stored")
        return result

    def get_latest_for_type(self, lottery_type: str) -> Optional[Dict[str, Any]]:
        latest = db.get_latest_prediction(lottery_type)
        if not latest or not latest.get('prediction_data'):
            logger.info(f"No stored prediction for {lottery_type}")
            return None
        return latest


def get_predictor() -> Predictor:
    """
    Factory function to get an instance of Predictor.
    """
    return Predictor()
