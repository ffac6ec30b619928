"""
Zodiac Predictor Configuration
==============================

Reads ``config/config.ini`` for storage paths, engine tunables and the
supported lottery types. Missing sections or options fall back to the
engine defaults with a warning.
"""

import configparser
import os
from typing import Dict

from loguru import logger

from zodiac_predictor.engine import PredictionConfig, StrategyWeights

DEFAULT_LOTTERY_TYPES = {'HK': '香港', 'XINAO': '新澳', 'LAOAO': '老澳'}
DEFAULT_HISTORY_LIMIT = 100


def get_config_path() -> str:
    current_dir = os.path.dirname(os.path.abspath(__file__))
    return os.path.join(current_dir, '..', 'config', 'config.ini')


def load_config() -> configparser.ConfigParser:
    """Parse the ini file; an unreadable file yields an empty parser."""
    config = configparser.ConfigParser()
    # Lottery type keys are case sensitive (HK, XINAO, ...)
    config.optionxform = str
    try:
        read = config.read(get_config_path(), encoding='utf-8')
        if not read:
            logger.warning(f"Config file not found at {get_config_path()}, using defaults")
    except (configparser.Error, OSError) as e:
        logger.error(f"Error reading config file: {e}. Using defaults.")
        config = configparser.ConfigParser()
    return config


def get_prediction_config(config: configparser.ConfigParser = None) -> PredictionConfig:
    """Build the engine configuration from the ``[prediction]`` section."""
    config = config if config is not None else load_config()
    defaults = PredictionConfig()
    if not config.has_section('prediction'):
        logger.warning("Config section 'prediction' not found, using engine defaults")
        return defaults

    section = config['prediction']
    try:
        weights = StrategyWeights(
            transition=section.getfloat('weight_transition', defaults.weights.transition),
            hot=section.getfloat('weight_hot', defaults.weights.hot),
            omission=section.getfloat('weight_omission', defaults.weights.omission),
            cold=section.getfloat('weight_cold', defaults.weights.cold),
        )
        return PredictionConfig(
            min_records=section.getint('min_records', defaults.min_records),
            hot_window=section.getint('hot_window', defaults.hot_window),
            strategy_depth=section.getint('strategy_depth', defaults.strategy_depth),
            top_labels=section.getint('top_labels', defaults.top_labels),
            expansion_labels=section.getint('expansion_labels', defaults.expansion_labels),
            max_numbers=section.getint('max_numbers', defaults.max_numbers),
            weights=weights,
        )
    except ValueError as e:
        logger.error(f"Invalid value in [prediction] config: {e}. Using engine defaults.")
        return defaults


def get_history_limit(config: configparser.ConfigParser = None) -> int:
    """How many newest records are loaded for one prediction."""
    config = config if config is not None else load_config()
    try:
        return config.getint('prediction', 'history_limit', fallback=DEFAULT_HISTORY_LIMIT)
    except ValueError as e:
        logger.error(f"Invalid history_limit in config: {e}")
        return DEFAULT_HISTORY_LIMIT


def get_lottery_types(config: configparser.ConfigParser = None) -> Dict[str, str]:
    """Supported lottery type keys mapped to display names."""
    config = config if config is not None else load_config()
    if config.has_section('lottery_types') and config.items('lottery_types'):
        return dict(config.items('lottery_types'))
    logger.warning("Config section 'lottery_types' not found, using built-in types")
    return dict(DEFAULT_LOTTERY_TYPES)


def get_database_file(config: configparser.ConfigParser = None) -> str:
    config = config if config is not None else load_config()
    return config.get('paths', 'database_file', fallback='data/zodiac_predictor.db')
