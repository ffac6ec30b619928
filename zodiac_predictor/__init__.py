"""
Zodiac Predictor
================

Draw history storage, feed synchronization, HTTP API and chat delivery
around the statistical forecasting engine in ``zodiac_predictor.engine``.
"""

__version__ = "1.0.0"
