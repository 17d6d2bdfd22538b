"""Service modules"""
from .aggregator import PositionAggregator
from .monitor import Monitor

__all__ = ["PositionAggregator", "Monitor"]
