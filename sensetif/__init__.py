"""Sensetif datapoint configuration model."""

__version__ = "1.0.0"
