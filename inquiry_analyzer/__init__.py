"""Inquiry Analyzer: client inquiry in, structured project assessment out."""

__version__ = "0.1.0"
