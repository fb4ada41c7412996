"""Utility functions."""

from app.utils.time import format_datetime, format_display, parse_datetime

__all__ = ["format_datetime", "format_display", "parse_datetime"]
