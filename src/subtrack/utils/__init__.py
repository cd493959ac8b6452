"""Utility functions for subtrack."""

from subtrack.utils.date_parser import parse_date, parse_timestamp, utc_now
from subtrack.utils.amount_parser import parse_amount

__all__ = ["parse_date", "parse_timestamp", "utc_now", "parse_amount"]
