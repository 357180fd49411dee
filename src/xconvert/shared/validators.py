"""
Input Validation Utilities - Normalization and Data Validation

This module provides the small validation helpers shared by configuration and
the currency service. Currency codes are only normalized here (trimmed and
upper-cased); no ISO membership check is performed.

Files that USE this module:
- xconvert.config.settings (restricted list parsing, URL validation)
- xconvert.application.currency_service (code normalization, amount and date checks)
- xconvert.application.cache_keys (date-only key parts)

Files that this module USES:
- None (pure utility functions)
"""
import json
import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, FrozenSet, Optional, Union


def normalize_currency(code: Optional[str]) -> str:
    """
    Normalize a currency code for lookups and cache keys.

    Args:
        code: Raw currency code (may be None or padded with whitespace)

    Returns:
        Upper-cased code, or empty string when nothing usable was supplied
    """
    if code is None:
        return ""
    return str(code).strip().upper()


def parse_currency_list(raw: Any) -> FrozenSet[str]:
    """
    Parse a restricted-currency list from configuration.

    Accepts a comma-separated string, a JSON array string, or an iterable of
    codes. Blank entries are ignored.

    Args:
        raw: Configuration value

    Returns:
        Frozen set of upper-cased currency codes
    """
    if raw is None:
        return frozenset()
    if isinstance(raw, str):
        text = raw.strip()
        if text.startswith("["):
            try:
                items = json.loads(text)
            except ValueError as e:
                raise ValueError(f"Invalid currency list: {raw!r}") from e
        else:
            items = text.split(",")
    else:
        items = list(raw)
    return frozenset(code for code in (normalize_currency(item) for item in items) if code)


def is_positive_amount(amount: Any) -> bool:
    """
    Check whether ``amount`` is a finite number greater than zero.

    Args:
        amount: Decimal, int, float or numeric string

    Returns:
        True if the amount can be converted and is > 0
    """
    if amount is None or isinstance(amount, bool):
        return False
    try:
        value = amount if isinstance(amount, Decimal) else Decimal(str(amount))
    except (InvalidOperation, ValueError):
        return False
    return value.is_finite() and value > 0


def validate_http_url(url: str) -> bool:
    """
    Validate that ``url`` looks like an http(s) base URL.

    Args:
        url: URL to validate

    Returns:
        True if valid, False otherwise
    """
    if not url:
        return False
    return bool(re.match(r"^https?://[^\s/$.?#][^\s]*$", url))


def to_date(value: Optional[Union[date, datetime]]) -> Optional[date]:
    """
    Drop the time part of a ``datetime``; plain dates and None pass through.

    Args:
        value: Date or datetime supplied by a caller

    Returns:
        Calendar date, or None when nothing was supplied
    """
    if isinstance(value, datetime):
        return value.date()
    return value
