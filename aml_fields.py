#!/usr/bin/env python3
"""Coerce-or-absent helpers shared by the SMS and HTTPS grammars.

Every helper returns ``None`` instead of raising when the raw value does not
convert; callers store the result directly so a bad value only blanks its own
field.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional, Tuple

logger = logging.getLogger(__name__)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _plain_number(value: str) -> bool:
    # int()/float() also take "1_000" and non-ASCII digits; AML numbers are plain ASCII
    return value.isascii() and "_" not in value


def parse_float(value: str) -> Optional[float]:
    if _plain_number(value):
        try:
            return float(value)
        except ValueError:
            pass
    logger.debug("Not a float: %r", value)
    return None


def parse_int(value: str) -> Optional[int]:
    if _plain_number(value):
        try:
            return int(value)
        except ValueError:
            pass
    logger.debug("Not an integer: %r", value)
    return None


def parse_unsigned(value: str) -> Optional[int]:
    """Non-negative integer, None otherwise."""
    number = parse_int(value)
    if number is None or number < 0:
        logger.debug("Not an unsigned integer: %r", value)
        return None
    return number


def parse_float_list(value: str, size: int) -> List[Optional[float]]:
    """Split a comma list into floats, right-padded with None to `size`.

    Items past `size` are discarded; unparsable items become None.
    """
    values = [parse_float(item) for item in value.split(",")]
    values.extend([None] * (size - len(values)))
    return values[:size]


def valid_choice(value: str, choices: Iterable[str]) -> Optional[str]:
    """Return `value` if it is one of `choices`, otherwise None."""
    if value in choices:
        return value
    logger.debug("Value %r not in %s", value, sorted(choices))
    return None


def parse_naive_utc(value: str, fmt: str) -> Optional[datetime]:
    """Parse a naive timestamp string and pin it to UTC."""
    try:
        return datetime.strptime(value, fmt).replace(tzinfo=timezone.utc)
    except ValueError:
        logger.debug("Timestamp %r does not match %s", value, fmt)
        return None


def seconds_to_utc(seconds: int) -> Optional[datetime]:
    """Unix epoch seconds -> aware UTC datetime, None when out of range."""
    try:
        return EPOCH + timedelta(seconds=seconds)
    except OverflowError:
        logger.debug("Epoch seconds out of range: %d", seconds)
        return None


def millis_to_utc(value: str) -> Optional[datetime]:
    """Unix epoch milliseconds (as text) -> aware UTC datetime."""
    millis = parse_int(value)
    if millis is None:
        return None
    try:
        return EPOCH + timedelta(milliseconds=millis)
    except OverflowError:
        logger.debug("Epoch milliseconds out of range: %d", millis)
        return None


def split_code(value: str, width: int = 3) -> Tuple[Optional[str], Optional[str]]:
    """Split a composite MCC+MNC code positionally: first `width` chars, rest.

    A value shorter than `width` yields nothing; an empty remainder leaves
    the MNC absent.
    """
    if len(value) < width:
        logger.debug("Network code too short: %r", value)
        return None, None
    return value[:width], (value[width:] or None)
