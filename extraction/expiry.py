"""
Expiry date interpretation for supplier bills.
Bills print expiry as MM/YY, MM-YY, YYYY-MM or a full date; unknown formats yield None, never an error.
"""
from __future__ import annotations

import logging
import re
from datetime import date, datetime

from dateutil import parser as date_parser

logger = logging.getLogger(__name__)

# MM/YY or MM-YY (1-2 digit month, exactly 2-digit year)
SHORT_MONTH_YEAR = re.compile(r"^(\d{1,2})[/\-](\d{2})$")
# YYYY-MM
ISO_YEAR_MONTH = re.compile(r"^(\d{4})-(\d{1,2})$")
# MM.YYYY, MM/YYYY or MM-YYYY
MONTH_FULL_YEAR = re.compile(r"^(\d{1,2})[./\-](\d{4})$")
# Two-digit years below this pivot are 20xx, otherwise 19xx
CENTURY_PIVOT = 50

_PARSE_DEFAULT = datetime(2000, 1, 1)
# Differs from _PARSE_DEFAULT in year and month; a field that follows the default was absent from the input
_CHECK_DEFAULT = datetime(2001, 2, 2)


def _first_of_month(year: int, month: int) -> date | None:
    if not 1 <= month <= 12:
        return None
    return date(year, month, 1)


def _generic_parse(s: str, dayfirst: bool) -> date | None:
    """dateutil parse that requires year and month in the input. A missing day means the 1st."""
    try:
        parsed = date_parser.parse(s, dayfirst=dayfirst, default=_PARSE_DEFAULT)
        check = date_parser.parse(s, dayfirst=dayfirst, default=_CHECK_DEFAULT)
    except (ValueError, OverflowError) as e:
        logger.debug("Unrecognised expiry %r: %s", s, e)
        return None
    if (parsed.year, parsed.month) != (check.year, check.month):
        logger.debug("Expiry %r has no year or month", s)
        return None
    return parsed.date()


def parse_expiry_date(text: str | None, *, dayfirst: bool = True) -> date | None:
    """
    Parse a raw expiry string. Rules in order, first match wins:
    MM/YY | MM-YY -> first of month (YY < 50 -> 20YY else 19YY); YYYY-MM -> first of month;
    MM.YYYY | MM/YYYY | MM-YYYY -> first of month; otherwise generic date parsing, which must
    find both year and month. Empty or unparseable -> None.
    """
    if not text:
        return None
    s = text.strip()
    if not s:
        return None

    m = SHORT_MONTH_YEAR.match(s)
    if m:
        yy = int(m.group(2))
        year = 2000 + yy if yy < CENTURY_PIVOT else 1900 + yy
        return _first_of_month(year, int(m.group(1)))

    m = ISO_YEAR_MONTH.match(s)
    if m:
        return _first_of_month(int(m.group(1)), int(m.group(2)))

    m = MONTH_FULL_YEAR.match(s)
    if m:
        return _first_of_month(int(m.group(2)), int(m.group(1)))

    return _generic_parse(s, dayfirst)


class ExpiryDateInterpreter:
    """Callable wrapper so the day-first preference comes from config."""

    def __init__(self, dayfirst: bool = True) -> None:
        self._dayfirst = dayfirst

    def __call__(self, text: str | None) -> date | None:
        return parse_expiry_date(text, dayfirst=self._dayfirst)
