"""
Cell helpers shared by the JSON rows and the spreadsheet parser.
Spreadsheet readers hand back NaN for blanks and floats for anything numeric,
so everything goes through here before it reaches the database.
"""
import math
import numbers
from datetime import datetime, time
from typing import Any, Optional

import pandas as pd


def is_blank(value) -> bool:
    if value is None:
        return True
    try:
        if pd.isna(value):
            return True
    except (TypeError, ValueError):
        pass
    return isinstance(value, str) and value.strip() == ""


def safe_str(value) -> Optional[str]:
    """Safely convert value to string, handling NaN and None (1012.0 -> "1012")"""
    if is_blank(value):
        return None
    if isinstance(value, bool):
        return str(int(value))
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    text = str(value).strip()
    return text or None


def safe_float(value) -> Optional[float]:
    """Safely convert value to float; unparseable cells become None"""
    if is_blank(value) or isinstance(value, bool):
        return None
    try:
        number = float(str(value).strip())
    except (ValueError, TypeError):
        return None
    return None if math.isnan(number) else number


def safe_time(value) -> Optional[str]:
    """Clock cells come back as time/datetime objects from Excel, as text from JSON"""
    if is_blank(value):
        return None
    if isinstance(value, (datetime, time)):
        return value.strftime("%H:%M")
    return safe_str(value)


def cell_or_none(value: Any):
    """NaN -> None, everything else untouched"""
    return None if is_blank(value) else value


def is_attended(value) -> bool:
    """Only a numeric 1 marks attendance; text such as "1" does not"""
    return isinstance(value, numbers.Number) and not isinstance(value, bool) and value == 1
