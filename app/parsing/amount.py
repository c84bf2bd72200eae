"""Locale-tolerant parsing of currency amounts found in bank emails."""

import re

_NON_NUMERIC = re.compile(r"[^0-9.,]")
GROUP_DIGITS = 3


def parse_amount(raw: str | None) -> float:
    """Parse '1.234,56', '1,234.56', '50.000' or '500' style amounts into a float.

    When both ',' and '.' appear, whichever occurs last is the decimal separator
    and the other is a digit-group separator. A lone separator is a decimal point
    unless it repeats or is followed by exactly three digits, in which case it
    groups thousands. Malformed or empty input yields 0.0.
    """
    if not raw:
        return 0.0
    clean = _NON_NUMERIC.sub("", raw)
    last_comma = clean.rfind(",")
    last_dot = clean.rfind(".")

    if last_comma >= 0 and last_dot >= 0:
        decimal, group = (",", ".") if last_comma > last_dot else (".", ",")
        integer, _, fraction = clean.rpartition(decimal)
        clean = integer.replace(group, "").replace(decimal, "") + "." + fraction
    elif last_comma >= 0 or last_dot >= 0:
        separator = "," if last_comma >= 0 else "."
        integer, _, fraction = clean.rpartition(separator)
        if clean.count(separator) > 1 or len(fraction) == GROUP_DIGITS:
            clean = clean.replace(separator, "")
        else:
            clean = f"{integer}.{fraction}"

    try:
        return float(clean)
    except ValueError:
        return 0.0
