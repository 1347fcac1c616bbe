from __future__ import annotations

"""Date helpers shared by the data provider, the ledger and the driver.

All simulation dates are plain ``datetime.date`` values; the wire format is
``YYYY-MM-DD``.
"""

import datetime as _dt
from typing import Union

DateLike = Union[str, _dt.date, _dt.datetime]

DATE_FORMAT = '%Y-%m-%d'


def parse_date(value: DateLike) -> _dt.date:
    """Parse ``YYYY-MM-DD`` strings, dates and datetimes (incl. pandas.Timestamp)."""
    if isinstance(value, _dt.datetime):
        return value.date()
    if isinstance(value, _dt.date):
        return value
    if isinstance(value, str):
        return _dt.datetime.strptime(value.strip()[:10], DATE_FORMAT).date()
    raise ValueError(f"Invalid date input provided: {value!r}")


def format_date(value: DateLike) -> str:
    return parse_date(value).strftime(DATE_FORMAT)


__all__ = ['DateLike', 'DATE_FORMAT', 'parse_date', 'format_date']
