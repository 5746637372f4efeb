import math
from datetime import date, datetime, timezone
from typing import Any, Optional, Union

Number = Union[int, float]


class ValueParser:
    """
    Interprets raw cell values read back from a sink.

    Stores hand back whatever they hold: native numbers from the
    in-memory store, strings from MySQL TEXT columns, datetimes from
    drivers that convert them. Statistics and retention both need a
    single, strict answer to "is this a number" and "is this a date".
    """

    DATETIME_FORMATS = [
        "%Y-%m-%dT%H:%M:%S.%fZ",
        "%Y-%m-%dT%H:%M:%SZ",
        "%Y-%m-%d %H:%M:%S",
        "%Y-%m-%d",
        "%d/%m/%Y",
        "%m/%d/%Y",
        "%Y/%m/%d",
    ]

    @classmethod
    def parse_number(cls, value: Any) -> Optional[Number]:
        """
        Parse a cell value as a finite number.

        Empty strings, None, booleans, NaN, infinities and text with
        underscores are not numbers.

        Args:
            value: Raw cell value

        Returns:
            int or float, or None when the value is not numeric
        """
        if value is None or isinstance(value, bool):
            return None

        if isinstance(value, int):
            return value

        if isinstance(value, float):
            return value if math.isfinite(value) else None

        if isinstance(value, str):
            text = value.strip()
            # int() and float() accept digit-group underscores ("1_000")
            if not text or "_" in text:
                return None
            try:
                return int(text)
            except ValueError:
                pass
            try:
                number = float(text)
            except ValueError:
                return None
            return number if math.isfinite(number) else None

        return None

    @classmethod
    def is_number(cls, value: Any) -> bool:
        return cls.parse_number(value) is not None

    @classmethod
    def parse_timestamp(cls, value: Any) -> Optional[datetime]:
        """
        Parse a cell value as a timezone-aware datetime.

        Accepts datetime / date objects and ISO-8601 strings (a trailing
        "Z" is understood), falling back to a few common date layouts.
        Naive results are taken to be UTC.

        Args:
            value: Raw cell value

        Returns:
            Aware datetime, or None when the value is not a date
        """
        if isinstance(value, datetime):
            parsed = value
        elif isinstance(value, date):
            parsed = datetime(value.year, value.month, value.day)
        elif isinstance(value, str) and value.strip():
            parsed = cls._parse_datetime_string(value.strip())
            if parsed is None:
                return None
        else:
            return None

        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed

    @classmethod
    def _parse_datetime_string(cls, value: str) -> Optional[datetime]:
        iso_value = value[:-1] + "+00:00" if value.endswith("Z") else value
        try:
            return datetime.fromisoformat(iso_value)
        except ValueError:
            pass

        for fmt in cls.DATETIME_FORMATS:
            try:
                return datetime.strptime(value, fmt)
            except ValueError:
                continue
        return None
