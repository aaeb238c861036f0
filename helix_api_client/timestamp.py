"""
Timestamp value type used by Helix resource records.

The API has historically returned points in time in three shapes:
an RFC3339 string, an integer number of Unix seconds, and an integer
number of Unix milliseconds.  :class:`Timestamp` normalises all three
into a single timezone-aware :class:`datetime.datetime`.

Integers are first read as seconds.  When that lands beyond the year
3000 (or overflows ``datetime``) the value is read again as
milliseconds.  This heuristic breaks for genuine far-future dates in
seconds; it is kept because both encodings are otherwise
indistinguishable.
"""

from __future__ import annotations

import json
import re
from datetime import datetime, timedelta, timezone
from typing import Any, Union

from .exceptions import TimestampDecodeError

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_MAX_SECONDS_YEAR = 3000
_INTEGER = re.compile(r"-?[0-9]+")


def _from_unix(value: int) -> datetime:
    try:
        dt = _EPOCH + timedelta(seconds=value)
    except OverflowError:
        dt = None
    if dt is None or dt.year > _MAX_SECONDS_YEAR:
        return _EPOCH + timedelta(milliseconds=value)
    return dt


def _parse_rfc3339(value: str) -> datetime:
    # fromisoformat only accepts a trailing "Z" on Python 3.11+
    iso_str = value[:-1] + "+00:00" if value.endswith(("Z", "z")) else value
    parsed = datetime.fromisoformat(iso_str)
    if parsed.tzinfo is None:
        raise ValueError(f"timestamp {value!r} has no time zone designator")
    return parsed


class Timestamp:
    """A single absolute point in time."""

    __slots__ = ("time",)

    def __init__(self, time: datetime) -> None:
        if time.tzinfo is None:
            time = time.replace(tzinfo=timezone.utc)
        self.time = time

    @classmethod
    def decode(cls, raw: Union[bytes, str]) -> "Timestamp":
        """Decode the raw JSON text of a single value.

        Raises
        ------
        TimestampDecodeError
            If the value is neither an integer nor a quoted RFC3339
            string.
        """
        text = raw.decode("utf-8") if isinstance(raw, bytes) else raw
        text = text.strip()
        # plain JSON integers only; int() would also take "+1", "1_000" or " 1 "
        if _INTEGER.fullmatch(text):
            try:
                return cls(_from_unix(int(text)))
            except OverflowError as exc:
                raise TimestampDecodeError(f"timestamp out of range: {text}") from exc
        try:
            value = json.loads(text)
            if not isinstance(value, str):
                raise ValueError(f"expected a quoted RFC3339 string, got {text}")
            return cls(_parse_rfc3339(value))
        except ValueError as exc:
            raise TimestampDecodeError(f"cannot decode timestamp {text}: {exc}") from exc

    @classmethod
    def from_json(cls, value: Any) -> "Timestamp":
        """Build a timestamp from an already decoded JSON value."""
        if isinstance(value, Timestamp):
            return value
        if isinstance(value, bool):
            raise TimestampDecodeError(f"cannot decode timestamp {value!r}")
        if isinstance(value, int):
            try:
                return cls(_from_unix(value))
            except OverflowError as exc:
                raise TimestampDecodeError(f"timestamp out of range: {value}") from exc
        if isinstance(value, str):
            try:
                return cls(_parse_rfc3339(value))
            except ValueError as exc:
                raise TimestampDecodeError(
                    f"cannot decode timestamp {value!r}: {exc}"
                ) from exc
        raise TimestampDecodeError(f"cannot decode timestamp {value!r}")

    def to_json(self) -> str:
        """Return the RFC3339 representation in UTC."""
        return self.time.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Timestamp):
            return self.time == other.time
        if isinstance(other, datetime):
            return self.time == other
        return NotImplemented

    def __lt__(self, other: "Timestamp") -> bool:
        if not isinstance(other, Timestamp):
            return NotImplemented
        return self.time < other.time

    def __hash__(self) -> int:
        return hash(self.time)

    def __str__(self) -> str:
        return str(self.time)

    def __repr__(self) -> str:
        return f"Timestamp({self.time!r})"
