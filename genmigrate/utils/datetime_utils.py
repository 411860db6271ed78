#!filepath: genmigrate/utils/datetime_utils.py
from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from decimal import Decimal, InvalidOperation
from typing import Union

from genmigrate.core.types import EPOCH, GenesisTime


class DateTimeUtils:
    UTC = timezone.utc

    _RFC3339 = re.compile(
        r"^(?P<date>\d{4}-\d{2}-\d{2})T(?P<time>\d{2}:\d{2}:\d{2})"
        r"(?:\.(?P<frac>\d{1,9}))?"
        r"(?P<tz>Z|[+-]\d{2}:\d{2})$"
    )

    # ================================================================
    # RFC 3339 text -> GenesisTime (UTC, ns precision)
    # ================================================================
    @classmethod
    def parse_rfc3339(cls, text: str) -> GenesisTime:
        """
        Accepts what Go's time.Time.UnmarshalText accepts:
            "2019-04-22T17:00:00Z"
            "2021-02-18T06:00:00.123456789Z"
            "2021-02-18T08:00:00+02:00"
        Raises ValueError otherwise.
        """
        if not isinstance(text, str):
            raise ValueError(f"timestamp must be a string, got {type(text).__name__}")

        m = cls._RFC3339.match(text.strip())
        if m is None:
            raise ValueError(f"not an RFC 3339 timestamp: {text!r}")

        moment = datetime.strptime(f"{m['date']}T{m['time']}", "%Y-%m-%dT%H:%M:%S")

        tz = m["tz"]
        if tz == "Z":
            offset = timedelta(0)
        else:
            sign = -1 if tz[0] == "-" else 1
            hh, mm = int(tz[1:3]), int(tz[4:6])
            if hh > 23 or mm > 59:
                raise ValueError(f"bad zone offset in {text!r}")
            offset = sign * timedelta(hours=hh, minutes=mm)

        try:
            moment = moment.replace(tzinfo=timezone(offset)).astimezone(cls.UTC)
        except OverflowError:
            raise ValueError(f"timestamp out of range: {text!r}") from None

        frac = m["frac"] or ""
        nanos = int(frac.ljust(9, "0")) if frac else 0

        return GenesisTime(moment=moment, nanos=nanos)

    # ================================================================
    # GenesisTime -> Go RFC3339Nano text
    # ================================================================
    @classmethod
    def format_rfc3339_nano(cls, t: GenesisTime) -> str:
        base = t.moment.astimezone(cls.UTC).strftime("%Y-%m-%dT%H:%M:%S")
        if t.nanos:
            base += "." + f"{t.nanos:09d}".rstrip("0")
        return base + "Z"

    @classmethod
    def from_unix_nanos(cls, ns: int) -> GenesisTime:
        secs, nanos = divmod(ns, 1_000_000_000)
        return GenesisTime(moment=EPOCH + timedelta(seconds=secs), nanos=nanos)

    # ================================================================
    # protobuf Duration JSON ("1209600s", "0.5s") or raw ns -> int ns
    # ================================================================
    @classmethod
    def parse_duration_nanos(cls, value: Union[str, int]) -> int:
        if isinstance(value, bool):
            raise ValueError(f"not a duration: {value!r}")
        if isinstance(value, int):
            return value

        s = str(value).strip()
        try:
            if s.endswith("s"):
                return int(Decimal(s[:-1]) * 1_000_000_000)
            return int(Decimal(s))
        except InvalidOperation:
            raise ValueError(f"not a duration: {value!r}") from None
