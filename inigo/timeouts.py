"""Default polling timeouts, overridable from the environment."""

import dataclasses
import datetime
import os
import re
from fractions import Fraction

_NANOS_PER_UNIT = {
    "ns": 1,
    "us": 1_000,
    "\u00b5s": 1_000,
    "\u03bcs": 1_000,
    "ms": 1_000_000,
    "s": 1_000_000_000,
    "m": 60_000_000_000,
    "h": 3_600_000_000_000,
}
_COMPONENT = re.compile(r"(\d*)(?:\.(\d*))?([^\d.]*)")


@dataclasses.dataclass(frozen=True)
class Timeouts:
    """How long to wait for, and how often to poll, asynchronous expectations."""

    eventually_timeout: datetime.timedelta = datetime.timedelta(minutes=1)
    consistently_duration: datetime.timedelta = datetime.timedelta(seconds=5)
    consistently_polling_interval: datetime.timedelta = datetime.timedelta(milliseconds=100)
    eventually_polling_interval: datetime.timedelta = datetime.timedelta(milliseconds=500)


def parse_duration(text):
    """Parse a duration such as ``"300ms"`` or ``"-2h45m"``; raise ValueError if malformed."""
    negative = text[:1] == "-"
    body = text[1:] if text[:1] in ("+", "-") else text
    if body == "0":
        return datetime.timedelta(0)
    if not body:
        raise ValueError(f'time: invalid duration "{text}"')

    total = Fraction(0)
    position = 0
    while position < len(body):
        match = _COMPONENT.match(body, position)
        whole, fraction, unit = match.groups()
        if not whole and not fraction:
            raise ValueError(f'time: invalid duration "{text}"')
        if not unit:
            raise ValueError(f'time: missing unit in duration "{text}"')
        if unit not in _NANOS_PER_UNIT:
            raise ValueError(f'time: unknown unit "{unit}" in duration "{text}"')
        value = Fraction(int(whole or "0"))
        if fraction:
            value += Fraction(int(fraction), 10 ** len(fraction))
        total += value * _NANOS_PER_UNIT[unit]
        position = match.end()

    nanos = int(total)
    if nanos >= 1 << 63:
        raise ValueError(f'time: invalid duration "{text}"')
    result = datetime.timedelta(microseconds=nanos / 1000)
    return -result if negative else result


def register_default_timeouts(environ=None):
    """Return the default Timeouts with DEFAULT_EVENTUALLY_TIMEOUT and
    DEFAULT_CONSISTENTLY_DURATION applied when set."""
    environ = os.environ if environ is None else environ
    overrides = {}
    for variable, field in (
        ("DEFAULT_EVENTUALLY_TIMEOUT", "eventually_timeout"),
        ("DEFAULT_CONSISTENTLY_DURATION", "consistently_duration"),
    ):
        value = environ.get(variable, "")
        if value:
            overrides[field] = parse_duration(value)
    return Timeouts(**overrides)