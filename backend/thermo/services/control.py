"""Hysteresis control for the coupled relay pair.

Everything here is pure: the caller supplies the channels, the device config
and the previous decision (taken from the most recent persisted reading) and
gets back the process value and the next decision. Persistence and the
read-decide-append sequence live in ``services.ingest``.
"""
from __future__ import annotations

import enum
import math
from dataclasses import dataclass
from numbers import Real
from typing import Iterable, Optional

AUTO = "auto"
MANUAL = "manual"
MODES = (AUTO, MANUAL)


class Decision(enum.Enum):
    """ON/OFF for both relays; they are never driven independently."""

    OFF = "off"
    ON = "on"

    @property
    def flags(self) -> tuple[bool, bool]:
        on = self is Decision.ON
        return on, on

    @classmethod
    def from_flags(cls, relay1: Optional[bool], relay2: Optional[bool]) -> "Decision":
        return cls.ON if (relay1 and relay2) else cls.OFF


@dataclass(frozen=True)
class ControlResult:
    pv: float
    decision: Decision

    @property
    def pv_defined(self) -> bool:
        return not math.isnan(self.pv)


def _finite(value) -> bool:
    if isinstance(value, bool) or not isinstance(value, Real):
        return False
    return math.isfinite(value)


def process_value(channels: Iterable) -> float:
    """Mean of the finite channels, NaN when there are none."""
    vals = [float(v) for v in channels if _finite(v)]
    if not vals:
        return math.nan
    return sum(vals) / len(vals)


def thresholds(setpoint: float, hysteresis: float) -> tuple[float, float]:
    half = hysteresis / 2
    return setpoint - half, setpoint + half


def decide(channels: Iterable, setpoint: float, hysteresis: float, mode: str,
           previous: Optional[Decision]) -> ControlResult:
    pv = process_value(channels)
    current = previous or Decision.OFF

    if mode != AUTO or math.isnan(pv):
        # manual mode, or no usable channel: carry the decision forward
        return ControlResult(pv, current)

    on_thr, off_thr = thresholds(setpoint, hysteresis)
    if current is Decision.OFF and pv < on_thr:
        return ControlResult(pv, Decision.ON)
    if current is Decision.ON and pv > off_thr:
        return ControlResult(pv, Decision.OFF)
    return ControlResult(pv, current)
