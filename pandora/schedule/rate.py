"""Constant and linearly changing operations-per-second schedules."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import timedelta

from pandora.schedule.do_at import DoAtSchedule, new_do_at_schedule

_SECOND = timedelta(seconds=1)


@dataclass
class ConstConfig:
    ops: float
    duration: timedelta


@dataclass
class LineConfig:
    from_: float
    to: float
    duration: timedelta


def new_const(ops: float, duration: timedelta) -> DoAtSchedule:
    """Schedule with ops operations per second for duration; negative ops means zero."""
    ops = max(ops, 0.0)
    n = int(ops * duration.total_seconds())

    def do_at(i: int) -> timedelta:
        return timedelta(seconds=i / ops)

    return new_do_at_schedule(duration, n, do_at)


def new_const_conf(conf: ConstConfig) -> DoAtSchedule:
    return new_const(conf.ops, conf.duration)


def new_line(from_: float, to: float, duration: timedelta) -> DoAtSchedule:
    """Schedule whose rate changes linearly from from_ to to over duration.

    The slope is computed over the whole seconds of duration, so a
    duration shorter than one second is rejected unless the rate is constant.
    """
    if from_ == to:
        return new_const(from_, duration)
    whole_seconds = duration // _SECOND
    if whole_seconds == 0:
        raise ValueError("line schedule duration should be at least one second")
    a = (to - from_) / whole_seconds
    b = from_
    xn = duration.total_seconds()
    n = int(a * xn * xn / 2 + b * xn)
    return new_do_at_schedule(duration, n, _line_do_at(a, b))


def new_line_conf(conf: LineConfig) -> DoAtSchedule:
    return new_line(conf.from_, conf.to, conf.duration)


def _line_do_at(a: float, b: float):
    # Shots up to x: a*x^2/2 + b*x, so shot i happens at (sqrt(2*a*i + b^2) - b) / a.
    two_a = 2 * a
    b_square = b * b

    def do_at(i: int) -> timedelta:
        return timedelta(seconds=(math.sqrt(two_a * i + b_square) - b) / a)

    return do_at