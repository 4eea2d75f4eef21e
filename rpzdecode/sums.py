"""Running sums of packet data over an averaging interval."""

from __future__ import annotations

import math
from dataclasses import dataclass, field

from .model import Constants, correct_angles, correct_v
from .packets import Data

_UINT16 = 0x10000


def _zeros(size: int):
    return field(default_factory=lambda: [0.0] * size)


def _counts(size: int):
    return field(default_factory=lambda: [0] * size)


def _ratio(num: float, den: float) -> float:
    """Floating division that yields inf/nan instead of raising."""
    if den == 0:
        if num == 0 or math.isnan(num):
            return math.nan
        return math.copysign(math.inf, num) * math.copysign(1.0, den)
    return num / den


def _add(totals: list, values) -> list:
    return [total + value for total, value in zip(totals, values)]


def _add_counts(totals: list, values) -> list:
    # Raw multiplexed counters are accumulated in 16-bit registers.
    return [(total + value) % _UINT16 for total, value in zip(totals, values)]


@dataclass
class DataSum:
    """Accumulates packets until ``t`` reaches the averaging time ``taver``.

    Times are in microseconds.  Counts, sums and the last seen packet
    number, time and system time are kept; averages are formed by the
    caller.
    """

    taver: float
    npacks: int = 0
    t: float = 0.0
    tsi: float = 0.0
    time: float = 0.0
    tsist: float = 0.0
    npack: int = 0
    a: list = _zeros(3)
    m: list = _zeros(4)
    l: list = _zeros(4)
    dfi_r: list = _zeros(3)
    v: list = _zeros(3)
    w: list = _zeros(3)
    theta: list = _zeros(3)
    p: list = _counts(3)
    u: list = _counts(3)
    i: list = _counts(6)
    ta: list = _zeros(3)
    tmkd: float = 0.0
    t_lgx: list = _zeros(2)
    t_lgy: list = _zeros(2)
    t_lgz: list = _zeros(2)

    def add_data(self, data: Data) -> None:
        """Add one packet's values to the running sums."""
        self.t += data.tsi
        self.npacks += 1
        self.tsist = data.tsist
        self.tsi += data.tsi
        self.time = data.time
        self.npack = data.npack

        self.a = _add(self.a, data.a)
        self.v = _add(self.v, data.v)
        self.w = _add(self.w, data.w)
        self.p = _add_counts(self.p, data.p)
        self.dfi_r = _add(self.dfi_r, data.dfi_r)
        self.ta = _add(self.ta, data.ta)
        self.theta = _add(self.theta, data.theta)

        self.m = _add(self.m, data.m)
        self.l = _add(self.l, data.l)

        self.i = _add_counts(self.i, data.i)

        self.t_lgx = _add(self.t_lgx, data.t_lgx)
        self.t_lgy = _add(self.t_lgy, data.t_lgy)
        self.t_lgz = _add(self.t_lgz, data.t_lgz)
        self.tmkd += data.tmkd


@dataclass
class ModelDataSum(DataSum):
    """A :class:`DataSum` that also sums values corrected by the error model."""

    dfi_r_corr: list = _zeros(3)
    theta_corr: list = _zeros(3)
    v_corr: list = _zeros(3)
    w_corr: list = _zeros(3)

    def add_data(self, data: Data, constants: Constants) -> None:  # type: ignore[override]
        """Add one packet's raw and model-corrected values."""
        super().add_data(data)

        theta_corr = correct_angles(constants, data)
        v_corr = correct_v(constants, data)
        dfi_r_corr = [(data.tsi / 1_000_000) * value for value in theta_corr]
        w_corr = [_ratio(value * 1_000_000, data.tsi) for value in v_corr]

        self.dfi_r_corr = _add(self.dfi_r_corr, dfi_r_corr)
        self.theta_corr = _add(self.theta_corr, theta_corr)
        self.v_corr = _add(self.v_corr, v_corr)
        self.w_corr = _add(self.w_corr, w_corr)