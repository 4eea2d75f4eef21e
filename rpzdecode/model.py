"""Instrument error model: passport constants and measurement correction."""

from __future__ import annotations

import itertools
import re
from dataclasses import dataclass
from typing import Iterable, TextIO

from .packets import Data

Poly = tuple[float, float, float, float]
Row = tuple[float, float, float]
Vector = tuple[float, float, float]
Misalignment = tuple[tuple[float, float], tuple[float, float], tuple[float, float]]

_ZERO_POLY: Poly = (0.0, 0.0, 0.0, 0.0)
_NUMBER = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_PREAMBLE_LINES = 27


@dataclass(frozen=True)
class Constants:
    """Passport constants of the gyroscopes (LG) and accelerometers (AK).

    The defaults describe an ideal instrument: no corrections and an
    identity orthogonalisation matrix.
    """

    dg12: Poly = _ZERO_POLY
    dg13: Poly = _ZERO_POLY
    dg21: Poly = _ZERO_POLY
    dg23: Poly = _ZERO_POLY
    dg31: Poly = _ZERO_POLY
    dg32: Poly = _ZERO_POLY

    dkg1: Poly = _ZERO_POLY
    dkg2: Poly = _ZERO_POLY
    dkg3: Poly = _ZERO_POLY

    dw1: Poly = _ZERO_POLY
    dw1dt: float = 0.0
    dwt1dt: float = 0.0
    dw2: Poly = _ZERO_POLY
    dw2dt: float = 0.0
    dwt2dt: float = 0.0
    dw3: Poly = _ZERO_POLY
    dw3dt: float = 0.0
    dwt3dt: float = 0.0

    dtnom: float = 0.0

    a1: Row = (1.0, 0.0, 0.0)
    a2: Row = (0.0, 1.0, 0.0)
    a3: Row = (0.0, 0.0, 1.0)

    dka1: Poly = _ZERO_POLY
    dka2: Poly = _ZERO_POLY
    dka3: Poly = _ZERO_POLY

    dga12: Poly = _ZERO_POLY
    dga13: Poly = _ZERO_POLY
    dga21: Poly = _ZERO_POLY
    dga23: Poly = _ZERO_POLY
    dga31: Poly = _ZERO_POLY
    dga32: Poly = _ZERO_POLY

    da1: Poly = _ZERO_POLY
    da1mkd: float = 0.0
    da2: Poly = _ZERO_POLY
    da2mkd: float = 0.0
    da3: Poly = _ZERO_POLY
    da3mkd: float = 0.0


def poly3(a0: float, a1: float, a2: float, a3: float, t: float) -> float:
    """Cubic polynomial in ``t``."""
    return a0 + a1 * t + a2 * t * t + a3 * t * t * t


def _poly(coefficients: Poly, t: float) -> float:
    return poly3(*coefficients, t)


def zero_offset(c: Constants, d: Data) -> Vector:
    """Accelerometer zero offsets."""
    return (
        _poly(c.da1, d.ta[0]) + c.da1mkd * d.tmkd,
        _poly(c.da2, d.ta[1]) + c.da2mkd * d.tmkd,
        _poly(c.da3, d.ta[2]) + c.da3mkd * d.tmkd,
    )


def ak_misalignment_params(c: Constants, d: Data) -> Misalignment:
    """Accelerometer misalignment terms, two off-diagonal entries per row."""
    return (
        (_poly(c.dga12, d.ta[0]), _poly(c.dga13, d.ta[0])),
        (_poly(c.dga21, d.ta[1]), _poly(c.dga23, d.ta[1])),
        (_poly(c.dga31, d.ta[2]), _poly(c.dga32, d.ta[2])),
    )


def scale_amendments(c: Constants, d: Data) -> Vector:
    """Accelerometer scale-factor corrections."""
    return (
        _poly(c.dka1, d.ta[0]),
        _poly(c.dka2, d.ta[1]),
        _poly(c.dka3, d.ta[2]),
    )


def correct_v(c: Constants, d: Data) -> Vector:
    """Velocity increments corrected by the accelerometer model."""
    dga = ak_misalignment_params(c, d)
    da = zero_offset(c, d)
    dka = scale_amendments(c, d)
    v0, v1, v2 = d.v
    return (
        (1 + dka[0]) * v0 + dga[0][0] * v1 + dga[0][1] * v2 - da[0] * d.tsi / 1_000_000,
        dga[1][0] * v0 + (1 + dka[1]) * v1 + dga[1][1] * v2 - da[1] * d.tsi / 1_000_000,
        dga[2][0] * v0 + dga[2][1] * v1 + (1 + dka[2]) * v2 - da[2] * d.tsi / 1_000_000,
    )


def scale_coef_amendments(c: Constants, d: Data) -> Vector:
    """Gyroscope scale-factor corrections."""
    return (
        _poly(c.dkg1, d.t_lgx[0]),
        _poly(c.dkg2, d.t_lgy[0]),
        _poly(c.dkg3, d.t_lgz[0]),
    )


def gyro_misalignment_params(c: Constants, d: Data) -> Misalignment:
    """Gyroscope axis misalignment terms, two off-diagonal entries per row."""
    return (
        (_poly(c.dg12, d.t_lgx[0]), _poly(c.dg13, d.t_lgx[0])),
        (_poly(c.dg21, d.t_lgy[0]), _poly(c.dg23, d.t_lgy[0])),
        (_poly(c.dg31, d.t_lgz[0]), _poly(c.dg32, d.t_lgz[0])),
    )


def gyro_drift(c: Constants, d: Data) -> Vector:
    """Modelled gyroscope drift, transformed into the construction axes."""
    tx, ty, tz = d.t_lgx[0], d.t_lgy[0], d.t_lgz[0]
    text = (tx + ty + tz) / 3
    measured = (
        _poly(c.dw1, tx) + c.dw1dt * (tx - text - c.dtnom) + c.dwt1dt * tx * (tx - text - c.dtnom),
        _poly(c.dw2, ty) + c.dw2dt * (ty - text - c.dtnom) + c.dwt2dt * ty * (ty - text - c.dtnom),
        _poly(c.dw3, tz) + c.dw3dt * (tz - text - c.dtnom) + c.dwt3dt * tz * (tz - text - c.dtnom),
    )
    return tuple(
        sum(weight * value for weight, value in zip(row, measured))
        for row in (c.a1, c.a2, c.a3)
    )


def correct_angles(c: Constants, d: Data) -> Vector:
    """Angular rates corrected by the gyroscope model."""
    dg = gyro_misalignment_params(c, d)
    dw = gyro_drift(c, d)
    dkg = scale_coef_amendments(c, d)
    t0, t1, t2 = d.theta
    return (
        (1 + dkg[0]) * t0 + dg[0][0] * t1 + dg[0][1] * t2 - dw[0],
        dg[1][0] * t0 + (1 + dkg[1]) * t1 + dg[1][1] * t2 - dw[1],
        dg[2][0] * t0 + dg[2][1] * t1 + (1 + dkg[2]) * t2 - dw[2],
    )


def get_value(line: str) -> float:
    """Number following the first ``=`` of a ``name=value`` line.

    Text after the number is ignored; a line without a readable number
    yields 0.
    """
    _, sep, rest = line.partition("=")
    if not sep:
        return 0.0
    match = _NUMBER.match(rest.lstrip())
    return float(match.group()) if match else 0.0


def read_pcfd(stream: Iterable[str] | TextIO) -> Constants:
    """Read passport constants from a ``.pcfd`` text stream.

    Lines missing at the end of the stream read as 0.
    """
    lines = itertools.chain(stream, itertools.repeat(""))
    for _ in range(_PREAMBLE_LINES):
        next(lines)

    def value() -> float:
        return get_value(next(lines))

    def values(count: int) -> tuple[float, ...]:
        return tuple(value() for _ in range(count))

    def section() -> None:
        next(lines)

    dtnom = value()
    a1, a2, a3 = values(3), values(3), values(3)

    accel = []
    for _ in range(3):
        section()
        dka, da, damkd = values(4), values(4), value()
        first, second = values(4), values(4)
        accel.append((dka, da, damkd, first, second))

    gyro = []
    for _ in range(3):
        section()
        dkg, dw, dwdt, dwtdt = values(4), values(4), value(), value()
        first, second = values(4), values(4)
        gyro.append((dkg, dw, dwdt, dwtdt, first, second))

    (dka1, da1, da1mkd, dga12, dga13), (dka2, da2, da2mkd, dga21, dga23), (
        dka3, da3, da3mkd, dga31, dga32
    ) = accel
    (dkg1, dw1, dw1dt, dwt1dt, dg12, dg13), (dkg2, dw2, dw2dt, dwt2dt, dg21, dg23), (
        dkg3, dw3, dw3dt, dwt3dt, dg31, dg32
    ) = gyro

    return Constants(
        dg12=dg12, dg13=dg13, dg21=dg21, dg23=dg23, dg31=dg31, dg32=dg32,
        dkg1=dkg1, dkg2=dkg2, dkg3=dkg3,
        dw1=dw1, dw1dt=dw1dt, dwt1dt=dwt1dt,
        dw2=dw2, dw2dt=dw2dt, dwt2dt=dwt2dt,
        dw3=dw3, dw3dt=dw3dt, dwt3dt=dwt3dt,
        dtnom=dtnom, a1=a1, a2=a2, a3=a3,
        dka1=dka1, dka2=dka2, dka3=dka3,
        dga12=dga12, dga13=dga13, dga21=dga21,
        dga23=dga23, dga31=dga31, dga32=dga32,
        da1=da1, da1mkd=da1mkd, da2=da2, da2mkd=da2mkd, da3=da3, da3mkd=da3mkd,
    )