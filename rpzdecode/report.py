"""Text tables of decoded and averaged packet data."""

from __future__ import annotations

import math
import weakref
from dataclasses import dataclass
from typing import Iterable, Mapping, Optional, TextIO

from .model import Constants, correct_angles, correct_v
from .packets import LSB_A, Data
from .sums import DataSum, ModelDataSum

_DEFAULT_CONSTANTS = Constants()


@dataclass
class _StreamFormat:
    """Floating-point notation of an output stream; it persists between lines."""

    fixed: bool = False
    precision: int = 6


_formats: "weakref.WeakKeyDictionary[TextIO, _StreamFormat]" = weakref.WeakKeyDictionary()


def _format_of(out: TextIO) -> _StreamFormat:
    try:
        fmt = _formats.get(out)
        if fmt is None:
            fmt = _StreamFormat()
            _formats[out] = fmt
        return fmt
    except TypeError:
        return _StreamFormat()


def _div(num: float, den: float) -> float:
    """Floating division that yields inf/nan instead of raising."""
    if den == 0:
        if num == 0 or math.isnan(num):
            return math.nan
        return math.copysign(math.inf, num) * math.copysign(1.0, den)
    return num / den


class _Line:
    """Builds one output line of right-aligned fixed-width columns."""

    def __init__(self, out: TextIO) -> None:
        self._out = out
        self._fmt = _format_of(out)
        self._parts: list[str] = []

    def _set(self, precision: Optional[int]) -> None:
        if precision is not None:
            self._fmt.fixed = True
            self._fmt.precision = precision

    def text(self, width: int, *labels: str) -> None:
        self._parts.extend(f"{label:>{width}}" for label in labels)

    def ints(self, width: int, values: Iterable[int], precision: Optional[int] = None) -> None:
        self._set(precision)
        self._parts.extend(f"{int(value):>{width}}" for value in values)

    def reals(self, width: int, values: Iterable[float], precision: Optional[int] = None) -> None:
        self._set(precision)
        kind = "f" if self._fmt.fixed else "g"
        spec = f">{width}.{self._fmt.precision}{kind}"
        self._parts.extend(format(float(value), spec) for value in values)

    def end(self) -> None:
        self._out.write("".join(self._parts) + "\n")


def _on(flags: Mapping[str, bool], name: str) -> bool:
    return bool(flags.get(name, False))


def _to_deg_per_hour(value: float) -> float:
    return (value * 180 / math.pi) * 3600


def _decod_header(line: _Line, angle_names, velocity_names) -> None:
    line.text(10, "Time[s]")
    line.text(7, "Npack")
    line.text(10, "Tsi[mks]")
    line.text(16, *angle_names)
    line.text(14, *velocity_names)
    line.text(10, "Ta1[gC]", "Ta2[gC]", "Ta3[gC]")
    line.text(
        10,
        "TG11[gC]", "TG12[gC]", "TG13[gC]",
        "TG21[gC]", "TG22[gC]", "TG23[gC]",
        "TG31[gC]", "TG32[gC]", "TG33[gC]",
    )
    line.text(10, "Tmkd[gC]")
    line.text(10, "Text[gC]")
    line.text(6, "ski")


def print_header(out: TextIO, flags: Mapping[str, bool]) -> None:
    """Write the column header line selected by ``flags``."""
    line = _Line(out)
    if _on(flags, "decod"):
        _decod_header(
            line,
            ("dFi_x[rad]", "dFi_y[rad]", "dFi_z[rad]"),
            ("v_x[mps]", "v_y[mps]", "v_z[mps]"),
        )
    elif _on(flags, "decod_corr"):
        _decod_header(
            line,
            ("dFi_x_corr[rad]", "dFi_y_corr[rad]", "dFi_z_corr[rad]"),
            ("v_x_corr[mps]", "v_y_corr[mps]", "v_z_corr[mps]"),
        )
    elif _on(flags, "bins"):
        line.text(16, "dFi_x_corr[rad]", "dFi_y_corr[rad]", "dFi_z_corr[rad]")
        line.text(14, "v_x_corr[mps]", "v_y_corr[mps]", "v_z_corr[mps]")
    else:
        model = _on(flags, "Model")
        if _on(flags, "Time"):
            line.text(10, "Time[s]")
        if _on(flags, "Tsist"):
            line.text(10, "Tsist[s]")
        if _on(flags, "Tsi"):
            line.text(10, "Tsi[mks]")
        if _on(flags, "Npack"):
            line.text(7, "Npack")
        if _on(flags, "A"):
            line.text(14, "AK1", "AK2", "AK3")
        if _on(flags, "M"):
            line.text(16, "M0", "M1", "M2", "M3")
        if _on(flags, "L"):
            line.text(16, "L0", "L1", "L2", "L3")
        if _on(flags, "dFi_r"):
            line.text(16, "dFi_x[rad]", "dFi_y[rad]", "dFi_z[rad]")
        if _on(flags, "dFi_r_corr") and model:
            line.text(16, "dFi_x_corr", "dFi_y_corr", "dFi_z_corr")
        if _on(flags, "Theta"):
            line.text(16, "Theta_x[rps]", "Theta_y[rps]", "Theta_z[rps]")
        if _on(flags, "Theta_corr") and model:
            line.text(16, "Theta_x_corr", "Theta_y_corr", "Theta_z_corr")
        if _on(flags, "Omega"):
            line.text(17, "omega_x[gph]", "omega_y[gph]", "omega_z[gph]")
        if _on(flags, "Omega_corr") and model:
            line.text(17, "omega_x_corr", "omega_y_corr", "omega_z_corr")
        if _on(flags, "V"):
            line.text(14, "v_x_[mps]", "v_y_[mps]", "v_z_[mps]")
        if _on(flags, "V_corr") and model:
            line.text(14, "v_x_corr", "v_y_corr", "v_z_corr")
        if _on(flags, "W"):
            line.text(14, "w_x[mpss]", "w_y[mpss]", "w_z[mpss]")
        if _on(flags, "W_corr") and model:
            line.text(14, "w_x_corr", "w_y_corr", "w_z_corr")
        if _on(flags, "Ta"):
            line.text(10, "Ta1_[gC]", "Ta2_[gC]", "Ta3_[gC]")
        if _on(flags, "Tmkd"):
            line.text(10, "Tmkd[gC]")
        if _on(flags, "T_lg"):
            line.text(
                10, "TlgX1[gC]", "TlgX2[gC]", "TlgY1[gC]",
                "TlgY2[gC]", "TlgZ1[gC]", "TlgZ2[gC]",
            )
        if _on(flags, "T_lg0"):
            line.text(10, "TlgX[gC]", "TlgY[gC]", "TlgZ[gC]")
        if _on(flags, "Text"):
            line.text(10, "Text[gC]")
        if _on(flags, "ski"):
            line.text(6, "ski")
        if _on(flags, "P"):
            line.text(9, "P_1", "P_2", "P_3")
        if _on(flags, "U"):
            line.text(9, "U_1", "U_2", "U_3")
        if _on(flags, "I"):
            line.text(9, "I_1", "I_2", "I_3", "I_4", "I_5", "I_6")
    line.end()


def _corr_dfi(line: _Line, data: Data, c: Constants) -> None:
    theta = correct_angles(c, data)
    line.reals(16, [value * data.tsi / 1_000_000 for value in theta], 12)


def _corr_theta(line: _Line, data: Data, c: Constants) -> None:
    line.reals(16, correct_angles(c, data), 12)


def _corr_omega(line: _Line, data: Data, c: Constants) -> None:
    theta = correct_angles(c, data)
    line.reals(17, [_to_deg_per_hour(value) for value in theta], 8)


def _corr_v(line: _Line, data: Data, c: Constants) -> None:
    line.reals(14, correct_v(c, data), 8)


def _corr_w(line: _Line, data: Data, c: Constants) -> None:
    v = correct_v(c, data)
    line.reals(14, [_div(value * 1_000_000, data.tsi) for value in v], 8)


def _text_temperature(data) -> float:
    return data.t_lgx[0] + data.t_lgy[0] + data.t_lgz[0]


def _decod_tail(line: _Line, data: Data) -> None:
    line.reals(10, data.ta, 2)
    tx, ty, tz = data.t_lgx[0], data.t_lgy[0], data.t_lgz[0]
    line.reals(10, [tx, tx, tx, ty, ty, ty, tz, tz, tz], 2)
    line.reals(10, [data.tmkd], 2)
    line.reals(10, [_text_temperature(data) / 3])
    line.ints(6, [data.ski])


def output_data(
    data: Data,
    out: TextIO,
    flags: Mapping[str, bool],
    constants: Optional[Constants] = None,
) -> None:
    """Write one line of per-packet values selected by ``flags``."""
    c = constants if constants is not None else _DEFAULT_CONSTANTS
    line = _Line(out)
    if _on(flags, "decod"):
        line.reals(10, [data.time], 4)
        line.ints(7, [data.npack])
        line.reals(10, [data.tsi], 4)
        line.reals(16, data.dfi_r, 12)
        line.reals(14, data.v, 8)
        _decod_tail(line, data)
    elif _on(flags, "decod_corr"):
        line.reals(10, [data.time], 4)
        line.ints(7, [data.npack])
        line.reals(10, [data.tsi], 4)
        _corr_dfi(line, data, c)
        _corr_v(line, data, c)
        _decod_tail(line, data)
    elif _on(flags, "bins"):
        _corr_dfi(line, data, c)
        _corr_v(line, data, c)
    else:
        model = _on(flags, "Model")
        if _on(flags, "Time"):
            line.reals(10, [data.time], 4)
        if _on(flags, "Tsist"):
            line.reals(10, [data.tsist / 1_000_000.0], 4)
        if _on(flags, "Tsi"):
            line.reals(10, [data.tsi], 4)
        if _on(flags, "Npack"):
            line.ints(7, [data.npack])
        if _on(flags, "A"):
            line.reals(14, [value * LSB_A for value in data.a], 8)
        if _on(flags, "M"):
            line.reals(16, data.m, 11)
        if _on(flags, "L"):
            line.reals(16, data.l, 11)
        if _on(flags, "dFi_r"):
            line.reals(16, data.dfi_r, 12)
        if _on(flags, "dFi_r_corr") and model:
            _corr_dfi(line, data, c)
        if _on(flags, "Theta"):
            line.reals(16, data.theta, 12)
        if _on(flags, "Theta_corr") and model:
            _corr_theta(line, data, c)
        if _on(flags, "Omega"):
            seconds = data.tsi / 1_000_000
            line.reals(
                17, [_div(_to_deg_per_hour(value), seconds) for value in data.dfi_r], 8
            )
        if _on(flags, "Omega_corr") and model:
            _corr_omega(line, data, c)
        if _on(flags, "V"):
            line.reals(14, data.v, 8)
        if _on(flags, "V_corr") and model:
            _corr_v(line, data, c)
        if _on(flags, "W"):
            line.reals(14, data.w, 8)
        if _on(flags, "W_corr") and model:
            _corr_w(line, data, c)
        if _on(flags, "Ta"):
            line.reals(10, data.ta, 2)
        if _on(flags, "Tmkd"):
            line.reals(10, [data.tmkd], 2)
        if _on(flags, "T_lg"):
            line.reals(
                10,
                [data.t_lgx[0], data.t_lgx[1], data.t_lgy[0],
                 data.t_lgy[1], data.t_lgz[0], data.t_lgz[1]],
                2,
            )
        if _on(flags, "T_lg0"):
            line.reals(10, [data.t_lgx[0], data.t_lgy[0], data.t_lgz[0]], 2)
        if _on(flags, "Text"):
            line.reals(10, [_text_temperature(data) / 3])
        if _on(flags, "ski"):
            line.ints(6, [data.ski])
        if _on(flags, "P"):
            line.ints(9, data.p, 4)
        if _on(flags, "U"):
            line.ints(9, data.u, 4)
        if _on(flags, "I"):
            line.ints(9, data.i, 4)
    line.end()


def output_average_data(datasum: DataSum, out: TextIO, flags: Mapping[str, bool]) -> None:
    """Write one line of values averaged over ``datasum``.

    Model-corrected columns are written only for a :class:`ModelDataSum`.
    Raw multiplexed counters are averaged by integer division.
    """
    model = isinstance(datasum, ModelDataSum)
    n = datasum.npacks
    line = _Line(out)

    def mean(values):
        return [value / n for value in values]

    def omega(values):
        period = (datasum.tsi / n) / 1_000_000
        return [_div(_to_deg_per_hour(value) / n, period) for value in values]

    if _on(flags, "Time"):
        line.reals(10, [datasum.time], 4)
    if _on(flags, "Tsist"):
        line.reals(10, [datasum.tsist / 1_000_000], 4)
    if _on(flags, "Tsi"):
        line.reals(10, [datasum.tsi / n], 4)
    if _on(flags, "Npack"):
        line.ints(7, [datasum.npack])
    if _on(flags, "A"):
        line.reals(14, [value * LSB_A / n for value in datasum.a], 8)
    if _on(flags, "M"):
        line.reals(16, mean(datasum.m), 11)
    if _on(flags, "L"):
        line.reals(16, mean(datasum.l), 11)
    if _on(flags, "dFi_r"):
        line.reals(16, mean(datasum.dfi_r), 12)
    if model and _on(flags, "dFi_r_corr"):
        line.reals(16, mean(datasum.dfi_r_corr), 12)
    if _on(flags, "Theta"):
        line.reals(16, mean(datasum.theta), 12)
    if model and _on(flags, "Theta_corr"):
        line.reals(16, mean(datasum.theta_corr), 12)
    if _on(flags, "Omega"):
        line.reals(17, omega(datasum.dfi_r), 8)
    if model and _on(flags, "Omega_corr"):
        line.reals(17, omega(datasum.dfi_r_corr), 8)
    if _on(flags, "V"):
        line.reals(14, mean(datasum.v), 8)
    if model and _on(flags, "V_corr"):
        line.reals(14, mean(datasum.v_corr), 8)
    if _on(flags, "W"):
        line.reals(14, mean(datasum.w), 8)
    if model and _on(flags, "W_corr"):
        line.reals(14, mean(datasum.w_corr), 8)
    if _on(flags, "Ta"):
        line.reals(10, mean(datasum.ta), 3)
    if _on(flags, "Tmkd"):
        line.reals(10, [datasum.tmkd / n], 3)
    if _on(flags, "T_lg"):
        line.reals(
            10,
            mean([datasum.t_lgx[0], datasum.t_lgx[1], datasum.t_lgy[0],
                  datasum.t_lgy[1], datasum.t_lgz[0], datasum.t_lgz[1]]),
            3,
        )
    if _on(flags, "T_lg0"):
        line.reals(10, mean([datasum.t_lgx[0], datasum.t_lgy[0], datasum.t_lgz[0]]), 3)
    if _on(flags, "Text"):
        line.reals(10, [_text_temperature(datasum) / (3 * n)])
    if _on(flags, "P"):
        line.ints(9, [value // n for value in datasum.p], 4)
    if _on(flags, "U"):
        line.ints(9, [value // n for value in datasum.u], 4)
    if _on(flags, "I"):
        line.ints(9, [value // n for value in datasum.i], 4)
    line.end()