"""Reading and creating the ``config.inf`` settings file."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Iterator, TextIO, Union

from .model import get_value

CONFIG_NAME = "config.inf"

_SEPARATOR = "-" * 85
_INTEGER = re.compile(r"[+-]?\d+")

_DEFAULT_LINES = (
    "file_path=file.rpz [Относительный путь к файлу .rpz для обработки]",
    _SEPARATOR,
    "pcfd=p.pcfd        [Название файла с паспортными константами]",
    _SEPARATOR,
    "Форматирование (остальные параметры не учитываются, если выбран формат):",
    _SEPARATOR,
    "decod=0      [Формат для программы decod_B5.exe]",
    "decod_corr=0 [Формат для программы decod_B5.exe со скорр. данными]",
    "bins=0       [Формат для навигации]",
    _SEPARATOR,
    "Параметры модели:",
    _SEPARATOR,
    "Model=0      [1-применять мат. модель, 0-не применять]",
    _SEPARATOR,
    "Временные параметры:",
    _SEPARATOR,
    "Taverage=0   [Время усреднения,с. 0, если распаковка без усреднения]",
    "T_beg=0      [Время начала распаковки,с. 0, если распаковка с начала]",
    "T_end=0      [Время конца распаковки,с. 0, если распаковка до конца]",
    _SEPARATOR,
    "Параметры вывода (1-выводить данные в файл, 0-не выводить):",
    _SEPARATOR,
    "Time=1       [Счетчик времени, с]",
    "Npack=1      [номер пакета]",
    "A=0          [интегральная скорость (данные с АК), м/с]",
    "M=0          [интегральный кватернион]",
    "L=0          [кватернион поворота]",
    "Tsi=0        [время СИ, мкс]",
    "Tsist=0      [системное время, с]",
    "dFi_r=0      [приращение угла за такт, рад (нескорр.)]",
    "dFi_r_corr=0 [приращение угла за такт, рад (скорр.)]",
    "Theta=0      [углы поворота, рад/с (нескорр.)]",
    "Theta_corr=0 [углы поворота, рад/с (скорр.)]",
    "Omega=1      [углы поворота, град/ч (нескорр.)]",
    "Omega_corr=0 [углы поворота, град/ч (скорр.)]",
    "V=1          [скорость, м/с (нескорр.)]",
    "V_corr=0     [скорость, м/с (скорр.)]",
    "W=1          [ускорение, м/с^2 (нескорр.)]",
    "W_corr=0     [ускорение, м/с^2 (скорр.)]",
    "Ta=0         [температура от термодатчиков АК, град.C]",
    "Tmkd=0       [температура от термодатчика МКД-2, град.C]",
    "T_lg=0       [все температуры (6) от термодатчиков ЛГ, град.C]",
    "T_lg0=0      [только верные температуры(3) от термодатчиков ЛГ, град.C]",
    "Text=0       [внешняя температура, град.С]",
    "ski=0        [состояние каналов измерения]",
    "P=0          [сигналы мощностных фотоприемников ЛГ, мВ]",
    "U=0          [напряжения на ПК ЛГ, В]",
    "I=0          [контроль тока разряда ЛГ1-3, мкА]",
)


@dataclass
class Config:
    """Settings read from ``config.inf``.

    ``flags`` maps output and format switches to booleans and ``times``
    maps ``Taverage``, ``T_beg`` and ``T_end`` to seconds.  A name that is
    absent counts as switched off (flags) or zero (times).
    """

    file_path: str = ""
    pcfd: str = ""
    flags: dict[str, bool] = field(default_factory=dict)
    times: dict[str, float] = field(default_factory=dict)


def _next_line(lines: Iterator[str]) -> str:
    return next(lines, "").rstrip("\r\n")


def get_flag(line: str) -> tuple[str, bool]:
    """Split a ``name=value`` line into the name and a boolean value.

    The value is the integer after ``=``: 0 is false, any other integer
    is true, and a missing or unreadable number is false.
    """
    name, sep, rest = line.partition("=")
    if not sep:
        return name, False
    match = _INTEGER.match(rest.lstrip())
    if match is None:
        return name, False
    return name, int(match.group()) != 0


def _add_flag(flags: dict[str, bool], line: str) -> None:
    name, value = get_flag(line)
    flags.setdefault(name, value)


def _add_time(times: dict[str, float], line: str) -> None:
    name = line.partition("=")[0]
    times.setdefault(name, get_value(line))


def read_config(stream: Union[Iterable[str], TextIO]) -> tuple[dict[str, bool], dict[str, float]]:
    """Read the format, model, time and output sections of the settings.

    ``stream`` is positioned after the file path and passport entries.
    The first occurrence of a name wins.
    """
    lines = iter(stream)
    flags: dict[str, bool] = {}
    times: dict[str, float] = {}

    for _ in range(2):  # format heading and separator
        _next_line(lines)
    for _ in range(3):  # decod, decod_corr, bins
        _add_flag(flags, _next_line(lines))

    for _ in range(3):  # separator, model heading, separator
        _next_line(lines)
    _add_flag(flags, _next_line(lines))  # Model

    for _ in range(3):  # separator, time heading, separator
        _next_line(lines)
    for _ in range(3):  # Taverage, T_beg, T_end
        _add_time(times, _next_line(lines))

    for _ in range(3):  # separator, output heading, separator
        _next_line(lines)
    for line in lines:
        _add_flag(flags, line.rstrip("\r\n"))

    return flags, times


def str_from_config(stream: Union[Iterable[str], TextIO]) -> str:
    """Read a ``name=value [comment]`` entry and the separator after it.

    Returns the value up to the first space.  ``stream`` must be an
    iterator (such as an open text file) so that both lines are consumed.
    """
    lines = iter(stream)
    line = _next_line(lines)
    _next_line(lines)
    _, sep, rest = line.partition("=")
    if not sep:
        return line
    return rest.split(" ", 1)[0]


def write_default_config(path: Union[str, Path]) -> None:
    """Write the default settings file to ``path``."""
    with open(path, "w", encoding="utf-8") as out:
        out.write("\n".join(_DEFAULT_LINES) + "\n")


def load_config(path: Union[str, Path]) -> Config:
    """Read a complete settings file."""
    with open(path, encoding="utf-8") as stream:
        file_path = str_from_config(stream)
        pcfd = str_from_config(stream)
        flags, times = read_config(stream)
    return Config(file_path=file_path, pcfd=pcfd, flags=flags, times=times)