"""Packet framing, payload decoding and per-packet derived quantities."""

from __future__ import annotations

import math
import struct
from dataclasses import dataclass, field
from typing import BinaryIO, Callable, Iterator, Optional

PACKET_HEADER = 0xC5C0
PAYLOAD_SIZE = 42
PACKET_SIZE = 46

LSB_M = 1 / 2**31
LSB_A = 0.2 / 2**19
LSB_TSI = 1 / 60.0
LSB_T = 0.05

_PAYLOAD = struct.Struct("<H3i4iiIHH")
_WORD = struct.Struct("<H")
_HEADER_BYTES = _WORD.pack(PACKET_HEADER)
_SCAN_CHUNK = 4096
_INT_MAX = 2**31 - 1
_INT_MIN = -(2**31)
_WRAP = 2**32


def _crc_table() -> tuple[int, ...]:
    table = []
    for byte in range(256):
        crc = byte << 8
        for _ in range(8):
            crc = (crc << 1) ^ 0x1021 if crc & 0x8000 else crc << 1
        table.append(crc & 0xFFFF)
    return tuple(table)


_CRC_TABLE = _crc_table()


def crc16(data: bytes) -> int:
    """CRC-16 (polynomial 0x1021, initial value 0xFFFF) of ``data``."""
    crc = 0xFFFF
    for byte in data:
        crc = ((crc << 8) & 0xFFFF) ^ _CRC_TABLE[(crc >> 8) ^ byte]
    return crc


@dataclass(frozen=True)
class Pack:
    """Raw fields of one 42-byte packet payload."""

    npack: int
    a: tuple[int, int, int]
    m: tuple[int, int, int, int]
    tsi: int
    tsist: int
    ski: int
    mi: int

    @classmethod
    def from_bytes(cls, raw: bytes) -> "Pack":
        if len(raw) != PAYLOAD_SIZE:
            raise ValueError(
                f"payload must be {PAYLOAD_SIZE} bytes, got {len(raw)}"
            )
        values = _PAYLOAD.unpack(raw)
        return cls(
            npack=values[0],
            a=tuple(values[1:4]),
            m=tuple(values[4:8]),
            tsi=values[8],
            tsist=values[9],
            ski=values[10],
            mi=values[11],
        )

    def to_bytes(self) -> bytes:
        return _PAYLOAD.pack(
            self.npack, *self.a, *self.m, self.tsi, self.tsist, self.ski, self.mi
        )


class PacketReader:
    """Reads framed packets from a seekable binary stream.

    Damaged packets are skipped and resynchronised on the next header;
    diagnostics go to ``report``.  ``counter`` holds the number of the
    last good packet, or ``None`` before the first one.
    """

    def __init__(
        self, stream: BinaryIO, report: Optional[Callable[[str], None]] = None
    ) -> None:
        self._stream = stream
        self._report = report if report is not None else print
        self._exhausted = False
        self.counter: Optional[int] = None

    @property
    def _last(self) -> int:
        return self.counter if self.counter is not None else 0

    def read(self) -> Optional[Pack]:
        """Make one attempt at the current position.

        Returns the packet if it is intact, ``None`` if it was rejected,
        and raises ``EOFError`` when the stream holds no more data.
        """
        if self._exhausted:
            raise EOFError("no more packets")
        start = self._stream.tell()
        header = self._stream.read(2)
        if len(header) < 2:
            self._exhausted = True
            raise EOFError("no more packets")
        body = self._stream.read(PAYLOAD_SIZE + 2)
        complete = len(body) == PAYLOAD_SIZE + 2

        if header != _HEADER_BYTES:
            if not complete or start != 0:
                self._report(f"After pack {self._last} header error")
            if not complete:
                self._exhausted = True
                raise EOFError("no more packets")
            self._find_header(start)
            return None

        if not complete:
            self._exhausted = True
            raise EOFError("no more packets")

        payload = body[:PAYLOAD_SIZE]
        (checksum,) = _WORD.unpack(body[PAYLOAD_SIZE:])
        if checksum != crc16(payload):
            following = self._stream.read(2)
            if len(following) < 2:
                self._exhausted = True
                raise EOFError("no more packets")
            self._stream.seek(start + PACKET_SIZE)
            if following == _HEADER_BYTES:
                self._report(f"After pack {self._last} control sum error")
            else:
                self._find_header(start)
            return None

        pack = Pack.from_bytes(payload)
        self._check_sequence(pack.npack)
        self.counter = pack.npack
        return pack

    def __iter__(self) -> Iterator[Pack]:
        while True:
            try:
                pack = self.read()
            except EOFError:
                return
            if pack is not None:
                yield pack

    def _check_sequence(self, npack: int) -> None:
        if self.counter is None:
            return
        expected = self.counter + 1
        if npack == expected:
            return
        if expected == npack - 1:
            self._report(f"Missing pack {expected}")
        elif (npack - self.counter) % _WRAP <= 0xFFFF // 2:
            self._report(f"Missing packs {expected} - {npack - 1}")

    def _find_header(self, start: int) -> None:
        # First look back inside the damaged packet for a later header.
        self._stream.seek(start + 1)
        window = self._stream.read(PACKET_SIZE)
        if len(window) < PACKET_SIZE:
            self._exhausted = True
            return
        found = window.rfind(_HEADER_BYTES)
        if found >= 0:
            self._stream.seek(start + 1 + found)
            return

        # Otherwise scan forward word by word; the header found is consumed.
        offset = start + PACKET_SIZE + 1
        self._stream.seek(offset)
        while True:
            chunk = self._stream.read(_SCAN_CHUNK)
            even = chunk[: len(chunk) - len(chunk) % 2]
            for index, (word,) in enumerate(_WORD.iter_unpack(even)):
                if word == PACKET_HEADER:
                    self._stream.seek(offset + 2 * index + 2)
                    return
            if len(chunk) < _SCAN_CHUNK:
                self._exhausted = True
                return
            offset += len(chunk)


def _zeros(size: int):
    return field(default_factory=lambda: [0.0] * size)


def _counts(size: int):
    return field(default_factory=lambda: [0] * size)


def _div(num: float, den: float) -> float:
    """Floating division that yields inf/nan instead of raising."""
    if den == 0:
        if num == 0 or math.isnan(num):
            return math.nan
        return math.copysign(math.inf, num) * math.copysign(1.0, den)
    return num / den


def _signed16(value: int) -> float:
    return value - 0x10000 if value & 0x8000 else value


def _wrap_difference(diff: float) -> float:
    if diff > _INT_MAX:
        return diff - _WRAP
    if diff < _INT_MIN:
        return diff + _WRAP
    return diff


_TEMPERATURE_SLOTS = {
    0: ("ta", 0),
    1: ("ta", 1),
    2: ("ta", 2),
    4: ("t_lgx", 0),
    5: ("t_lgx", 1),
    6: ("t_lgy", 0),
    7: ("t_lgy", 1),
    8: ("t_lgz", 0),
    9: ("t_lgz", 1),
}
_TMKD_SLOT = 3
_STATUS_SLOTS = {13: "sw1", 14: "sw2", 15: "swd1", 16: "swd2"}
_RAW_SLOTS = {
    17: ("p", 0),
    18: ("p", 1),
    19: ("p", 2),
    20: ("u", 0),
    21: ("u", 1),
    22: ("u", 2),
    23: ("i", 0),
    24: ("i", 1),
    25: ("i", 2),
    26: ("i", 3),
    27: ("i", 4),
    28: ("i", 5),
}


@dataclass
class Data:
    """Physical values of one packet and the quantities derived from it."""

    npack: int = 0
    a: list = _zeros(3)
    m: list = _zeros(4)
    l: list = _zeros(4)
    tsi: float = 0.0
    time: float = 0.0
    tsist: int = 0
    ski: int = 0
    mi: int = 0
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
    fi: list = _zeros(3)
    sw1: int = 0
    sw2: int = 0
    swd1: int = 0
    swd2: int = 0

    @classmethod
    def from_pack(cls, pack: Pack) -> "Data":
        return cls(
            npack=pack.npack,
            a=[float(value) for value in pack.a],
            m=[value * LSB_M for value in pack.m],
            tsi=pack.tsi * LSB_TSI,
            tsist=pack.tsist,
            ski=pack.ski,
            mi=pack.mi,
        )

    def count_l(self, old: "Data") -> None:
        """Rotation quaternion between the previous and current attitude."""
        o0, o1, o2, o3 = old.m
        n0, n1, n2, n3 = self.m
        self.l = [
            o0 * n0 + o1 * n1 + o2 * n2 + o3 * n3,
            o0 * n1 - o1 * n0 - o2 * n3 + o3 * n2,
            o0 * n2 - o2 * n0 - o3 * n1 + o1 * n3,
            o0 * n3 - o3 * n0 - o1 * n2 + o2 * n1,
        ]

    def count_dfi_r(self) -> None:
        self.dfi_r = [2 * component for component in self.l[1:]]
        self.fi = [total + step for total, step in zip(self.fi, self.dfi_r)]

    def count_v(self, old: "Data") -> None:
        self.v = [
            _wrap_difference(new - previous) * LSB_A
            for new, previous in zip(self.a, old.a)
        ]

    def count_w(self) -> None:
        self.w = [_div(value * 1_000_000, self.tsi) for value in self.v]

    def count_theta(self) -> None:
        self.theta = [_div(value * 1_000_000, self.tsi) for value in self.dfi_r]

    def process_mi(self, previous: Optional["Data"] = None) -> None:
        """Store the multiplexed word in the slot chosen by the packet number.

        With ``previous`` given, the multiplexed values of that packet are
        carried over first.
        """
        if previous is not None:
            self._copy_mi(previous)
        slot = self.npack % 32
        if slot in _TEMPERATURE_SLOTS:
            name, index = _TEMPERATURE_SLOTS[slot]
            getattr(self, name)[index] = _signed16(self.mi) * LSB_T
        elif slot == _TMKD_SLOT:
            self.tmkd = _signed16(self.mi) * LSB_T
        elif slot in _STATUS_SLOTS:
            setattr(self, _STATUS_SLOTS[slot], self.mi)
        elif slot in _RAW_SLOTS:
            name, index = _RAW_SLOTS[slot]
            getattr(self, name)[index] = self.mi

    def _copy_mi(self, other: "Data") -> None:
        self.p = list(other.p)
        self.u = list(other.u)
        self.ta = list(other.ta)
        self.i = list(other.i)
        self.tmkd = other.tmkd
        self.t_lgx = list(other.t_lgx)
        self.t_lgy = list(other.t_lgy)
        self.t_lgz = list(other.t_lgz)


def count_data(data: Data, data_old: Data) -> None:
    """Derive all per-packet quantities of ``data`` from its predecessor."""
    data.time = data_old.time + data.tsi / 1_000_000
    data.count_l(data_old)
    data.count_dfi_r()
    data.count_v(data_old)
    data.count_w()
    data.count_theta()
    data.process_mi(data_old)