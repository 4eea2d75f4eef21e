# rpzdecode

`rpzdecode` is a Python library for reading `.rpz` binary recordings from an
inertial measurement unit (laser gyroscopes and accelerometers) and turning
them into readable, column-aligned text tables.

Each record in an `.rpz` file is a 46-byte packet: a header word, 42 bytes of
payload (packet number, accelerometer counters, an integral quaternion,
sampling interval, system time, channel state and a multiplexed service word)
and a CRC-16 checksum.

## Installing

```
pip install .
```

The package has no dependencies outside the standard library.

## Modules

- `rpzdecode.packets`
  - `crc16(data)` – CRC-16 (polynomial 0x1021, initial value 0xFFFF).
  - `Pack` – the raw payload fields; `Pack.from_bytes(raw)` decodes 42 bytes
    and `to_bytes()` encodes them again.
  - `PacketReader(stream, report)` – walks a seekable binary stream. Iterating
    over it yields each intact `Pack`. Packets with a bad header or checksum
    are skipped, and the reader resynchronises on the next header. Messages
    such as `After pack N header error`, `After pack N control sum error`,
    `Missing pack N` and `Missing packs N - M` go to `report`, which is
    `print` by default. `read()` makes a single attempt and raises `EOFError`
    at the end of the data.
  - `Data` – physical values of one packet. `Data.from_pack(pack)` scales the
    raw fields. The `count_*` methods and `process_mi` work out the rotation
    quaternion, angle increments, velocity and acceleration increments,
    angular rates, and the temperatures, voltages and currents carried in the
    service word.
  - `count_data(data, data_old)` – derives all of these from the previous
    packet.
- `rpzdecode.model`
  - `Constants` – passport constants. The defaults describe an ideal
    instrument.
  - `read_pcfd(stream)` – reads constants from a `.pcfd` text file.
  - `correct_angles(c, d)` and `correct_v(c, d)` – model-corrected angular
    rates and velocity increments. The component terms are also available:
    `gyro_drift`, `gyro_misalignment_params`, `scale_coef_amendments`,
    `zero_offset`, `ak_misalignment_params`, `scale_amendments` and `poly3`.
- `rpzdecode.sums`
  - `DataSum(taver)` – accumulates packets with `add_data(data)` over an
    averaging interval given in microseconds.
  - `ModelDataSum(taver)` – does the same and also sums the model-corrected
    values; call it as `add_data(data, constants)`.
- `rpzdecode.config`
  - `write_default_config(path)` – writes a default `config.inf`.
  - `load_config(path)` – reads one into a `Config`, which has the fields
    `file_path`, `pcfd`, `flags` and `times`.
  - `read_config`, `str_from_config` and `get_flag` – lower-level readers.
- `rpzdecode.report`
  - `print_header(out, flags)` – writes the column headers.
  - `output_data(data, out, flags, constants)` – writes one line per packet.
  - `output_average_data(datasum, out, flags)` – writes one averaged line.

  The columns are chosen by the flags in `config.inf`. The `decod`,
  `decod_corr` and `bins` flags select fixed layouts. Otherwise the `Time`,
  `Npack`, `A`, `M`, `L`, `Tsi`, `Tsist`, `dFi_r`, `Theta`, `Omega`, `V`,
  `W`, `Ta`, `Tmkd`, `T_lg`, `T_lg0`, `Text`, `ski`, `P`, `U` and `I` flags
  switch single columns on, and their `_corr` variants are added when `Model`
  is set.

## Example

```python
from rpzdecode.config import load_config
from rpzdecode.model import Constants
from rpzdecode.packets import Data, PacketReader, count_data
from rpzdecode.report import output_data, print_header

config = load_config("config.inf")
constants = Constants()

with open("flight.rpz", "rb") as fin, open("flight.txt", "w") as fout:
    print_header(fout, config.flags)
    previous = None
    for pack in PacketReader(fin, print):
        data = Data.from_pack(pack)
        if previous is None:
            data.process_mi()
        else:
            count_data(data, previous)
            output_data(data, fout, config.flags, constants)
        previous = data
```

## What it does not do

The package has no command to run and no function that decodes a whole file
in a single call. In particular, it does not apply the `T_beg`, `T_end` and
`Taverage` settings itself, and it does not choose output file names. Those
steps are built from the pieces above, as the example shows: `PacketReader`,
`count_data`, `DataSum` or `ModelDataSum`, and the `report` functions.