import io

from rpzdecode.model import Constants
from rpzdecode.packets import Data, Pack, count_data
from rpzdecode.report import output_average_data, output_data, print_header
from rpzdecode.sums import DataSum, ModelDataSum


def _pack(npack, a, m):
    return Pack(npack=npack, a=a, m=m, tsi=300000, tsist=npack * 5000, ski=7, mi=0)


def _derived():
    old = Data.from_pack(_pack(10, (100, 200, 300), (2**31 - 1, 0, 0, 0)))
    old.process_mi()
    new = Data.from_pack(_pack(11, (5100, 4200, 3300), (2147480000, 100000, 200000, 300000)))
    count_data(new, old)
    return new


def _header(flags):
    buf = io.StringIO()
    print_header(buf, flags)
    return buf.getvalue()


def _row(data, flags, constants=None):
    buf = io.StringIO()
    output_data(data, buf, flags, constants)
    return buf.getvalue()


def test_decod_row_aligns_with_header():
    data = _derived()
    header = _header({"decod": True})
    row = _row(data, {"decod": True})
    assert row.endswith("\n")
    assert len(row) == len(header)
    assert len(row.split()) == len(header.split())


def test_bins_header_and_row():
    data = _derived()
    header = _header({"bins": True})
    row = _row(data, {"bins": True})
    assert header.split()[0] == "dFi_x_corr[rad]"
    assert len(header.split()) == 6
    assert len(row.split()) == 6
    assert len(row) == len(header)


def test_corr_columns_need_model_flag():
    flags = {"V": True, "V_corr": True}
    assert _header(flags).split() == ["v_x_[mps]", "v_y_[mps]", "v_z_[mps]"]
    assert len(_row(_derived(), flags).split()) == 3
    with_model = dict(flags, Model=True)
    assert _header(with_model).split()[3:] == ["v_x_corr", "v_y_corr", "v_z_corr"]
    assert len(_row(_derived(), with_model).split()) == 6


def test_identity_constants_leave_values_unchanged():
    data = _derived()
    flags = {"dFi_r": True, "dFi_r_corr": True, "V": True, "V_corr": True, "Model": True}
    tokens = _row(data, flags, Constants()).split()
    assert len(tokens) == 12
    for raw, corr in zip(tokens[0:3], tokens[3:6]):
        assert abs(float(raw) - float(corr)) < 1e-11
    assert tokens[6:9] == tokens[9:12]


def test_time_uses_four_decimals():
    data = Data(time=1.5, tsi=5000.0, npack=42)
    tokens = _row(data, {"Time": True, "Npack": True}).split()
    assert float(tokens[0]) == 1.5
    assert len(tokens[0].split(".")[1]) == 4
    assert int(tokens[1]) == 42


def test_omega_with_zero_period():
    data = Data(tsi=0.0, dfi_r=[0.001, 0.0, 0.0])
    assert _row(data, {"Omega": True}).split() == ["inf", "nan", "nan"]


def test_text_format_persists_between_lines():
    data = Data(t_lgx=[20.0, 0.0], t_lgy=[21.0, 0.0], t_lgz=[22.0, 0.0])

    alone = io.StringIO()
    output_data(data, alone, {"Text": True})
    output_data(data, alone, {"Text": True})
    first, second = (line.split()[0] for line in alone.getvalue().splitlines())
    assert first == second
    assert float(first) == 21.0
    assert "." not in first

    mixed = io.StringIO()
    output_data(data, mixed, {"Text": True, "P": True})
    output_data(data, mixed, {"Text": True, "P": True})
    first, second = (line.split()[0] for line in mixed.getvalue().splitlines())
    assert "." not in first
    assert "." in second
    assert float(second) == 21.0


def test_average_of_plain_sum():
    total = DataSum(taver=1e6)
    total.add_data(Data(npack=1, tsi=5000.0, time=0.005, v=[0.1, 0.2, 0.3], p=[3, 5, 7]))
    total.add_data(Data(npack=2, tsi=5000.0, time=0.010, v=[0.3, 0.4, 0.5], p=[4, 6, 8]))
    buf = io.StringIO()
    output_average_data(total, buf, {"V": True, "P": True, "V_corr": True, "Model": True})
    tokens = buf.getvalue().split()
    assert len(tokens) == 6
    for token, expected in zip(tokens[:3], (0.2, 0.3, 0.4)):
        assert abs(float(token) - expected) < 1e-8
    assert tokens[3:] == ["3", "5", "7"]


def test_average_of_model_sum_with_identity_constants():
    data = _derived()
    total = ModelDataSum(taver=1e6)
    total.add_data(data, Constants())
    total.add_data(data, Constants())
    flags = {"V": True, "V_corr": True, "Npack": True, "Model": True}
    buf = io.StringIO()
    output_average_data(total, buf, flags)
    tokens = buf.getvalue().split()
    assert int(tokens[0]) == data.npack
    assert tokens[1:4] == tokens[4:7]
    assert len(tokens) == len(_header(flags).split())