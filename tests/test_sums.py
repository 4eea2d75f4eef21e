import pytest

from rpzdecode.model import Constants
from rpzdecode.packets import Data
from rpzdecode.sums import DataSum, ModelDataSum


def make_data(**overrides):
    values = dict(
        npack=7,
        a=[10.0, -20.0, 30.0],
        m=[0.5, 0.25, -0.125, 0.0625],
        l=[1.0, 0.001, -0.002, 0.003],
        tsi=5000.0,
        time=1.25,
        tsist=123456,
        dfi_r=[0.002, -0.004, 0.006],
        v=[0.01, -0.02, 0.03],
        w=[2.0, -4.0, 6.0],
        theta=[0.4, -0.8, 1.2],
        p=[100, 200, 300],
        u=[11, 12, 13],
        i=[1, 2, 3, 4, 5, 6],
        ta=[20.5, 21.5, 22.5],
        tmkd=30.0,
        t_lgx=[40.0, 41.0],
        t_lgy=[42.0, 43.0],
        t_lgz=[44.0, 45.0],
    )
    values.update(overrides)
    return Data(**values)


def test_empty_sum_starts_at_zero():
    s = DataSum(taver=1_000_000.0)
    assert s.taver == 1_000_000.0
    assert s.npacks == 0
    assert s.t == 0.0
    assert s.a == [0.0, 0.0, 0.0]
    assert s.i == [0] * 6


def test_single_packet_sum_equals_packet():
    data = make_data()
    s = DataSum(taver=10_000.0)
    s.add_data(data)
    assert s.npacks == 1
    assert s.t == data.tsi
    assert s.tsi == data.tsi
    assert s.time == data.time
    assert s.tsist == data.tsist
    assert s.npack == data.npack
    assert s.a == data.a
    assert s.m == data.m
    assert s.l == data.l
    assert s.dfi_r == data.dfi_r
    assert s.v == data.v
    assert s.w == data.w
    assert s.theta == data.theta
    assert s.p == data.p
    assert s.u == [0, 0, 0]
    assert s.i == data.i
    assert s.ta == data.ta
    assert s.tmkd == data.tmkd
    assert s.t_lgx == data.t_lgx
    assert s.t_lgy == data.t_lgy
    assert s.t_lgz == data.t_lgz


def test_two_packets_accumulate_and_keep_last_identity():
    first = make_data()
    second = make_data(npack=8, time=1.255, tsist=999)
    s = DataSum(taver=10_000.0)
    s.add_data(first)
    s.add_data(second)
    assert s.npacks == 2
    assert s.t == pytest.approx(2 * first.tsi)
    assert s.npack == 8
    assert s.time == 1.255
    assert s.tsist == 999
    assert s.v == pytest.approx([2 * x for x in first.v])
    assert s.t_lgz == pytest.approx([2 * x for x in first.t_lgz])
    assert s.i == [2 * x for x in first.i]
    assert s.t >= s.taver


def test_counter_sums_wrap_at_sixteen_bits():
    data = make_data(p=[40000, 1, 0], i=[65535, 0, 0, 0, 0, 0])
    s = DataSum(taver=1.0)
    s.add_data(data)
    s.add_data(data)
    assert s.p[0] == (2 * 40000) % 0x10000
    assert s.p[1] == 2
    assert s.i[0] == (2 * 65535) % 0x10000


def test_model_sum_with_ideal_constants_matches_raw():
    data = make_data(theta=[0.4, -0.8, 1.2], dfi_r=[0.002, -0.004, 0.006])
    s = ModelDataSum(taver=10_000.0)
    s.add_data(data, Constants())
    assert s.npacks == 1
    assert s.theta_corr == pytest.approx(data.theta)
    assert s.v_corr == pytest.approx(data.v)
    assert s.dfi_r_corr == pytest.approx(
        [value * data.tsi / 1_000_000 for value in data.theta]
    )
    assert s.w_corr == pytest.approx(
        [value * 1_000_000 / data.tsi for value in data.v]
    )
    assert s.v == data.v


def test_model_sum_applies_scale_correction():
    data = make_data()
    constants = Constants(dka1=(0.5, 0.0, 0.0, 0.0), dkg2=(1.0, 0.0, 0.0, 0.0))
    s = ModelDataSum(taver=10_000.0)
    s.add_data(data, constants)
    assert s.v_corr[0] == pytest.approx(1.5 * data.v[0])
    assert s.v_corr[1] == pytest.approx(data.v[1])
    assert s.theta_corr[1] == pytest.approx(2.0 * data.theta[1])
    assert s.theta_corr[0] == pytest.approx(data.theta[0])


def test_model_sum_accumulates_corrections():
    data = make_data()
    s = ModelDataSum(taver=10_000.0)
    s.add_data(data, Constants())
    once = list(s.v_corr)
    s.add_data(data, Constants())
    assert s.v_corr == pytest.approx([2 * x for x in once])
    assert s.npacks == 2
    assert s.t == pytest.approx(2 * data.tsi)


def test_model_sum_zero_tsi_gives_non_finite_w():
    data = make_data(tsi=0.0, v=[0.01, 0.0, -0.01])
    s = ModelDataSum(taver=10_000.0)
    s.add_data(data, Constants())
    assert s.w_corr[0] == float("inf")
    assert s.w_corr[2] == float("-inf")
    assert s.w_corr[1] != s.w_corr[1]