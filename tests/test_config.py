import io

import pytest

from rpzdecode.config import (
    Config,
    get_flag,
    load_config,
    read_config,
    str_from_config,
    write_default_config,
)


def _settings_body(decod="0", model="0", taverage="0", outputs=("Time=1",)):
    lines = [
        "heading",
        "-----",
        f"decod={decod}",
        "decod_corr=0",
        "bins=0",
        "-----",
        "model heading",
        "-----",
        f"Model={model}",
        "-----",
        "time heading",
        "-----",
        f"Taverage={taverage}   [comment]",
        "T_beg=0",
        "T_end=0",
        "-----",
        "output heading",
        "-----",
        *outputs,
    ]
    return "\n".join(lines) + "\n"


@pytest.mark.parametrize(
    "line, expected",
    [
        ("decod=1      [comment]", ("decod", True)),
        ("decod=0      [comment]", ("decod", False)),
        ("Time= 1", ("Time", True)),
        ("V=abc", ("V", False)),
        ("W=", ("W", False)),
        ("noequals", ("noequals", False)),
    ],
)
def test_get_flag(line, expected):
    assert get_flag(line) == expected


def test_get_flag_other_integer_is_true():
    assert get_flag("P=-1") == ("P", True)


def test_str_from_config_takes_value_up_to_space():
    stream = io.StringIO("pcfd=p.pcfd        [comment]\n-----\nnext\n")
    assert str_from_config(stream) == "p.pcfd"
    assert stream.readline() == "next\n"


def test_str_from_config_without_comment():
    stream = io.StringIO("file_path=data.rpz\n-----\n")
    assert str_from_config(stream) == "data.rpz"


def test_str_from_config_without_equals_returns_line():
    stream = io.StringIO("plain\n-----\n")
    assert str_from_config(stream) == "plain"


def test_read_config_sections():
    flags, times = read_config(
        io.StringIO(_settings_body(decod="1", model="1", taverage="2.5",
                                   outputs=("Time=1", "V=0")))
    )
    assert flags["decod"] is True
    assert flags["decod_corr"] is False
    assert flags["bins"] is False
    assert flags["Model"] is True
    assert flags["Time"] is True
    assert flags["V"] is False
    assert times == {"Taverage": 2.5, "T_beg": 0.0, "T_end": 0.0}


def test_read_config_first_occurrence_wins():
    flags, _ = read_config(
        io.StringIO(_settings_body(outputs=("Omega=1", "Omega=0", "decod=1")))
    )
    assert flags["Omega"] is True
    assert flags["decod"] is False


def test_read_config_unreadable_time_is_zero():
    _, times = read_config(io.StringIO(_settings_body(taverage="x")))
    assert times["Taverage"] == 0.0


def test_default_config_round_trip(tmp_path):
    path = tmp_path / "config.inf"
    write_default_config(path)
    config = load_config(path)

    assert config.file_path == "file.rpz"
    assert config.pcfd == "p.pcfd"
    assert config.times == {"Taverage": 0.0, "T_beg": 0.0, "T_end": 0.0}
    enabled = {name for name, value in config.flags.items() if value}
    assert enabled == {"Time", "Npack", "Omega", "V", "W"}
    for name in ("decod", "decod_corr", "bins", "Model", "A", "I", "T_lg0"):
        assert config.flags[name] is False


def test_default_config_starts_with_file_path(tmp_path):
    path = tmp_path / "config.inf"
    write_default_config(path)
    first = path.read_text(encoding="utf-8").splitlines()[0]
    assert first.startswith("file_path=file.rpz ")


def test_load_config_custom_file(tmp_path):
    path = tmp_path / "config.inf"
    text = (
        "file_path=run/flight.rpz [path]\n-----\n"
        "pcfd=unit.pcfd [passport]\n-----\n"
        + _settings_body(model="1", taverage="10", outputs=("Time=0", "Ta=1"))
    )
    path.write_text(text, encoding="utf-8")
    config = load_config(path)
    assert config == Config(
        file_path="run/flight.rpz",
        pcfd="unit.pcfd",
        flags={
            "decod": False,
            "decod_corr": False,
            "bins": False,
            "Model": True,
            "Time": False,
            "Ta": True,
        },
        times={"Taverage": 10.0, "T_beg": 0.0, "T_end": 0.0},
    )


def test_load_config_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "absent.inf")