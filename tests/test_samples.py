from __future__ import annotations

import datetime as dtm

import numpy as np
import pandas as pd
import pytest

from rrd_transfer.dat_file import SampleKind
from rrd_transfer.errors import ArchiveIOError
from rrd_transfer.samples import (
    NO_CUTOFF,
    cutoff_from_date,
    read_csv_import,
    read_rra_file,
    write_buffer_csv,
    write_rra_file,
)

from conftest import mk_buffer, mk_device


def test_cutoff_filter(tmp_path):
    f = tmp_path / "import.csv"
    f.write_text("100,1\n300,3\n200,2\n")
    df = read_csv_import(f, SampleKind.INTEGER, cutoff=250)
    assert df["timestamp"].tolist() == [100, 200]
    assert df["value"].tolist() == [1, 2]


def test_import_keeps_file_order_and_spacing(tmp_path):
    f = tmp_path / "import.csv"
    f.write_text("300, 3.250\n100, 1.000\n\n200, 2.500\n")
    df = read_csv_import(f, SampleKind.REAL)
    assert df["timestamp"].tolist() == [300, 100, 200]
    assert df["value"].tolist() == [3.25, 1.0, 2.5]
    assert str(df["value"].dtype) == "Float64"


def test_import_sentinel_is_unfilled(tmp_path):
    f = tmp_path / "import.csv"
    f.write_text(f"100, {0x7FFFFFFF}\n200, 5\n")
    df = read_csv_import(f, SampleKind.INTEGER)
    assert pd.isna(df["value"].iloc[0])
    assert df["value"].iloc[1] == 5


def test_import_empty_file(tmp_path):
    f = tmp_path / "import.csv"
    f.write_text("")
    df = read_csv_import(f, SampleKind.INTEGER)
    assert len(df) == 0
    assert list(df.columns) == ["timestamp", "value"]


def test_import_missing(tmp_path):
    with pytest.raises(ArchiveIOError):
        read_csv_import(tmp_path / "missing.csv", SampleKind.INTEGER)


def test_cutoff_from_date():
    # midnight after 2019-03-09 in UTC
    assert cutoff_from_date("2019-03-09", tz="UTC") == 1552176000
    assert cutoff_from_date(dtm.date(2019, 3, 9), tz="UTC") == 1552176000
    assert cutoff_from_date(None) == NO_CUTOFF


def test_cutoff_from_date_local():
    expected = int(dtm.datetime(2019, 3, 10).timestamp())
    assert cutoff_from_date("2019-03-09") == expected


@pytest.mark.parametrize("bad", ["2019-13-01", "09-03-2019", "yesterday"])
def test_cutoff_from_bad_date(bad):
    with pytest.raises(ValueError):
        cutoff_from_date(bad)


def test_read_rra_integer(tmp_path):
    device = mk_device(buffers=[mk_buffer(n_samples=4)])
    f = tmp_path / "x-5min.rra"
    f.write_bytes(np.array([1, 0x7FFFFFFF, -3, 4], dtype="<i4").tobytes())
    values = read_rra_file(f, device, 0)
    assert str(values.dtype) == "Int32"
    assert values.iloc[0] == 1
    assert pd.isna(values.iloc[1])
    assert values.iloc[2] == -3


def test_read_rra_real(tmp_path):
    device = mk_device(buffers=[mk_buffer(n_samples=3, file_offset=2, real=True)], real=True)
    f = tmp_path / "x-5min.rra"
    f.write_bytes(np.array([1.25, np.nan, 3.5], dtype="<f8").tobytes())
    values = read_rra_file(f, device, 0)
    assert str(values.dtype) == "Float64"
    assert values.iloc[0] == 1.25
    assert pd.isna(values.iloc[1])


def test_read_rra_short_file(tmp_path):
    device = mk_device(buffers=[mk_buffer(n_samples=4)])
    f = tmp_path / "x-5min.rra"
    f.write_bytes(np.array([1, 2, 3], dtype="<i4").tobytes())
    with pytest.raises(ArchiveIOError):
        read_rra_file(f, device, 0)


def test_read_rra_missing(tmp_path):
    device = mk_device(buffers=[mk_buffer(n_samples=4)])
    with pytest.raises(ArchiveIOError):
        read_rra_file(tmp_path / "missing.rra", device, 0)


@pytest.mark.parametrize("real", [False, True])
def test_write_rra_restores_sentinels(tmp_path, real):
    kind = SampleKind.REAL if real else SampleKind.INTEGER
    values = pd.Series(pd.array([1, pd.NA, 3], dtype=kind.series_dtype))
    f = tmp_path / "x-5min.rra"
    f.write_bytes(b"old contents")
    write_rra_file(f, values, kind)
    raw = np.frombuffer(f.read_bytes(), dtype=kind.dtype)
    assert len(raw) == 3
    assert raw[0] == 1 and raw[2] == 3
    if real:
        assert np.isnan(raw[1])
    else:
        assert raw[1] == 0x7FFFFFFF
    assert [p.name for p in tmp_path.iterdir()] == ["x-5min.rra"]


def test_write_buffer_csv_skips_unfilled(tmp_path):
    f = tmp_path / "out.csv"
    values = pd.Series(pd.array([1.0, pd.NA, 2.3456], dtype="Float64"))
    n = write_buffer_csv(f, np.array([100, 200, 300]), values, SampleKind.REAL)
    assert n == 2
    assert f.read_text() == "100, 1.000\n300, 2.346\n"


def test_write_buffer_csv_integer(tmp_path):
    f = tmp_path / "out.csv"
    values = pd.Series(pd.array([7, 8], dtype="Int32"))
    write_buffer_csv(f, np.array([100, 200]), values, SampleKind.INTEGER)
    assert f.read_text() == "100, 7\n200, 8\n"
    df = read_csv_import(f, SampleKind.INTEGER)
    assert df["value"].tolist() == [7, 8]
