from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from rrd_transfer.merge import is_rotated_sorted, merge_samples, search_rotated


def _rotations(n):
    base = list(range(10, 10 * (n + 1), 10))
    for r in range(max(n, 1)):
        yield base[r:] + base[:r]


@pytest.mark.parametrize("n", range(0, 9))
def test_search_finds_every_element(n):
    for arr in _rotations(n):
        for i, key in enumerate(arr):
            assert search_rotated(arr, key) == i


@pytest.mark.parametrize("n", range(0, 9))
def test_search_absent(n):
    for arr in _rotations(n):
        for key in (5, 15, 10 * n + 5, 10 * (n + 1), -1):
            assert search_rotated(arr, key) is None


def test_search_index_zero_is_not_missing():
    assert search_rotated([300, 100, 200], 300) == 0
    assert search_rotated(np.array([300, 100, 200]), 300) == 0


@pytest.mark.parametrize(
    "arr, expected",
    [
        ([], True),
        ([1], True),
        ([1, 2, 3], True),
        ([3, 1, 2], True),
        ([2, 3, 1], True),
        ([1, 3, 2], False),
        ([1, 2, 0, 5], False),
        ([1, 1, 2], False),
    ],
)
def test_is_rotated_sorted(arr, expected):
    assert is_rotated_sorted(arr) == expected


def _dest():
    times = np.array([100, 200, 300, 400])
    values = pd.Series(pd.array([10, 11, 12, 13], dtype="Int32"))
    return times, values


def test_merge_replaces_matching_slot():
    times, values = _dest()
    merged = merge_samples(times, values, 3, [200], pd.Series([99]))
    assert merged.tolist() == [10, 99, 12, 13]
    # destination untouched
    assert values.tolist() == [10, 11, 12, 13]


def test_merge_without_overlap_is_identity():
    times, values = _dest()
    merged = merge_samples(times, values, 3, [50, 150, 450, 500], pd.Series([1, 2, 3, 4]))
    assert merged.equals(values)


def test_merge_empty_import():
    times, values = _dest()
    merged = merge_samples(times, values, 3, np.array([], dtype=np.int64), pd.Series([], dtype="Int32"))
    assert merged.equals(values)


def test_merge_rotated_import():
    # destination wrapped: newest sample in slot 1
    times = np.array([300, 400, 100, 200])
    values = pd.Series(pd.array([pd.NA, pd.NA, pd.NA, pd.NA], dtype="Int32"))
    import_times = [200, 300, 400, 100]
    import_values = pd.Series(pd.array([2, 3, 4, 1], dtype="Int32"))
    merged = merge_samples(times, values, 1, import_times, import_values)
    assert merged.tolist() == [3, 4, 1, 2]


def test_merge_unordered_import():
    times, values = _dest()
    import_times = [300, 100, 400, 200]
    import_values = pd.Series([3.5, 1.5, 4.5, 2.5])
    real = pd.Series(pd.array([1.0, 2.0, 3.0, 4.0], dtype="Float64"))
    merged = merge_samples(times, real, 3, import_times, import_values)
    assert merged.tolist() == [1.5, 2.5, 3.5, 4.5]


def test_merge_keeps_unfilled_import_values():
    times, values = _dest()
    import_values = pd.Series(pd.array([pd.NA], dtype="Int32"))
    merged = merge_samples(times, values, 3, [300], import_values)
    assert pd.isna(merged.iloc[2])
    assert merged.iloc[[0, 1, 3]].tolist() == [10, 11, 13]


def test_merge_import_larger_than_buffer():
    times, values = _dest()
    with pytest.raises(IndexError):
        merge_samples(times, values, 3, [100, 200, 300, 400, 500], pd.Series([1, 2, 3, 4, 5]))


def test_merge_length_mismatch():
    times, values = _dest()
    with pytest.raises(ValueError):
        merge_samples(times, values, 3, [100, 200], pd.Series([1]))


def test_merge_limited_to_window():
    times, values = _dest()
    merged = merge_samples(times, values, 3, [100, 200], pd.Series([98, 99]), window=(200, 400))
    assert merged.tolist() == [10, 99, 12, 13]
