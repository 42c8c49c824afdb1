"""
Tests for the three scan engines against the CPU oracle.
"""

import numpy as np
import pytest

import pyfastscan as ps

ENGINES = ["naive", "efficient", "shared"]

# Power-of-two and non-power-of-two lengths, around block boundaries
LENGTHS = [1, 2, 3, 7, 8, 9, 16, 100, 255, 256, 257, 512, 1000, 1024, 1283]


def engine(name):
    return getattr(ps.scan, name)


def reference(data):
    out = np.zeros(data.size, dtype=np.int32)
    ps.cpu.scan(data.size, out, data)
    return out


@pytest.mark.parametrize("name", ENGINES)
@pytest.mark.parametrize("n", LENGTHS)
def test_matches_oracle(name, n, rng):
    data = rng.integers(0, 50, n).astype(np.int32)
    out = np.full(n, -1, dtype=np.int32)
    engine(name).scan(n, out, data)
    np.testing.assert_array_equal(out, reference(data))


@pytest.mark.parametrize("name", ENGINES)
def test_recurrence(name, rng):
    n = 333
    data = rng.integers(-20, 20, n).astype(np.int32)
    out = np.zeros(n, dtype=np.int32)
    engine(name).scan(n, out, data)
    assert out[0] == 0
    np.testing.assert_array_equal(out[1:], out[:-1] + data[:-1])


@pytest.mark.parametrize("name", ENGINES)
def test_known_example(name):
    data = np.array([3, 1, 7, 0, 4, 1, 6, 3], dtype=np.int32)
    out = np.zeros(8, dtype=np.int32)
    engine(name).scan(8, out, data)
    np.testing.assert_array_equal(out, [0, 3, 4, 11, 11, 15, 16, 22])


@pytest.mark.parametrize("name", ENGINES)
def test_single_element(name):
    out = np.array([99], dtype=np.int32)
    engine(name).scan(1, out, np.array([5], dtype=np.int32))
    np.testing.assert_array_equal(out, [0])


@pytest.mark.parametrize("name", ENGINES)
@pytest.mark.parametrize("n", [0, -4])
def test_empty_leaves_output_untouched(name, n):
    out = np.array([7, 7, 7], dtype=np.int32)
    engine(name).scan(n, out, np.array([1, 2, 3], dtype=np.int32))
    np.testing.assert_array_equal(out, [7, 7, 7])


@pytest.mark.parametrize("name", ENGINES)
def test_rerun_is_identical(name, rng):
    data = rng.integers(0, 10, 777).astype(np.int32)
    first = np.zeros(777, dtype=np.int32)
    second = np.zeros(777, dtype=np.int32)
    engine(name).scan(777, first, data)
    engine(name).scan(777, second, data)
    np.testing.assert_array_equal(first, second)


@pytest.mark.parametrize("name", ENGINES)
def test_only_first_n_elements(name):
    data = np.arange(1, 11, dtype=np.int32)
    out = np.full(10, -1, dtype=np.int32)
    engine(name).scan(5, out, data)
    np.testing.assert_array_equal(out[:5], [0, 1, 3, 6, 10])
    np.testing.assert_array_equal(out[5:], [-1] * 5)


def test_input_is_not_modified(rng):
    data = rng.integers(0, 10, 100).astype(np.int32)
    copy = data.copy()
    ps.scan.efficient.scan(100, np.zeros(100, dtype=np.int32), data)
    np.testing.assert_array_equal(data, copy)


def test_accepts_python_lists():
    out = np.zeros(4, dtype=np.int32)
    ps.scan.efficient.scan(4, out, [1, 2, 3, 4])
    np.testing.assert_array_equal(out, [0, 1, 3, 6])


def test_engines_agree_on_large_input(rng):
    n = (1 << 16) + 77
    data = rng.integers(0, 4, n).astype(np.int32)
    results = {}
    for name in ENGINES:
        out = np.zeros(n, dtype=np.int32)
        engine(name).scan(n, out, data)
        results[name] = out
    np.testing.assert_array_equal(results["efficient"], reference(data))
    np.testing.assert_array_equal(results["shared"], results["efficient"])
    np.testing.assert_array_equal(results["naive"], results["efficient"])


def test_output_too_short_raises():
    with pytest.raises(ValueError):
        ps.scan.efficient.scan(5, np.zeros(3, dtype=np.int32), np.zeros(5, dtype=np.int32))


def test_length_limit(monkeypatch):
    monkeypatch.setattr(ps.constants, "MAX_LENGTH", 8)
    with pytest.raises(ValueError):
        ps.scan.efficient.scan(9, np.zeros(9, dtype=np.int32), np.zeros(9, dtype=np.int32))


def test_get_scan_device():
    assert ps.scan.get_scan_device("shared") is ps.scan.shared.scan_device
    fn = ps.scan.efficient.scan_device
    assert ps.scan.get_scan_device(fn) is fn
    with pytest.raises(ValueError):
        ps.scan.get_scan_device("thrust")


@pytest.mark.parametrize("name", ENGINES)
@pytest.mark.parametrize("length_type", [np.int64, np.int32, np.uint16])
def test_numpy_integer_length(name, length_type, rng):
    data = rng.integers(0, 50, 10).astype(np.int32)
    out = np.zeros(10, dtype=np.int32)
    engine(name).scan(length_type(10), out, data)
    np.testing.assert_array_equal(out, reference(data))


def test_non_integer_length_raises():
    with pytest.raises(TypeError):
        ps.scan.efficient.scan(4.0, np.zeros(4, dtype=np.int32), np.ones(4, dtype=np.int32))


def test_wide_values_are_rejected():
    data = np.array([1, 2 ** 32, 3], dtype=np.int64)
    out = np.full(3, -1, dtype=np.int32)
    with pytest.raises(ValueError):
        ps.scan.efficient.scan(3, out, data)
    np.testing.assert_array_equal(out, -1)


def test_float_values_are_rejected():
    with pytest.raises(ValueError):
        ps.scan.naive.scan(2, np.zeros(2, dtype=np.int32), np.array([1.5, 2.0]))


def test_int64_values_in_range_are_accepted():
    data = np.array([-(2 ** 31), 5, 2 ** 31 - 1], dtype=np.int64)
    out = np.zeros(3, dtype=np.int64)
    ps.scan.efficient.scan(3, out, data)
    np.testing.assert_array_equal(out, [0, -(2 ** 31), -(2 ** 31) + 5])


def test_many_lengths_keep_the_pool_bounded(monkeypatch, rng):
    max_idle = 8
    monkeypatch.setattr(ps.pool.bufpool, "max_idle", max_idle)
    for n in range(600, 640):
        data = rng.integers(0, 50, n).astype(np.int32)
        out = np.zeros(n, dtype=np.int32)
        ps.scan.efficient.scan(n, out, data)
        np.testing.assert_array_equal(out, reference(data))
        # Idle set capped, plus the three buffers of the last call
        assert ps.pool.pool_stats()["total"] <= max_idle + 3
