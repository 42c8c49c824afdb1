"""
Tests for the failure paths: dispatch and allocation errors abort the
primitive, leave the caller's output untouched and release every buffer.
"""

import numpy as np
import pytest
import taichi as ti
from taichi.lang.field import ScalarField

import pyfastscan as ps
from pyfastscan.errors import DeviceAllocationError, DeviceExecutionError, PrimitiveError
from pyfastscan.general_algorithms import launch
from pyfastscan.compaction import stream_compaction
from pyfastscan.pool import pool as pool_module


def failing_kernel(*args):
    raise RuntimeError("device fault")


def test_error_hierarchy():
    assert issubclass(DeviceAllocationError, PrimitiveError)
    assert issubclass(DeviceExecutionError, PrimitiveError)
    assert issubclass(PrimitiveError, RuntimeError)


def test_launch_translates_runtime_errors():
    with pytest.raises(DeviceExecutionError) as info:
        launch(failing_kernel, 1, 2)
    assert info.value.kernel == "failing_kernel"
    assert isinstance(info.value.__cause__, RuntimeError)


def test_launch_does_not_translate_logic_errors():
    def bad_kernel():
        raise TypeError("wrong argument type")

    with pytest.raises(TypeError):
        launch(bad_kernel)


def test_launch_with_sync(monkeypatch):
    monkeypatch.setattr(ps.constants, "SYNC_AFTER_DISPATCH", True)
    calls = []
    launch(lambda x: calls.append(x), 3)
    assert calls == [3]


@pytest.mark.parametrize("name, kernel", [
    ("efficient", "upsweep_step"),
    ("naive", "naive_step"),
    ("shared", "block_scan_local"),
])
def test_scan_failure_aborts(name, kernel, monkeypatch):
    module = getattr(ps.scan, name)
    monkeypatch.setattr(module, kernel, failing_kernel)

    out = np.full(300, -1, dtype=np.int32)
    with pytest.raises(DeviceExecutionError):
        module.scan(300, out, np.ones(300, dtype=np.int32))
    np.testing.assert_array_equal(out, -1)
    assert ps.pool.pool_stats()["in_use"] == 0


def test_compaction_failure_is_not_an_empty_result(monkeypatch):
    monkeypatch.setattr(stream_compaction, "scatter", failing_kernel)
    out = np.full(4, -1, dtype=np.int32)
    with pytest.raises(DeviceExecutionError):
        ps.compaction.compact(4, out, np.array([1, 0, 2, 0], dtype=np.int32))
    np.testing.assert_array_equal(out, -1)


def test_sort_failure_aborts(monkeypatch):
    from pyfastscan.sort import radix
    monkeypatch.setattr(radix, "scatter_by_bit", failing_kernel)
    out = np.full(8, -1, dtype=np.int32)
    with pytest.raises(DeviceExecutionError):
        ps.sort.sort(8, out, np.arange(8, dtype=np.int32)[::-1].copy())
    np.testing.assert_array_equal(out, -1)


def test_allocation_failure(monkeypatch):
    def no_memory(*args, **kwargs):
        raise RuntimeError("out of device memory")

    # Length not used by any other test, so the pool has to allocate
    n = 5003
    monkeypatch.setattr(pool_module.ti, "field", no_memory)
    out = np.full(n, -1, dtype=np.int32)
    with pytest.raises(DeviceAllocationError) as info:
        ps.scan.efficient.scan(n, out, np.ones(n, dtype=np.int32))
    assert info.value.dtype == ti.i32
    assert info.value.shape == (n,)
    np.testing.assert_array_equal(out, -1)


def test_sync_without_pending_work():
    ps.general_algorithms.sync()


def test_deferred_fault_is_reported_as_execution_error(monkeypatch):
    # A fault of an asynchronous dispatch surfaces at the next synchronisation
    def device_fault():
        raise RuntimeError("illegal memory access")

    monkeypatch.setattr(ti, "sync", device_fault)
    data = np.array([1, 0, 3, 0], dtype=np.int32)
    out = np.full(4, -1, dtype=np.int32)
    with pytest.raises(DeviceExecutionError) as info:
        ps.scan.efficient.scan(4, out, data)
    assert info.value.kernel == "sync"
    with pytest.raises(DeviceExecutionError):
        ps.compaction.compact(4, out, data)
    with pytest.raises(DeviceExecutionError):
        ps.sort.sort(4, out, data)
    np.testing.assert_array_equal(out, -1)
    assert ps.pool.pool_stats()["in_use"] == 0


def test_deferred_fault_with_timer(monkeypatch):
    def device_fault():
        raise RuntimeError("illegal memory access")

    timer = ps.timing.enable_timer()
    try:
        monkeypatch.setattr(ti, "sync", device_fault)
        with pytest.raises(DeviceExecutionError):
            ps.scan.shared.scan(4, np.zeros(4, dtype=np.int32), np.ones(4, dtype=np.int32))
        assert timer.active is None
    finally:
        ps.timing.disable_timer()


def test_upload_failure(monkeypatch):
    def broken_copy(self, arr):
        raise RuntimeError("host to device copy failed")

    monkeypatch.setattr(ScalarField, "from_numpy", broken_copy)
    out = np.full(6, -1, dtype=np.int32)
    with pytest.raises(DeviceExecutionError) as info:
        ps.scan.naive.scan(6, out, np.ones(6, dtype=np.int32))
    assert info.value.kernel == "from_numpy"
    np.testing.assert_array_equal(out, -1)
