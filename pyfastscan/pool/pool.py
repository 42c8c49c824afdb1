"""
Device Buffer Pool Module

Pooling system for the transient device buffers used by the scan, compaction
and sort engines. Buffers are Taichi fields built with the FieldsBuilder
pattern so they can be created after kernels have already been compiled and
destroyed individually.

The pool organizes buffers by data type and shape, so the scratch buffers of
repeated calls on arrays of the same length are reused instead of being
reallocated (and their kernels are not recompiled).

Supports 0D (scalar), 1D, and 2D buffers:
- 0D buffers: Single scalar values, no indexing required
- 1D buffers: Linear arrays with ti.i indexing
- 2D buffers: Per-block rows with ti.ij indexing

Author: B. Gailleton
"""

import logging
from typing import Tuple, Any

import taichi as ti

from .. import constants as cte
from ..errors import DeviceAllocationError, DeviceExecutionError

logger = logging.getLogger(__name__)


def _normalise_shape(shape) -> Tuple[int, ...]:
    # int -> (n,), iterables -> tuple, 0 or () -> scalar
    if isinstance(shape, int):
        shape = (shape,) if shape > 0 else ()
    elif not isinstance(shape, tuple):
        shape = tuple(shape) if hasattr(shape, '__iter__') else (shape,)
    if not shape or (len(shape) == 1 and shape[0] == 0):
        shape = ()
    return shape


@ti.kernel
def _zero_range(data: ti.template(), start: int, stop: int):
    for i in range(start, stop):
        data[i] = 0


class DeviceBuffer:
    """
    Pooled device buffer wrapping a Taichi field.

    Tracks usage state so the pool can hand the same memory to the next
    request of the same dtype and shape. Acts as a context manager: leaving
    the `with` block releases the buffer back to the pool, on every exit path.

    Attributes:
        id: Unique buffer identifier
        field: Underlying Taichi field
        in_use: Current usage status
        dtype: Field data type
        shape: Field dimensions (empty tuple () for 0D scalars)
        snodetree: Finalized field structure for memory management

    Author: B. Gailleton
    """

    _next_id = 0

    def __init__(self, dtype: Any, shape: Tuple[int, ...]):
        """
        Allocate the device memory of the buffer.

        Args:
            dtype: Taichi data type (ti.i32, ti.u8, ...)
            shape: int, tuple, or empty tuple/0 for a scalar

        Raises:
            ValueError: For more than two dimensions
            DeviceAllocationError: If the device allocation fails

        Author: B. Gailleton
        """
        shape = _normalise_shape(shape)

        DeviceBuffer._next_id += 1
        self.id = DeviceBuffer._next_id
        self.in_use = False
        self.dtype = dtype
        self.shape = shape
        self.snodetree = None

        if len(shape) > 2:
            raise ValueError(f"Unsupported buffer dimensionality: {len(shape)}D. Only 0D, 1D and 2D buffers supported.")

        try:
            self.field = ti.field(dtype)
            self.fb = ti.FieldsBuilder()
            if len(shape) == 0:
                self.fb.place(self.field)
            elif len(shape) == 1:
                self.fb.dense(ti.i, shape).place(self.field)
            else:
                self.fb.dense(ti.ij, shape).place(self.field)
            self.snodetree = self.fb.finalize()
        except (RuntimeError, MemoryError) as e:
            raise DeviceAllocationError(dtype, shape, e) from e

        logger.debug("Allocated device buffer id:%d dtype:%s shape:%s", self.id, dtype, shape)

    @property
    def size(self) -> int:
        n = 1
        for s in self.shape:
            n *= s
        return n

    def acquire(self):
        """Mark the buffer as in use."""
        self.in_use = True

    def release(self):
        """Mark the buffer as available for reuse. Does not free memory."""
        self.in_use = False

    def destroy(self):
        """
        Free the device memory of the buffer.

        Only called when permanently removing the buffer from the pool.

        Author: B. Gailleton
        """
        if self.snodetree is not None:
            self.snodetree.destroy()
            self.snodetree = None

    def to_numpy(self):
        try:
            return self.field.to_numpy()
        except RuntimeError as e:
            raise DeviceExecutionError("to_numpy", e) from e

    def from_numpy(self, val):
        try:
            return self.field.from_numpy(val)
        except RuntimeError as e:
            raise DeviceExecutionError("from_numpy", e) from e

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.release()
        return False

    def __str__(self):
        return f"Device buffer from the pool id:{self.id} - in_use:{self.in_use} - dtype:{self.dtype} - shape:{self.shape}"


class BufferPool:
    """
    Pool manager for transient device buffers.

    Manages lists of DeviceBuffer objects keyed by (dtype, shape). A request
    returns the first idle buffer of the key or allocates a new one.

    Idle buffers are capped: before a new allocation, idle buffers of the least
    recently requested keys are destroyed until fewer than `max_idle` remain,
    so calls on many distinct lengths do not pile up device memory.

    Attributes:
        _pools: Dictionary mapping (dtype, shape) tuples to lists of DeviceBuffer,
            ordered from least to most recently requested key
        max_idle: Idle buffers kept for reuse (POOL_MAX_IDLE by default)

    Usage:
        pool = BufferPool()
        with pool.get_buffer(ti.i32, (1000,)) as buf:
            some_kernel(buf.field)
        # buf is idle again here

    Author: B. Gailleton
    """

    def __init__(self, max_idle: int = None):
        self._pools = {}  # (dtype, shape) -> [DeviceBuffer]
        self.max_idle = cte.POOL_MAX_IDLE if max_idle is None else max_idle
        self.requests = 0
        self.reused = 0

    def get_buffer(self, dtype: Any, shape: Tuple[int, ...]) -> DeviceBuffer:
        """
        Get an idle DeviceBuffer or allocate a new one.

        The returned buffer is marked as in use. Its content is whatever the
        previous user left in it.

        Args:
            dtype: Taichi data type
            shape: Buffer dimensions as tuple, int, or empty tuple for scalar

        Returns:
            DeviceBuffer: Ready-to-use buffer marked as in use

        Raises:
            DeviceAllocationError: If a new buffer is needed and cannot be allocated
            DeviceExecutionError: If a pending dispatch failed before idle buffers are evicted

        Author: B. Gailleton
        """
        shape = _normalise_shape(shape)
        key = (dtype, shape)
        self.requests += 1

        # Most recently requested key goes last
        pool = self._pools.pop(key, [])
        self._pools[key] = pool

        for buf in pool:
            if not buf.in_use:
                buf.acquire()
                self.reused += 1
                return buf

        self._evict_idle()
        buf = DeviceBuffer(dtype, shape)
        pool.append(buf)
        buf.acquire()
        return buf

    def _evict_idle(self):
        idle = sum(1 for pool in self._pools.values() for buf in pool if not buf.in_use)
        if idle < self.max_idle:
            return
        # Queued dispatches may still read a released buffer
        try:
            ti.sync()
        except RuntimeError as e:
            raise DeviceExecutionError("sync", e) from e
        evicted = 0
        # Last key is the one being served, all its buffers are in use
        for key in list(self._pools)[:-1]:
            pool = self._pools[key]
            for buf in pool[:]:
                if idle - evicted < self.max_idle:
                    break
                if not buf.in_use:
                    buf.destroy()
                    pool.remove(buf)
                    evicted += 1
            if not pool:
                del self._pools[key]
            if idle - evicted < self.max_idle:
                break
        logger.debug("Evicted %d idle buffers", evicted)

    def release_buffer(self, buf: DeviceBuffer):
        """Release a DeviceBuffer back to the pool for reuse."""
        buf.release()

    def get_padded(self, dtype: Any, n: int, length: int) -> DeviceBuffer:
        """
        Get a 1D buffer of `length` elements whose tail [n, length) is zero.

        Used for in-place tree scans over a power-of-two length: the padding
        is zero-filled at acquisition so stale pooled data never leaks into
        the scan.

        Args:
            dtype: Taichi data type
            n: Number of meaningful leading elements
            length: Total length of the buffer (>= n)

        Returns:
            DeviceBuffer: Buffer marked as in use, padding region zeroed

        Author: B. Gailleton
        """
        buf = self.get_buffer(dtype, (length,))
        if length > n:
            try:
                _zero_range(buf.field, n, length)
            except RuntimeError as e:
                buf.release()
                raise DeviceExecutionError("_zero_range", e) from e
        return buf

    def clear_unused(self):
        """
        Destroy idle buffers and free their device memory.

        Author: B. Gailleton
        """
        for pool in self._pools.values():
            for buf in pool[:]:
                if not buf.in_use:
                    buf.destroy()
                    pool.remove(buf)

    def forget_all(self):
        """
        Drop every buffer without destroying it.

        Only valid after ti.reset(), which already freed all device memory.

        Author: B. Gailleton
        """
        self._pools = {}

    def stats(self) -> dict:
        """
        Get pool usage statistics.

        Returns:
            dict: Statistics containing:
                - total: Total number of buffers across all pools
                - in_use: Number of buffers currently in use
                - available: Number of idle buffers
                - reuse_rate: Fraction of requests served by an existing buffer

        Author: B. Gailleton
        """
        total = sum(len(pool) for pool in self._pools.values())
        in_use = sum(1 for pool in self._pools.values() for buf in pool if buf.in_use)
        reuse_rate = self.reused / self.requests if self.requests else 0.0
        return {"total": total, "in_use": in_use, "available": total - in_use, "reuse_rate": reuse_rate}


# Global pool instance
bufpool = BufferPool()


def get_temp_buffer(dtype: Any, shape: Tuple[int, ...]) -> DeviceBuffer:
    """Get a DeviceBuffer from the global pool."""
    return bufpool.get_buffer(dtype, shape)


def release_temp_buffer(buf: DeviceBuffer):
    """Release a DeviceBuffer back to the global pool."""
    bufpool.release_buffer(buf)


def pool_stats() -> dict:
    """Get statistics from the global pool."""
    return bufpool.stats()


def clear_pool():
    """Destroy idle buffers of the global pool to free device memory."""
    bufpool.clear_unused()


def scratch(dtype: Any, shape: Tuple[int, ...]) -> DeviceBuffer:
    """
    Get a transient buffer as a context manager.

    with scratch(ti.i32, n) as mask:
        some_kernel(mask.field)
    # mask released here, also when some_kernel raises

    Author: B. Gailleton
    """
    return bufpool.get_buffer(dtype, shape)


def padded(dtype: Any, n: int, length: int) -> DeviceBuffer:
    """
    Get a zero-padded transient 1D buffer as a context manager.

    See BufferPool.get_padded.

    Author: B. Gailleton
    """
    return bufpool.get_padded(dtype, n, length)


def upload(host_array, dtype=ti.i32) -> DeviceBuffer:
    """
    Copy a 1D host array into a transient device buffer of the same length.

    Returns:
        DeviceBuffer: Buffer in use, to be released by the caller (context manager)

    Raises:
        DeviceExecutionError: If the host to device copy fails

    Author: B. Gailleton
    """
    buf = bufpool.get_buffer(dtype, (len(host_array),))
    try:
        buf.from_numpy(host_array)
    except Exception:
        buf.release()
        raise
    return buf
