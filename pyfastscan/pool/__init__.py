"""
Device Buffer Manager for PyFastScan.

This submodule implements a pooling system for the transient device buffers
(padded scan buffers, masks, scanned indices, ping-pong key buffers) used by
the scan, compaction and sort engines. Buffers of the same dtype and shape are
recycled, which also keeps the Taichi kernels specialised on them compiled.

Core Classes:
- DeviceBuffer: Wrapper for a pooled Taichi field with lifecycle management
- BufferPool: Pool manager keyed by (dtype, shape) with usage statistics

Pool Management Functions:
- scratch: Context manager for a transient buffer
- padded: Context manager for a power-of-two buffer with zeroed padding
- upload: Copy a host array into a transient buffer
- get_temp_buffer / release_temp_buffer: Manual management
- pool_stats: Pool usage statistics
- clear_pool: Destroy idle buffers and free device memory

Usage Patterns:
    import pyfastscan as ps
    import taichi as ti

    ps.environment.initialise(ti.gpu)

    # Recommended: context manager, released on every exit path
    with ps.pool.scratch(ti.i32, (1024,)) as mask:
        some_kernel(mask.field)

    # Manual management
    buf = ps.pool.get_temp_buffer(ti.i32, (100,))
    try:
        some_kernel(buf.field)
    finally:
        ps.pool.release_temp_buffer(buf)

    stats = ps.pool.pool_stats()
    print(f"Buffers in use: {stats['in_use']}/{stats['total']}")

Author: B. Gailleton
"""

from .pool import (
    DeviceBuffer,
    BufferPool,
    get_temp_buffer,
    release_temp_buffer,
    pool_stats,
    clear_pool,
    scratch,
    padded,
    upload,
    bufpool
)

__all__ = [
    "DeviceBuffer",
    "BufferPool",
    "get_temp_buffer",
    "release_temp_buffer",
    "pool_stats",
    "clear_pool",
    "scratch",
    "padded",
    "upload",
    "bufpool"
]
