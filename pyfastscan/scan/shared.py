"""
Shared-Memory Hierarchical Scan Implementation

The array is cut into blocks of ELEMENTS_PER_BLOCK = 2 * BLOCK_SIZE elements.
Each block loads its slice into on-chip memory, runs the up-sweep/down-sweep
tree scan locally and writes its exclusive scan plus its total. The block
totals are then exclusive-scanned by the same engine (recursively, a single
block ends the recursion) and each block's offset is added to its elements.

Bank conflicts:
    Logical shared index idx is stored at conflict_free(idx) =
    idx + (idx >> LOG_NUM_BANKS), one padding slot every 2^LOG_NUM_BANKS
    elements, on every read and every write of the local scan.

Backends:
    - CUDA: one thread per pair of elements, ti.simt.block.SharedArray for
      the block memory and ti.simt.block.sync() between tree levels.
    - Other backends have no block shared memory. The same tree scan runs
      with one work item per block over a per-block row of a scratch buffer
      laid out with the same conflict-free offsets; the level loop orders the
      accesses that the barrier orders on CUDA.

Author: B.G.
Reference: Harris, Sengupta, Owens (2007). "Parallel Prefix Sum (Scan) with CUDA", GPU Gems 3
"""
import logging

import taichi as ti

from .. import constants as cte
from .. import environment as env
from .. import pool
from ..general_algorithms import num_blocks, launch
from ..general_algorithms import util_taichi as ut
from .common import run_scan

logger = logging.getLogger(__name__)


@ti.func
def conflict_free(idx):
    """Physical shared-memory slot of logical index idx."""
    return idx + (idx >> cte.LOG_NUM_BANKS)


@ti.kernel
def block_scan_shared(src: ti.template(), dst: ti.template(), sums: ti.template(), n: int, blocks: int):
    """
    Block-local exclusive scan in CUDA shared memory.

    Args:
        src: Input array
        dst: Output array, block-wise exclusive scan (may be src)
        sums: Per-block totals, at least `blocks` elements
        n: Number of valid elements
        blocks: Number of blocks
    """
    ti.loop_config(block_dim=cte.BLOCK_SIZE)
    for tid in range(blocks * cte.BLOCK_SIZE):
        temp = ti.simt.block.SharedArray((cte.SHARED_SIZE,), ti.i32)

        thid = tid % cte.BLOCK_SIZE
        block = tid // cte.BLOCK_SIZE
        base = block * cte.ELEMENTS_PER_BLOCK
        ai = thid
        bi = thid + cte.BLOCK_SIZE

        # Load two elements per thread, zero beyond n
        val_a = 0
        val_b = 0
        if base + ai < n:
            val_a = src[base + ai]
        if base + bi < n:
            val_b = src[base + bi]
        temp[conflict_free(ai)] = val_a
        temp[conflict_free(bi)] = val_b

        # Up-sweep
        offset = 1
        d = cte.BLOCK_SIZE
        while d > 0:
            ti.simt.block.sync()
            if thid < d:
                a = offset * (2 * thid + 1) - 1
                b = offset * (2 * thid + 2) - 1
                temp[conflict_free(b)] += temp[conflict_free(a)]
            offset = offset * 2
            d = d >> 1

        ti.simt.block.sync()
        if thid == 0:
            root = conflict_free(cte.ELEMENTS_PER_BLOCK - 1)
            sums[block] = temp[root]
            temp[root] = 0

        # Down-sweep
        d = 1
        while d < cte.ELEMENTS_PER_BLOCK:
            offset = offset >> 1
            ti.simt.block.sync()
            if thid < d:
                a = offset * (2 * thid + 1) - 1
                b = offset * (2 * thid + 2) - 1
                t = temp[conflict_free(a)]
                temp[conflict_free(a)] = temp[conflict_free(b)]
                temp[conflict_free(b)] += t
            d = d * 2

        ti.simt.block.sync()
        if base + ai < n:
            dst[base + ai] = temp[conflict_free(ai)]
        if base + bi < n:
            dst[base + bi] = temp[conflict_free(bi)]


@ti.kernel
def block_scan_local(src: ti.template(), dst: ti.template(), sums: ti.template(), local: ti.template(), n: int, blocks: int):
    """
    Block-local exclusive scan for backends without block shared memory.

    Same tree and same conflict-free layout as block_scan_shared, with the
    block's threads executed in order by one work item.

    Args:
        local: Scratch buffer of shape (blocks, SHARED_SIZE), one row per block
        (other arguments as block_scan_shared)
    """
    for block in range(blocks):
        base = block * cte.ELEMENTS_PER_BLOCK

        for idx in range(cte.ELEMENTS_PER_BLOCK):
            val = 0
            if base + idx < n:
                val = src[base + idx]
            local[block, conflict_free(idx)] = val

        offset = 1
        d = cte.BLOCK_SIZE
        while d > 0:
            for thid in range(d):
                a = offset * (2 * thid + 1) - 1
                b = offset * (2 * thid + 2) - 1
                local[block, conflict_free(b)] += local[block, conflict_free(a)]
            offset = offset * 2
            d = d >> 1

        root = conflict_free(cte.ELEMENTS_PER_BLOCK - 1)
        sums[block] = local[block, root]
        local[block, root] = 0

        d = 1
        while d < cte.ELEMENTS_PER_BLOCK:
            offset = offset >> 1
            for thid in range(d):
                a = offset * (2 * thid + 1) - 1
                b = offset * (2 * thid + 2) - 1
                t = local[block, conflict_free(a)]
                local[block, conflict_free(a)] = local[block, conflict_free(b)]
                local[block, conflict_free(b)] += t
            d = d * 2

        for idx in range(cte.ELEMENTS_PER_BLOCK):
            if base + idx < n:
                dst[base + idx] = local[block, conflict_free(idx)]


def block_scan(src, dst, sums, n: int, blocks: int):
    """
    Dispatch the block-local scan suited to the active backend.

    Author: B.G.
    """
    if env.has_shared_memory():
        launch(block_scan_shared, src, dst, sums, n, blocks)
    else:
        with pool.scratch(ti.i32, (blocks, cte.SHARED_SIZE)) as local:
            launch(block_scan_local, src, dst, sums, local.field, n, blocks)


def scan_device(src, dst, n: int, depth: int = 0):
    """
    Hierarchical exclusive scan of a device field.

    Args:
        src: Input Taichi field
        dst: Output Taichi field (may be src)
        n: Number of elements
        depth: Recursion level, for logging

    Raises:
        DeviceAllocationError: If a scratch buffer cannot be allocated
        DeviceExecutionError: If a dispatch fails

    Author: B.G.
    """
    if n <= 0:
        return

    blocks = num_blocks(n, cte.ELEMENTS_PER_BLOCK)
    logger.debug("Shared scan depth %d: %d elements in %d blocks", depth, n, blocks)

    with pool.scratch(ti.i32, blocks) as sums:
        block_scan(src, dst, sums.field, n, blocks)
        if blocks > 1:
            # Scan of the block totals gives each block its offset
            with pool.scratch(ti.i32, blocks) as offsets:
                scan_device(sums.field, offsets.field, blocks, depth + 1)
                launch(ut.add_block_offsets, dst, offsets.field, n, cte.ELEMENTS_PER_BLOCK)


def scan(n: int, odata, idata):
    """
    Exclusive scan of a host array with the shared-memory engine.

    Args:
        n: Number of elements (n <= 0 does nothing)
        odata: Host output array, filled in place
        idata: Host input array

    Author: B.G.
    """
    run_scan(scan_device, n, odata, idata)
