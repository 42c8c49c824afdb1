"""
Work-Efficient Parallel Scan Implementation

This module implements the work-efficient parallel exclusive scan (Blelloch
scan) over a buffer padded to the next power of two.

Algorithm Details:
    - Based on Blelloch (1990) work-efficient scan
    - Two-phase approach: up-sweep (reduce) + down-sweep (distribute)
    - O(n) work complexity, O(log n) depth complexity
    - Each level is a separate dispatch of exactly nPow2 >> (d+1) work items,
      so idle work items are never scheduled

Mathematical Operation:
    Given input array [a0, a1, a2, ..., an-1], produces output:
    [0, a0, a0+a1, ..., a0+a1+...+an-2]

Index width:
    Every tree index is smaller than nPow2 <= MAX_LENGTH = 2^30, so the i32
    kernel arithmetic never overflows.

Author: B. Gailleton
Reference: Blelloch, G. E. (1990). "Prefix sums and their applications"
"""
import taichi as ti

from .. import constants as cte
from .. import pool
from ..general_algorithms import ilog2, next_pow2, launch
from ..general_algorithms import util_taichi as ut
from .common import run_scan


@ti.kernel
def upsweep_step(data: ti.template(), num_ops: int, stride: int):
    """
    Execute one level of the up-sweep phase (reduce phase).

    Work item i updates the right child of the i-th pair of subtrees at this
    level: data[bi] += data[bi - stride] with bi = i*2*stride + 2*stride - 1.

    Args:
        data: Padded working array (modified in-place)
        num_ops: Number of active work items, nPow2 / (2*stride)
        stride: 2^d for level d

    Time Complexity: O(num_ops) work per level
    """
    ti.loop_config(block_dim=cte.BLOCK_SIZE)
    for i in range(num_ops):
        step = stride * 2
        bi = i * step + step - 1
        data[bi] += data[bi - stride]


@ti.kernel
def downsweep_step(data: ti.template(), num_ops: int, stride: int):
    """
    Execute one level of the down-sweep phase (distribute phase).

    For each active node: the left child receives the parent value, the right
    child receives parent + old left child.

    Args:
        data: Padded working array (modified in-place)
        num_ops: Number of active work items, nPow2 / (2*stride)
        stride: 2^d for level d

    Time Complexity: O(num_ops) work per level
    """
    ti.loop_config(block_dim=cte.BLOCK_SIZE)
    for i in range(num_ops):
        step = stride * 2
        bi = i * step + step - 1
        ai = bi - stride
        temp = data[ai]
        data[ai] = data[bi]
        data[bi] += temp


def sweep(data, n_pow2: int):
    """
    In-place exclusive scan of a padded power-of-two buffer.

    Args:
        data: Taichi field of at least n_pow2 elements, padding zeroed
        n_pow2: Power-of-two length of the tree

    Author: B. Gailleton
    """
    levels = ilog2(n_pow2)

    # Up-sweep phase (build sum tree)
    for d in range(levels):
        launch(upsweep_step, data, n_pow2 >> (d + 1), 1 << d)

    # Set root to zero for exclusive scan base
    launch(ut.set_zero, data, n_pow2 - 1)

    # Down-sweep phase (traverse down tree)
    for d in range(levels - 1, -1, -1):
        launch(downsweep_step, data, n_pow2 >> (d + 1), 1 << d)


def scan_device(src, dst, n: int):
    """
    Exclusive scan of the first n elements of a device field into another.

    src and dst may be the same field.

    Args:
        src: Input Taichi field (at least n elements)
        dst: Output Taichi field (at least n elements)
        n: Number of elements to scan

    Raises:
        DeviceAllocationError: If the padded buffer cannot be allocated
        DeviceExecutionError: If a dispatch fails

    Author: B. Gailleton
    """
    if n <= 0:
        return

    n_pow2 = next_pow2(n)
    with pool.padded(ti.i32, n, n_pow2) as work:
        launch(ut.copy_range, src, work.field, n)
        sweep(work.field, n_pow2)
        launch(ut.copy_range, work.field, dst, n)


def scan(n: int, odata, idata):
    """
    Compute the exclusive scan (prefix sum) of a host array on the device.

    Args:
        n: Number of elements to scan (n <= 0 does nothing)
        odata: Host output array, at least n elements, filled in place
        idata: Host input array, at least n elements

    Example:
        Input:  [3, 1, 7, 0, 4, 1, 6, 3]
        Output: [0, 3, 4, 11, 11, 15, 16, 22]

    Time Complexity: O(n) work, O(log n) depth
    Space Complexity: O(next_power_of_2(n)) working space

    Author: B. Gailleton
    """
    run_scan(scan_device, n, odata, idata)
