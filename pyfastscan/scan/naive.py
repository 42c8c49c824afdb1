"""
Naive parallel scan.

Hillis-Steele doubling scan: level d adds to every element the element
2^(d-1) positions to its left, ping-ponging between two buffers so a level
never reads what it writes. O(n log n) work, O(log n) levels.

Author: B.G.
"""
import taichi as ti

from .. import constants as cte
from .. import pool
from ..general_algorithms import PingPong, ilog2ceil, launch
from ..general_algorithms import util_taichi as ut
from .common import run_scan


@ti.kernel
def naive_step(src: ti.template(), dst: ti.template(), n: int, offset: int):
    ti.loop_config(block_dim=cte.BLOCK_SIZE)
    for k in range(n):
        if k >= offset:
            dst[k] = src[k - offset] + src[k]
        else:
            dst[k] = src[k]


def scan_device(src, dst, n: int):
    """
    Exclusive scan of a device field using the doubling algorithm.

    The input is shifted right by one (first element 0) into the first
    buffer; the inclusive doubling scan of that shifted array is the
    exclusive scan of the input.

    Args:
        src: Input Taichi field
        dst: Output Taichi field (may be src)
        n: Number of elements

    Author: B.G.
    """
    if n <= 0:
        return

    with pool.scratch(ti.i32, n) as buf_a, pool.scratch(ti.i32, n) as buf_b:
        pp = PingPong(buf_a.field, buf_b.field)
        launch(ut.shift_right, src, pp.src, n)
        for d in range(1, ilog2ceil(n) + 1):
            launch(naive_step, pp.src, pp.dst, n, 1 << (d - 1))
            pp.swap()
        launch(ut.copy_range, pp.src, dst, n)


def scan(n: int, odata, idata):
    """
    Exclusive scan of a host array with the naive engine.

    Args:
        n: Number of elements (n <= 0 does nothing)
        odata: Host output array, filled in place
        idata: Host input array

    Author: B.G.
    """
    run_scan(scan_device, n, odata, idata)
