"""
Scan-based stream compaction.

Keeps the non-zero elements of an array in their original order:
    1. map every element to a 0/1 flag
    2. exclusive-scan the flags: the output slot of every kept element
    3. scatter the kept elements to their slots

Kept count = scan[n-1] + flag[n-1]. Only the first `count` output positions
are written.

Author: B.G.
"""
import logging

import taichi as ti

from .. import constants as cte
from .. import pool
from .. import timing
from ..general_algorithms import launch, read_scalar, sync
from ..scan import get_scan_device
from ..scan.common import as_keys, check_arguments

logger = logging.getLogger(__name__)


@ti.kernel
def map_to_boolean(bools: ti.template(), idata: ti.template(), n: int):
    """
    bools[i] = 1 if idata[i] != 0 else 0

    Author: B.G.
    """
    ti.loop_config(block_dim=cte.BLOCK_SIZE)
    for i in range(n):
        bools[i] = 1 if idata[i] != 0 else 0


@ti.kernel
def scatter(odata: ti.template(), idata: ti.template(), bools: ti.template(), indices: ti.template(), n: int):
    """
    Write every kept element to its scanned position.

    Args:
        odata: Output array
        idata: Input array
        bools: 0/1 keep flags
        indices: Exclusive scan of bools
        n: Number of input elements

    Author: B.G.
    """
    ti.loop_config(block_dim=cte.BLOCK_SIZE)
    for i in range(n):
        if bools[i] == 1:
            odata[indices[i]] = idata[i]


def compact_device(src, dst, n: int, scan_device) -> int:
    """
    Compact a device field into another.

    Args:
        src: Input Taichi field
        dst: Output Taichi field (at least n elements, distinct from src)
        n: Number of input elements
        scan_device: Field-level exclusive scan used for the slots

    Returns:
        int: Number of elements kept

    Author: B.G.
    """
    if n <= 0:
        return 0

    with pool.scratch(ti.i32, n) as bools, pool.scratch(ti.i32, n) as indices:
        launch(map_to_boolean, bools.field, src, n)
        scan_device(bools.field, indices.field, n)
        launch(scatter, dst, src, bools.field, indices.field, n)
        count = read_scalar(indices.field, n - 1) + read_scalar(bools.field, n - 1)

    return count


def compact(n: int, odata, idata, method="efficient") -> int:
    """
    Stream-compact a host array on the device, keeping non-zero elements.

    Args:
        n: Number of input elements (n <= 0 returns 0, odata untouched)
        odata: Host output array of at least n elements. The first `count`
            entries receive the kept elements, the rest is left untouched.
        idata: Host input array
        method: Scan engine, "naive", "efficient" or "shared"

    Returns:
        int: Number of elements kept, 0 <= count <= n

    Example:
        Input:  [0, 0, 3, 2, 0, 3, 1, 0, 3]
        Output: [3, 2, 3, 1, 3], count 5

    Raises:
        ValueError: For invalid arguments or an unknown method
        DeviceAllocationError, DeviceExecutionError: On device failure

    Author: B.G.
    """
    scan_device = get_scan_device(method)
    n = check_arguments(n, odata, idata)
    if n <= 0:
        return 0

    with pool.upload(as_keys(idata, n)) as src, pool.scratch(ti.i32, n) as dst:
        with timing.gpu_timer():
            count = compact_device(src.field, dst.field, n, scan_device)
            sync()
        result = dst.to_numpy()

    logger.debug("Compacted %d elements to %d", n, count)
    odata[:count] = result[:count]
    return count
