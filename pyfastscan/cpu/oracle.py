"""
CPU reference implementations.

Host-side numpy versions of the primitives, used as the correctness oracle of
the device engines and as the performance baseline. Same calling convention
as the device primitives: (n, odata, idata), outputs filled in place. Sums
wrap in 32-bit two's complement like the device kernels.

Author: B.G.
"""

import numpy as np

from .. import timing


def _exclusive_scan(values: np.ndarray) -> np.ndarray:
    out = np.zeros(values.shape[0], dtype=np.int32)
    if values.shape[0] > 1:
        np.cumsum(values[:-1], dtype=np.int32, out=out[1:])
    return out


def scan(n: int, odata, idata):
    """
    Exclusive prefix sum: odata[i] = idata[0] + ... + idata[i-1].

    n <= 0 leaves odata untouched.

    Author: B.G.
    """
    if n <= 0:
        return
    with timing.cpu_timer():
        result = _exclusive_scan(np.asarray(idata[:n], dtype=np.int32))
    odata[:n] = result


def compact_without_scan(n: int, odata, idata) -> int:
    """
    Single-pass compaction: copy the non-zero elements in order.

    Returns:
        int: Number of elements kept

    Author: B.G.
    """
    if n <= 0:
        return 0
    count = 0
    with timing.cpu_timer():
        for i in range(n):
            if idata[i] != 0:
                odata[count] = idata[i]
                count += 1
    return count


def compact_with_scan(n: int, odata, idata) -> int:
    """
    Compaction through map / exclusive scan / scatter, the same steps as the
    device engine.

    Returns:
        int: Number of elements kept

    Author: B.G.
    """
    if n <= 0:
        return 0
    with timing.cpu_timer():
        values = np.asarray(idata[:n], dtype=np.int32)
        bools = (values != 0).astype(np.int32)
        indices = _exclusive_scan(bools)
        count = int(indices[n - 1] + bools[n - 1])
        kept = bools == 1
        odata[indices[kept]] = values[kept]
    return count


def sort(n: int, odata, idata, signed_keys: bool = False):
    """
    Stable sort of 32-bit keys.

    With signed_keys=False keys are ordered as unsigned 32-bit patterns, the
    order produced by the device radix sort by default.

    Author: B.G.
    """
    if n <= 0:
        return
    with timing.cpu_timer():
        values = np.asarray(idata[:n], dtype=np.int32)
        if signed_keys:
            result = np.sort(values, kind="stable")
        else:
            result = np.sort(values.view(np.uint32), kind="stable").view(np.int32)
    odata[:n] = result
