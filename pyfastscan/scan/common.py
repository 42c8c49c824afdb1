"""
Host-side plumbing shared by the scan engines.

Argument checks and the host -> device -> host flow wrapped around a
field-level scan. The device-side part of the flow is bracketed by the
timing collaborator, the transfers are not. The device section ends with a
checked synchronisation, so a fault of an asynchronous dispatch is reported
as a DeviceExecutionError before anything is downloaded.

Author: B.G.
"""

import operator

import numpy as np
import taichi as ti

from .. import constants as cte
from .. import pool
from .. import timing
from ..general_algorithms import sync

INT32 = np.iinfo(np.int32)


def check_arguments(n, *arrays) -> int:
    """
    Validate a primitive call before anything is allocated.

    Args:
        n: Number of elements to process, any integer type (numpy included)
        *arrays: Host arrays that must hold at least n elements

    Returns:
        int: n as a plain Python int

    Raises:
        TypeError: If n is not an integer
        ValueError: If n exceeds MAX_LENGTH or an array is too short

    Author: B.G.
    """
    n = operator.index(n)
    if n > cte.MAX_LENGTH:
        raise ValueError(f"n={n} exceeds the largest supported length {cte.MAX_LENGTH}")
    for arr in arrays:
        if n > 0 and len(arr) < n:
            raise ValueError(f"Array of length {len(arr)} is shorter than n={n}")
    return n


def as_keys(idata, n: int) -> np.ndarray:
    """
    First n elements of idata as a contiguous int32 array.

    uint32 input is reinterpreted bit for bit (the raw keys of the radix
    sort). Any other integer input must fit in int32.

    Raises:
        ValueError: For non-integer input or values outside the int32 range

    Author: B.G.
    """
    values = np.asarray(idata)[:n]
    if values.dtype == np.int32:
        return np.ascontiguousarray(values)
    if values.dtype == np.uint32:
        return np.ascontiguousarray(values).view(np.int32)
    if values.dtype.kind not in "iub":
        raise ValueError(f"Integer keys expected, got {values.dtype}")
    if values.size and (values.min() < INT32.min or values.max() > INT32.max):
        raise ValueError(f"Values of dtype {values.dtype} do not fit in int32")
    return np.ascontiguousarray(values, dtype=np.int32)


def run_scan(scan_device, n: int, odata, idata):
    """
    Upload idata, scan it on the device and download the result into odata.

    Nothing happens for n <= 0, odata is left untouched. On failure odata is
    not written either.

    Args:
        scan_device: Field-level scan (src, dst, n)
        n: Number of elements
        odata: Host output array, at least n elements
        idata: Host input array, at least n elements

    Author: B.G.
    """
    n = check_arguments(n, odata, idata)
    if n <= 0:
        return

    with pool.upload(as_keys(idata, n)) as src, pool.scratch(ti.i32, n) as dst:
        with timing.gpu_timer():
            scan_device(src.field, dst.field, n)
            sync()
        result = dst.to_numpy()

    odata[:n] = result
