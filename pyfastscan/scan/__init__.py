"""
Exclusive scan (prefix sum) engines for PyFastScan.

Three engines with the same contract: given n elements, produce
out[i] = in[0] + ... + in[i-1], out[0] = 0.

Core Modules:
- naive: Hillis-Steele doubling scan, O(n log n) work, ping-pong buffers
- efficient: Blelloch up-sweep/down-sweep over a padded buffer, O(n) work
- shared: Block-local scans in on-chip memory with bank-conflict-free
  offsets, recursive combination of the block totals

Each engine exposes:
- scan(n, odata, idata): host arrays in, host array filled in place
- scan_device(src, dst, n): Taichi fields in and out, no host transfer

Usage:
    import numpy as np
    import taichi as ti
    import pyfastscan as ps

    ps.environment.initialise(ti.gpu)
    data = np.random.randint(0, 50, 1000).astype(np.int32)
    out = np.empty_like(data)
    ps.scan.efficient.scan(data.size, out, data)

    # Engine by name, for compaction and sort
    scan_device = ps.scan.get_scan_device("shared")

Author: B.G.
"""

from . import naive
from . import efficient
from . import shared

SCAN_METHODS = {
    "naive": naive.scan_device,
    "efficient": efficient.scan_device,
    "shared": shared.scan_device,
}


def get_scan_device(method="efficient"):
    """
    Resolve a scan engine name (or a field-level scan callable).

    Args:
        method: "naive", "efficient", "shared" or a callable (src, dst, n)

    Returns:
        Field-level scan function

    Raises:
        ValueError: For an unknown engine name

    Author: B.G.
    """
    if callable(method):
        return method
    try:
        return SCAN_METHODS[method]
    except KeyError:
        raise ValueError(f"Unknown scan method '{method}'. Available methods: {sorted(SCAN_METHODS)}") from None


__all__ = [
    "naive",
    "efficient",
    "shared",
    "SCAN_METHODS",
    "get_scan_device"
]
