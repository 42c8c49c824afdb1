"""
Sorting submodule for PyFastScan.

LSD radix sort of 32-bit keys using only scan and scatter as primitives.

Usage:
    import numpy as np
    import pyfastscan as ps

    keys = np.random.randint(0, 1 << 20, 1000).astype(np.int32)
    out = np.empty_like(keys)
    ps.sort.sort(keys.size, out, keys, method="efficient")

Author: B.G.
"""

from .radix import RadixSorter, sort, compute_false_flags, scatter_by_bit

__all__ = [
    "RadixSorter",
    "sort",
    "compute_false_flags",
    "scatter_by_bit"
]
