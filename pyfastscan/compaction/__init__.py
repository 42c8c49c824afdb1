"""
Stream compaction submodule for PyFastScan.

Removes the zero elements of an array while preserving the order of the
others, using any of the scan engines for the output slots.

Usage:
    import numpy as np
    import pyfastscan as ps

    data = np.array([0, 0, 3, 2, 0, 3, 1, 0, 3], dtype=np.int32)
    out = np.zeros_like(data)
    count = ps.compaction.compact(data.size, out, data, method="shared")
    # out[:count] -> [3, 2, 3, 1, 3]

Author: B.G.
"""

from .stream_compaction import compact, compact_device, map_to_boolean, scatter

__all__ = [
    "compact",
    "compact_device",
    "map_to_boolean",
    "scatter"
]
