"""
CPU reference submodule for PyFastScan.

Numpy implementations of scan, compaction (with and without scan) and sort,
used to validate the device engines.

Author: B.G.
"""

from .oracle import scan, compact_without_scan, compact_with_scan, sort

__all__ = [
    "scan",
    "compact_without_scan",
    "compact_with_scan",
    "sort"
]
