"""
PyFastScan - GPU-accelerated scan, stream compaction and radix sort.

A Python package of parallel array primitives built with Taichi: exclusive
prefix sums (scan), predicate-based stream compaction and an LSD radix sort
built on scan, together with numpy reference implementations used as the
correctness oracle.

Key Features:
- Three scan engines with the same contract:
  naive doubling scan, work-efficient Blelloch scan, shared-memory
  hierarchical scan with bank-conflict-free indexing
- Non-power-of-two lengths handled by zero padding
- Stream compaction and radix sort on top of any scan engine
- Device buffer pooling with guaranteed release of transient buffers
- Explicit error types separating device failures from empty results
- Optional elapsed-time recording of the device-side work

Core Components:
- scan: naive, efficient and shared scan engines
- compaction: scan-based stream compaction
- sort: LSD radix sort
- cpu: numpy reference implementations
- pool: device buffer management
- general_algorithms: index arithmetic, ping-pong buffers, checked dispatch
- timing: elapsed-time recorder
- errors: exception types
- constants / environment: compile-time configuration and Taichi setup

Basic Usage:
    import numpy as np
    import taichi as ti
    import pyfastscan as ps

    ps.environment.initialise(ti.gpu)

    data = np.random.randint(0, 4, 100_000).astype(np.int32)
    out = np.empty_like(data)

    ps.scan.efficient.scan(data.size, out, data)
    count = ps.compaction.compact(data.size, out, data, method="shared")
    ps.sort.sort(data.size, out, data)

Author: B.G.
"""

__version__ = "0.1.0"
__author__ = "B.G."

# Import submodules, dependencies first
from . import constants
from . import errors
from . import pool
from . import environment
from . import general_algorithms
from . import timing
from . import scan
from . import compaction
from . import cpu
from . import sort

# Export all submodules
__all__ = [
    "compaction",
    "constants",
    "cpu",
    "environment",
    "errors",
    "general_algorithms",
    "pool",
    "scan",
    "sort",
    "timing"
]
