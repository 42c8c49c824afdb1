"""
General Algorithms Module

Building blocks shared by the scan, compaction and sort engines.

Available Modules:
    - indices: Power-of-two bounds, tree level counts, block counts
    - util_taichi: Copy, shift and block-offset kernels
    - pingpong: Double buffer with explicit role swapping
    - dispatch: Checked kernel launches and host reads

Example Usage:
    ```python
    from pyfastscan.general_algorithms import next_pow2, ilog2ceil, launch
    from pyfastscan.general_algorithms import util_taichi as ut

    n_pow2 = next_pow2(1000)        # 1024
    levels = ilog2ceil(1000)        # 10
    launch(ut.set_zero, work.field, n_pow2 - 1)
    ```

Author: B. Gailleton
"""

from .indices import ilog2, ilog2ceil, next_pow2, num_blocks
from .pingpong import PingPong
from .dispatch import launch, sync, read_scalar
from . import util_taichi

__all__ = [
    'ilog2',
    'ilog2ceil',
    'next_pow2',
    'num_blocks',
    'PingPong',
    'launch',
    'sync',
    'read_scalar',
    'util_taichi'
]
